from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import staff
from app.models.user import User
from app.schemas.sales import SaleOut, SalesBucket, SalesSummary
from app.services import sales_service

router = APIRouter(tags=["sales"])

PERIOD_ROUTES = {
    "daily": "day",
    "weekly": "week",
    "monthly": "month",
    "yearly": "year",
}


@router.get("/sales", response_model=List[SaleOut])
def list_sales(db: Session = Depends(get_db), user: User = Depends(staff)):
    return sales_service.list_sales(db)


@router.get("/sales/summary", response_model=SalesSummary)
def sales_summary(db: Session = Depends(get_db), user: User = Depends(staff)):
    return sales_service.summary(db)


@router.get("/sales/{period}", response_model=List[SalesBucket])
def sales_by_period(period: str, db: Session = Depends(get_db), user: User = Depends(staff)):
    if period not in PERIOD_ROUTES:
        raise HTTPException(status_code=404, detail=f"Unknown period {period}")
    return sales_service.aggregate(db, PERIOD_ROUTES[period])
