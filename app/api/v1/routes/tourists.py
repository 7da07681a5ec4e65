from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user
from app.models.user import User
from app.schemas.tourist import TouristBulkCreate, TouristCreate, TouristOut, TouristPatch
from app.services import tourist_service

router = APIRouter(tags=["tourists"])


@router.post("/tourists", response_model=TouristOut, status_code=201)
def add_tourist(body: TouristCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    person = body.model_dump(exclude={"booking_id"})
    return tourist_service.add_one(db, body.booking_id, me.id, person)


@router.post("/tourists/bulk", response_model=List[TouristOut], status_code=201)
def add_tourists(body: TouristBulkCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return tourist_service.add_many(db, body.booking_id, me.id, [t.model_dump() for t in body.tourists])


@router.get("/tourists", response_model=List[TouristOut])
def list_tourists(booking_id: Optional[str] = None, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    if booking_id:
        return tourist_service.list_for_booking(db, booking_id, me.id)
    return tourist_service.list_for_traveller(db, me.id)


@router.get("/tourists/{tourist_id}", response_model=TouristOut)
def get_tourist(tourist_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return tourist_service.get(db, tourist_id, me.id)


@router.patch("/tourists/{tourist_id}", response_model=TouristOut)
def update_tourist(tourist_id: str, body: TouristPatch, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return tourist_service.update(db, tourist_id, me.id, body.model_dump(exclude_unset=True))


@router.delete("/tourists/{tourist_id}", status_code=204)
def delete_tourist(tourist_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    tourist_service.remove(db, tourist_id, me.id)
    return Response(status_code=204)
