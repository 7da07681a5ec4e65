from datetime import datetime
from decimal import Decimal
from typing import Dict

from pydantic import BaseModel, ConfigDict

from app.models.sale import SaleStatus


class SaleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    booking_id: str
    payment_id: str
    amount: Decimal
    currency: str
    status: SaleStatus
    created_at: datetime


class SalesBucket(BaseModel):
    label: str
    currency: str
    total: Decimal
    count: int


class SalesSummary(BaseModel):
    total_revenue: Dict[str, Decimal]
    total_orders: int
