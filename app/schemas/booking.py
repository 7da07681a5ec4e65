from datetime import date, datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict

from app.models.booking import BookingStatus


class BookTourCreate(BaseModel):
    destination_id: str
    visit_date: date


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    destination_id: str
    visit_date: date


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    country_id: str
    status: BookingStatus
    subtotal: Decimal
    items: List[BookingItemOut] = []
    created_at: datetime
    updated_at: datetime
