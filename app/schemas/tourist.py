from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.tourist import Gender


class TouristIn(BaseModel):
    name: str = Field(min_length=1)
    gender: Gender
    phone_number: Optional[str] = None
    nationality: str = Field(min_length=1)
    passport_number: str = Field(min_length=1)


class TouristCreate(TouristIn):
    booking_id: str


class TouristBulkCreate(BaseModel):
    booking_id: str
    tourists: List[TouristIn] = Field(min_length=1)


class TouristPatch(BaseModel):
    name: Optional[str] = None
    gender: Optional[Gender] = None
    phone_number: Optional[str] = None
    nationality: Optional[str] = None
    passport_number: Optional[str] = None


class TouristOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    booking_id: str
    name: str
    gender: Gender
    phone_number: Optional[str] = None
    nationality: str
    passport_number: str
    created_at: datetime
