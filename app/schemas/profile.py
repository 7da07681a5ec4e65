from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProfileIn(BaseModel):
    phone_number: str = Field(min_length=1)
    address: str = Field(min_length=1)
    state: str = Field(min_length=1)
    country: str = Field(min_length=1)


class ProfilePatch(BaseModel):
    phone_number: Optional[str] = None
    address: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    phone_number: str
    address: str
    state: str
    country: str
    created_at: datetime
    updated_at: datetime
