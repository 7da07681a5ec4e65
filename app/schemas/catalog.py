from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CountryIn(BaseModel):
    iso: str = Field(min_length=2, max_length=3)
    name: str
    flag: str = ""
    phone_code: str = ""
    currency: str = "IDR"


class CountryPatch(BaseModel):
    name: Optional[str] = None
    flag: Optional[str] = None
    phone_code: Optional[str] = None
    currency: Optional[str] = None


class CountryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    iso: str
    name: str
    flag: str = ""
    phone_code: str = ""
    currency: str


class StateIn(BaseModel):
    name: str
    latitude: str = ""
    longitude: str = ""


class StateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    country_id: str
    name: str
    latitude: str = ""
    longitude: str = ""


class CategoryIn(BaseModel):
    name: str
    code: str


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: str


class DestinationIn(BaseModel):
    state_id: str
    category_id: Optional[str] = None
    name: str
    description: str = ""
    price: Decimal = Field(ge=0)
    image_url: str = ""


class DestinationPatch(BaseModel):
    category_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    image_url: Optional[str] = None


class TranslationIn(BaseModel):
    language: str = Field(min_length=2, max_length=8)
    name: str
    description: str = ""


class TranslationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    destination_id: str
    language: str
    name: str
    slug: str = ""
    description: str = ""


class DestinationOut(BaseModel):
    id: str
    state_id: str
    country_id: Optional[str] = None
    category_id: Optional[str] = None
    name: str
    description: str = ""
    price: Decimal
    image_url: str = ""
    language: Optional[str] = None
    created_at: Optional[datetime] = None
    translations: List[str] = []  # available languages
