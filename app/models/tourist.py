import enum
from datetime import datetime

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from app.db.session import Base
from app.db.types import str_enum, utcnow


class Gender(str, enum.Enum):
    MR = "Mr"
    MISS = "Miss"
    MS = "Ms"
    MRS = "Mrs"


class Tourist(Base):
    __tablename__ = "tourists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_id: Mapped[str] = mapped_column(String(36), ForeignKey("bookings.id"), index=True)

    name: Mapped[str] = mapped_column(String(200))
    gender: Mapped[Gender] = mapped_column(str_enum(Gender, length=8))
    phone_number: Mapped[str | None] = mapped_column(String(40), nullable=True)
    nationality: Mapped[str] = mapped_column(String(80))
    # uniqueness is checked by the registry before writes, not by the table
    passport_number: Mapped[str] = mapped_column(String(40), index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
