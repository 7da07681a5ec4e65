from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, ForeignKey, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.session import Base
from app.db.types import utcnow
from app.models.country import State


class CategoryDestination(Base):
    __tablename__ = "category_destinations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(120))
    code: Mapped[str] = mapped_column(String(40), unique=True, index=True)  # e.g. beach, temple

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Destination(Base):
    __tablename__ = "destinations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    state_id: Mapped[str] = mapped_column(String(36), ForeignKey("states.id"), index=True)
    category_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("category_destinations.id"), nullable=True, index=True)

    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, default="")
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    image_url: Mapped[str] = mapped_column(String(512), default="")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    state: Mapped[State] = relationship()
    category: Mapped[CategoryDestination | None] = relationship()
    translations: Mapped[list["DestinationTranslation"]] = relationship(back_populates="destination")

    @property
    def country_id(self) -> str | None:
        return self.state.country_id if self.state else None


class DestinationTranslation(Base):
    __tablename__ = "destination_translations"
    __table_args__ = (
        UniqueConstraint("destination_id", "language", name="uq_destination_translation_lang"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    destination_id: Mapped[str] = mapped_column(String(36), ForeignKey("destinations.id", ondelete="CASCADE"), index=True)
    language: Mapped[str] = mapped_column(String(8))  # en, id, ...
    name: Mapped[str] = mapped_column(String(200))
    slug: Mapped[str] = mapped_column(String(220), index=True, default="")
    description: Mapped[str] = mapped_column(Text, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    destination: Mapped[Destination] = relationship(back_populates="translations")
