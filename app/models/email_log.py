from sqlalchemy import String, Integer, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime

from app.db.session import Base
from app.db.types import utcnow


class EmailLog(Base):
    __tablename__ = "email_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    kind: Mapped[str] = mapped_column(String(40), index=True)  # verify_account, booking_confirmation, ...
    to_email: Mapped[str] = mapped_column(String(320), index=True)
    cc: Mapped[str] = mapped_column(String(1000), default="")
    subject: Mapped[str] = mapped_column(String(200))
    html: Mapped[str | None] = mapped_column(Text, nullable=True)  # kept so the worker can retry
    status: Mapped[str] = mapped_column(String(30), default="queued")  # queued, sent, failed
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    last_error: Mapped[str] = mapped_column(String(500), default="")
    related_ref: Mapped[str] = mapped_column(String(40), default="")  # invoice code / booking id
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
