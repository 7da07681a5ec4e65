from sqlalchemy import String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime

from app.db.session import Base
from app.db.types import utcnow


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    actor: Mapped[str] = mapped_column(String(64), index=True)  # user id, "system" or "paypal-webhook"
    action: Mapped[str] = mapped_column(String(80), index=True)  # e.g. payment.captured
    entity_type: Mapped[str] = mapped_column(String(40), index=True)  # booking, payment, sale
    entity_id: Mapped[str] = mapped_column(String(36), index=True)
    details_json: Mapped[str] = mapped_column(Text, default="{}")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
