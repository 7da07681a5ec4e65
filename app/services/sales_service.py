import uuid
import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import ValidationError, service_boundary
from app.db.types import as_utc
from app.models.sale import Sale, SaleStatus

logger = logging.getLogger(__name__)


def _day(ts: datetime) -> str:
    return ts.strftime("%Y-%m-%d")


def _week(ts: datetime) -> str:
    year, week, _ = ts.isocalendar()
    return f"{year}-W{week:02d}"


def _month(ts: datetime) -> str:
    return ts.strftime("%Y-%m")


def _year(ts: datetime) -> str:
    return ts.strftime("%Y")


PERIODS = {
    "day": _day,
    "week": _week,
    "month": _month,
    "year": _year,
}


def record_from_payment(db: Session, payment_id: str, booking_id: str, amount: Decimal, currency: str) -> Sale:
    """Stage the sale for a successful payment; a second call returns the first row.

    Runs inside the caller's transaction, the caller commits.
    """
    existing = db.query(Sale).filter(Sale.payment_id == payment_id).first()
    if existing:
        logger.info("sale already exists for payment %s", payment_id)
        return existing
    sale = Sale(
        id=str(uuid.uuid4()),
        booking_id=booking_id,
        payment_id=payment_id,
        amount=Decimal(amount),
        currency=currency,
        status=SaleStatus.COMPLETED,
    )
    db.add(sale)
    db.flush()
    logger.info("sale %s recorded for payment %s (%s %s)", sale.id, payment_id, sale.amount, currency)
    return sale


@service_boundary("list sales")
def list_sales(db: Session) -> list[Sale]:
    return db.query(Sale).order_by(Sale.created_at.desc()).all()


@service_boundary("aggregate sales")
def aggregate(db: Session, period: str) -> list[dict]:
    labeller = PERIODS.get(period)
    if labeller is None:
        raise ValidationError(f"Unknown period: {period}", field="period")

    buckets: dict[tuple[str, str], dict] = defaultdict(lambda: {"total": Decimal("0"), "count": 0})
    rows = (
        db.query(Sale.created_at, Sale.amount, Sale.currency)
        .filter(Sale.status == SaleStatus.COMPLETED)
        .all()
    )
    for created_at, amount, currency in rows:
        b = buckets[(labeller(as_utc(created_at)), currency)]
        b["total"] += Decimal(amount)
        b["count"] += 1

    return [
        {"label": label, "currency": currency, "total": b["total"], "count": b["count"]}
        for (label, currency), b in sorted(buckets.items())
    ]


@service_boundary("sales summary")
def summary(db: Session) -> dict:
    rows = (
        db.query(Sale.currency, func.sum(Sale.amount), func.count(Sale.id))
        .filter(Sale.status == SaleStatus.COMPLETED)
        .group_by(Sale.currency)
        .all()
    )
    revenue = {currency: Decimal(str(total or 0)) for currency, total, _ in rows}
    return {
        "total_revenue": revenue,
        "total_orders": sum(int(n) for _, _, n in rows),
    }
