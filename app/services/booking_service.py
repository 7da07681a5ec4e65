import uuid
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.core.errors import DateOrderingError, InvalidDateError, NotFoundError, service_boundary
from app.db.types import utcnow
from app.models.booking import Booking, BookingItem, BookingStatus, OPEN_STATUSES
from app.models.user import User
from app.services.audit_service import log_audit
from app.services.catalog_service import find_destination
from app.services.status_machine import booking_machine

logger = logging.getLogger(__name__)


def _find_open_booking(db: Session, user_id: str, country_id: str) -> Booking | None:
    return (
        db.query(Booking)
        .filter(
            Booking.user_id == user_id,
            Booking.country_id == country_id,
            Booking.status.in_(OPEN_STATUSES),
            Booking.deleted_at.is_(None),
        )
        .order_by(Booking.created_at.asc())
        .first()
    )


def latest_visit_date(db: Session, user_id: str) -> date | None:
    return (
        db.query(func.max(BookingItem.visit_date))
        .join(Booking, Booking.id == BookingItem.booking_id)
        .filter(Booking.user_id == user_id, BookingItem.deleted_at.is_(None), Booking.deleted_at.is_(None))
        .scalar()
    )


def _load(db: Session, booking_id: str) -> Booking | None:
    return (
        db.query(Booking)
        .options(selectinload(Booking.items))
        .filter(Booking.id == booking_id, Booking.deleted_at.is_(None))
        .first()
    )


@service_boundary("add destination to booking")
def add_destination(db: Session, user_id: str, destination_id: str, visit_date: date, today: date | None = None) -> Booking:
    """Append a destination visit to the traveller's open booking for its country.

    A new draft booking is started when there is no draft/pending booking for
    that (traveller, country) pair. The destination price is added to the
    subtotal once, whatever the number of tourists.
    """
    if not db.get(User, user_id):
        raise NotFoundError("User not found", field="user_id")
    dest = find_destination(db, destination_id)
    if not dest:
        raise NotFoundError("Destination not found", field="destination_id")

    today = today or date.today()
    if visit_date < today:
        raise InvalidDateError("Visit date cannot be in the past", field="visit_date")
    latest = latest_visit_date(db, user_id)
    if latest and latest > visit_date:
        raise DateOrderingError(
            f"Visit date must be on or after your latest planned visit ({latest.isoformat()})",
            field="visit_date",
        )

    country_id = dest.country_id
    price = Decimal(dest.price)
    booking = _find_open_booking(db, user_id, country_id)
    if booking:
        booking.subtotal = Decimal(booking.subtotal) + price
        booking.updated_at = utcnow()
    else:
        booking = Booking(
            id=str(uuid.uuid4()),
            user_id=user_id,
            country_id=country_id,
            status=BookingStatus.DRAFT,
            subtotal=price,
        )
        db.add(booking)

    db.add(BookingItem(
        id=str(uuid.uuid4()),
        booking_id=booking.id,
        destination_id=dest.id,
        visit_date=visit_date,
    ))
    db.commit()
    logger.info("booking %s: added destination %s on %s (subtotal %s)", booking.id, dest.id, visit_date, booking.subtotal)
    return _load(db, booking.id)


@service_boundary("list bookings")
def list_bookings(db: Session, user_id: str) -> list[Booking]:
    return (
        db.query(Booking)
        .options(selectinload(Booking.items))
        .filter(Booking.user_id == user_id, Booking.deleted_at.is_(None))
        .order_by(Booking.created_at.desc())
        .all()
    )


@service_boundary("get booking")
def get_booking(db: Session, booking_id: str, user_id: str | None = None) -> Booking:
    """Booking by id; with ``user_id`` it must also belong to that traveller."""
    b = _load(db, booking_id)
    if not b or (user_id is not None and b.user_id != user_id):
        raise NotFoundError("Booking not found", field="booking_id")
    return b


@service_boundary("set booking status")
def set_status(db: Session, booking_id: str, status: BookingStatus, actor: str = "system") -> Booking:
    b = _load(db, booking_id)
    if not b:
        raise NotFoundError("Booking not found", field="booking_id")
    previous = b.status
    if booking_machine.apply(b, BookingStatus(status)):
        log_audit(db, actor, "booking.status", "booking", b.id, {"from": previous.value, "to": b.status.value})
        db.commit()
    return _load(db, booking_id)
