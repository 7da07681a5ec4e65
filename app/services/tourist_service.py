import uuid
import logging
from collections import Counter

from sqlalchemy.orm import Session

from app.core.errors import (
    DuplicateInBatchError,
    NotFoundError,
    PassportAlreadyRegisteredError,
    PassportConflictError,
    ValidationError,
    service_boundary,
)
from app.models.booking import Booking
from app.models.tourist import Gender, Tourist
from app.services.booking_service import get_booking

logger = logging.getLogger(__name__)

FIELDS = ("name", "gender", "phone_number", "nationality", "passport_number")


def _normalize(person: dict) -> dict:
    data = {k: person.get(k) for k in FIELDS}
    for key in ("name", "nationality", "passport_number"):
        value = (data.get(key) or "").strip()
        if not value:
            raise ValidationError(f"{key} is required", field=key)
        data[key] = value
    data["phone_number"] = (data.get("phone_number") or "").strip() or None
    try:
        data["gender"] = Gender(data["gender"])
    except ValueError:
        raise ValidationError(f"Invalid gender: {data['gender']}", field="gender")
    return data


def _registered(db: Session, passports: list[str]) -> list[str]:
    if not passports:
        return []
    rows = db.query(Tourist.passport_number).filter(Tourist.passport_number.in_(passports)).all()
    return sorted({r[0] for r in rows})


def _owned_tourist(db: Session, tourist_id: str, user_id: str) -> Tourist:
    t = (
        db.query(Tourist)
        .join(Booking, Booking.id == Tourist.booking_id)
        .filter(Tourist.id == tourist_id, Booking.user_id == user_id)
        .first()
    )
    if not t:
        raise NotFoundError("Tourist not found", field="tourist_id")
    return t


@service_boundary("add tourist")
def add_one(db: Session, booking_id: str, user_id: str, person: dict) -> Tourist:
    get_booking(db, booking_id, user_id)
    data = _normalize(person)
    taken = _registered(db, [data["passport_number"]])
    if taken:
        raise PassportAlreadyRegisteredError(taken)
    t = Tourist(id=str(uuid.uuid4()), booking_id=booking_id, **data)
    db.add(t)
    db.commit()
    db.refresh(t)
    logger.info("tourist %s added to booking %s", t.id, booking_id)
    return t


@service_boundary("add tourists")
def add_many(db: Session, booking_id: str, user_id: str, people: list[dict]) -> list[Tourist]:
    """Insert every person or none of them."""
    get_booking(db, booking_id, user_id)
    if not people:
        raise ValidationError("At least one tourist is required", field="tourists")
    rows = [_normalize(p) for p in people]

    counts = Counter(r["passport_number"] for r in rows)
    dupes = sorted(p for p, n in counts.items() if n > 1)
    if dupes:
        raise DuplicateInBatchError(f"Duplicate passport numbers in request: {', '.join(dupes)}", field="passport_number")

    taken = _registered(db, list(counts))
    if taken:
        raise PassportAlreadyRegisteredError(taken)

    tourists = [Tourist(id=str(uuid.uuid4()), booking_id=booking_id, **r) for r in rows]
    db.add_all(tourists)
    db.commit()
    for t in tourists:
        db.refresh(t)
    logger.info("%d tourists added to booking %s", len(tourists), booking_id)
    return tourists


@service_boundary("update tourist")
def update(db: Session, tourist_id: str, user_id: str, fields: dict) -> Tourist:
    t = _owned_tourist(db, tourist_id, user_id)
    merged = {k: getattr(t, k) for k in FIELDS}
    merged["gender"] = t.gender.value
    # phone_number is optional, so an explicit null clears it
    merged.update({k: v for k, v in fields.items() if k in FIELDS and (v is not None or k == "phone_number")})
    data = _normalize(merged)

    if data["passport_number"] != t.passport_number:
        other = (
            db.query(Tourist)
            .filter(Tourist.passport_number == data["passport_number"], Tourist.id != t.id)
            .first()
        )
        if other:
            raise PassportConflictError(
                f"Passport number {data['passport_number']} belongs to another tourist",
                field="passport_number",
            )

    for k, v in data.items():
        setattr(t, k, v)
    db.commit()
    db.refresh(t)
    return t


@service_boundary("remove tourist")
def remove(db: Session, tourist_id: str, user_id: str) -> None:
    t = _owned_tourist(db, tourist_id, user_id)
    db.delete(t)
    db.commit()
    logger.info("tourist %s removed", tourist_id)


@service_boundary("list tourists")
def list_for_traveller(db: Session, user_id: str) -> list[Tourist]:
    return (
        db.query(Tourist)
        .join(Booking, Booking.id == Tourist.booking_id)
        .filter(Booking.user_id == user_id)
        .order_by(Tourist.created_at.asc())
        .all()
    )


@service_boundary("list booking tourists")
def list_for_booking(db: Session, booking_id: str, user_id: str) -> list[Tourist]:
    get_booking(db, booking_id, user_id)
    return _booking_tourists(db, booking_id).order_by(Tourist.created_at.asc()).all()


@service_boundary("get tourist")
def get(db: Session, tourist_id: str, user_id: str) -> Tourist:
    return _owned_tourist(db, tourist_id, user_id)


def _booking_tourists(db: Session, booking_id: str):
    return db.query(Tourist).filter(Tourist.booking_id == booking_id)


def count_for_booking(db: Session, booking_id: str) -> int:
    return _booking_tourists(db, booking_id).count()
