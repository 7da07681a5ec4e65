import uuid
import logging

from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError, ValidationError, service_boundary
from app.models.profile import Profile

logger = logging.getLogger(__name__)

FIELDS = ("phone_number", "address", "state", "country")


def _clean(fields: dict) -> dict:
    data = {}
    for key in FIELDS:
        if key not in fields:
            continue
        value = (fields[key] or "").strip()
        if not value:
            raise ValidationError(f"{key} is required", field=key)
        data[key] = value
    return data


def _mine(db: Session, user_id: str) -> Profile:
    p = db.query(Profile).filter(Profile.user_id == user_id).first()
    if not p:
        raise NotFoundError("Profile not found", field="user_id")
    return p


@service_boundary("get profile")
def get_mine(db: Session, user_id: str) -> Profile:
    return _mine(db, user_id)


@service_boundary("create profile")
def create(db: Session, user_id: str, fields: dict) -> Profile:
    if db.query(Profile.id).filter(Profile.user_id == user_id).first():
        raise ConflictError("Profile already exists", field="user_id")
    data = _clean({k: fields.get(k) for k in FIELDS})
    p = Profile(id=str(uuid.uuid4()), user_id=user_id, **data)
    db.add(p)
    db.commit()
    db.refresh(p)
    logger.info("profile %s created for user %s", p.id, user_id)
    return p


@service_boundary("update profile")
def update(db: Session, user_id: str, fields: dict) -> Profile:
    p = _mine(db, user_id)
    for key, value in _clean(fields).items():
        setattr(p, key, value)
    db.commit()
    db.refresh(p)
    return p


@service_boundary("delete profile")
def delete(db: Session, user_id: str) -> None:
    p = _mine(db, user_id)
    profile_id = p.id
    db.delete(p)
    db.commit()
    logger.info("profile %s deleted", profile_id)
