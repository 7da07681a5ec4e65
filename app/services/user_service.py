"""Account administration for the owner: list, inspect, edit, deactivate.

Accounts are never hard-deleted because bookings, payments and sales keep
pointing at them; deleting an account deactivates it and ends its sessions.
"""
import logging

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError, service_boundary
from app.core.security import hash_password
from app.models.user import Role, User
from app.services.audit_service import log_audit
from app.services.auth_service import revoke_sessions

logger = logging.getLogger(__name__)


def _role(value) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise ValidationError(f"Invalid role: {value}", field="role")


def _get(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found", field="user_id")
    return user


@service_boundary("list users")
def list_users(db: Session, role: Role | str | None = None, active: bool | None = None) -> list[User]:
    q = db.query(User)
    if role is not None:
        q = q.filter(User.role == _role(role))
    if active is not None:
        q = q.filter(User.is_active == active)
    return q.order_by(User.created_at.desc()).all()


@service_boundary("get user")
def get_user(db: Session, user_id: str) -> User:
    return _get(db, user_id)


@service_boundary("update user")
def update_user(db: Session, actor_id: str, user_id: str, fields: dict) -> User:
    user = _get(db, user_id)
    changed = {}
    if fields.get("full_name") is not None:
        user.full_name = fields["full_name"].strip()
        changed["full_name"] = user.full_name
    if fields.get("role") is not None:
        role = _role(fields["role"])
        if user_id == actor_id and role != user.role:
            raise ValidationError("Cannot change your own role", field="role")
        user.role = role
        changed["role"] = user.role.value
    if fields.get("is_verified") is not None:
        user.is_verified = bool(fields["is_verified"])
        changed["is_verified"] = user.is_verified
    if fields.get("is_active") is not None:
        user.is_active = bool(fields["is_active"])
        changed["is_active"] = user.is_active
        if not user.is_active:
            revoke_sessions(db, user.id)
    if fields.get("password"):
        user.password_hash = hash_password(fields["password"])
        revoke_sessions(db, user.id)
        changed["password"] = "changed"
    if changed:
        log_audit(db, actor_id, "user.update", "user", user.id, changed)
    db.commit()
    db.refresh(user)
    return user


@service_boundary("deactivate user")
def deactivate_user(db: Session, actor_id: str, user_id: str) -> None:
    if user_id == actor_id:
        raise ValidationError("Cannot deactivate your own account", field="user_id")
    user = _get(db, user_id)
    user.is_active = False
    revoked = revoke_sessions(db, user.id)
    log_audit(db, actor_id, "user.deactivate", "user", user.id, {"sessions_revoked": revoked})
    db.commit()
    logger.info("user %s deactivated by %s", user_id, actor_id)
