import uuid
import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ConflictError, ForbiddenError, NotFoundError, UnauthorizedError, service_boundary
from app.core.security import (
    REFRESH,
    RESET,
    VERIFY,
    claims_from,
    create_access_token,
    create_refresh_token,
    create_reset_token,
    create_verify_token,
    hash_password,
    hash_token,
    password_fingerprint,
    subject_from,
    verify_password,
)
from app.db.types import as_utc, utcnow
from app.models.auth_session import AuthSession
from app.models.user import Role, User
from app.services import email_service
from app.services.best_effort import best_effort
from app.services.email_service import EmailKind

logger = logging.getLogger(__name__)


def _by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def _link(path: str, token: str) -> str:
    return f"{settings.CLIENT_BASE_URL.rstrip('/')}/{path}?token={token}"


def _issue(db: Session, user: User, ip: str = "") -> dict:
    """Fresh token pair; the refresh token is only valid while its session row exists."""
    refresh_token = create_refresh_token(user.id)
    db.add(
        AuthSession(
            id=str(uuid.uuid4()),
            user_id=user.id,
            token_hash=hash_token(refresh_token),
            ip=ip or "",
            expires_at=utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )
    )
    db.commit()
    return {"access_token": create_access_token(user.id), "refresh_token": refresh_token}


def _session_for(db: Session, refresh_token: str) -> AuthSession | None:
    return db.query(AuthSession).filter(AuthSession.token_hash == hash_token(refresh_token)).first()


def revoke_sessions(db: Session, user_id: str) -> int:
    """Stage removal of every session of the user; caller commits."""
    return db.query(AuthSession).filter(AuthSession.user_id == user_id).delete(synchronize_session=False)


@service_boundary("register")
def register(db: Session, email: str, password: str, full_name: str = "") -> User:
    email = email.strip().lower()
    if _by_email(db, email):
        raise ConflictError("Email already registered", field="email")
    user = User(
        id=str(uuid.uuid4()),
        email=email,
        full_name=full_name.strip(),
        role=Role.TRAVELLER,
        password_hash=hash_password(password),
        is_active=True,
        is_verified=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user %s registered", user.id)
    _send_verification(db, user)
    return user


def _send_verification(db: Session, user: User) -> None:
    result = best_effort(
        "verify_account email",
        email_service.send,
        db,
        EmailKind.VERIFY_ACCOUNT,
        user.email,
        {"name": user.full_name, "link": _link("verify", create_verify_token(user.id))},
    )
    if not result.ok:
        db.rollback()


@service_boundary("verify account")
def verify_account(db: Session, token: str) -> User:
    user = db.get(User, subject_from(token, VERIFY))
    if not user:
        raise UnauthorizedError("Invalid token")
    if not user.is_verified:
        user.is_verified = True
        db.commit()
        db.refresh(user)
    return user


@service_boundary("resend verification")
def resend_verification(db: Session, email: str) -> None:
    user = _by_email(db, email)
    if not user or not user.is_active:
        logger.info("verification resend requested for unknown address")
        return
    if user.is_verified:
        raise ConflictError("Account is already verified", field="email")
    _send_verification(db, user)


@service_boundary("login")
def login(db: Session, email: str, password: str, ip: str = "") -> dict:
    user = _by_email(db, email)
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid credentials")
    if not user.is_verified:
        raise ForbiddenError("Account is not verified", field="email")
    return _issue(db, user, ip)


@service_boundary("refresh token")
def refresh(db: Session, refresh_token: str, ip: str = "") -> dict:
    user_id = subject_from(refresh_token, REFRESH)
    session = _session_for(db, refresh_token)
    if not session or session.user_id != user_id:
        logger.warning("refresh with unknown session for user %s", user_id)
        raise UnauthorizedError("Session not found")
    if as_utc(session.expires_at) <= utcnow():
        db.delete(session)
        db.commit()
        raise UnauthorizedError("Session expired")
    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise UnauthorizedError("User not found or inactive")
    # rotate: the presented token stops working
    db.delete(session)
    return _issue(db, user, ip or session.ip)


@service_boundary("logout")
def logout(db: Session, refresh_token: str) -> None:
    session = _session_for(db, refresh_token)
    if not session:
        raise NotFoundError("Session not found", field="refresh_token")
    user_id = session.user_id
    db.delete(session)
    db.commit()
    logger.info("user %s logged out", user_id)


@service_boundary("forgot password")
def forgot_password(db: Session, email: str) -> None:
    user = _by_email(db, email)
    if not user or not user.is_active:
        # same answer whether or not the address exists
        logger.info("password reset requested for unknown address")
        return
    token = create_reset_token(user.id, user.password_hash)
    result = best_effort(
        "reset_password email",
        email_service.send,
        db,
        EmailKind.RESET_PASSWORD,
        user.email,
        {"name": user.full_name, "link": _link("reset-password", token)},
    )
    if not result.ok:
        db.rollback()


@service_boundary("reset password")
def reset_password(db: Session, token: str, new_password: str) -> None:
    claims = claims_from(token, RESET)
    user = db.get(User, claims["sub"])
    if not user or not user.is_active:
        raise UnauthorizedError("Invalid token")
    # the fingerprint no longer matches once the password has changed
    if claims.get("pwd") != password_fingerprint(user.password_hash):
        raise UnauthorizedError("Reset link has already been used")
    user.password_hash = hash_password(new_password)
    revoked = revoke_sessions(db, user.id)
    db.commit()
    logger.info("password reset for user %s, %d sessions revoked", user.id, revoked)
