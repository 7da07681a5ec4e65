import hashlib
import secrets
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings
from app.core.errors import UnauthorizedError

# PBKDF2 avoids bcrypt backend/version issues and the 72-byte bcrypt input limit.
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ALGO = "HS256"

ACCESS = "access"
REFRESH = "refresh"
VERIFY = "verify"
RESET = "reset"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def password_fingerprint(password_hash: str) -> str:
    """Short digest of the stored hash; changes whenever the password does."""
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _encode(subject: str, token_type: str, lifetime: timedelta, **claims) -> str:
    exp = datetime.now(timezone.utc) + lifetime
    payload = {"sub": subject, "type": token_type, "exp": exp, **claims}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGO)


def create_access_token(subject: str, expires_minutes: int | None = None) -> str:
    if expires_minutes is None:
        expires_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    return _encode(subject, ACCESS, timedelta(minutes=expires_minutes))


def create_refresh_token(subject: str, expires_days: int | None = None) -> str:
    if expires_days is None:
        expires_days = settings.REFRESH_TOKEN_EXPIRE_DAYS
    # jti keeps two tokens issued in the same second distinct
    return _encode(subject, REFRESH, timedelta(days=expires_days), jti=secrets.token_hex(16))


def create_verify_token(subject: str) -> str:
    return _encode(subject, VERIFY, timedelta(minutes=settings.VERIFY_TOKEN_EXPIRE_MINUTES))


def create_reset_token(subject: str, password_hash: str) -> str:
    return _encode(
        subject,
        RESET,
        timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
        pwd=password_fingerprint(password_hash),
    )


def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGO])


def claims_from(token: str, expected_type: str) -> dict:
    """Decode and check the token type; raise UnauthorizedError on anything off."""
    try:
        payload = decode_token(token)
    except JWTError:
        raise UnauthorizedError("Invalid or expired token")
    if payload.get("type") != expected_type or not payload.get("sub"):
        raise UnauthorizedError("Invalid token type")
    return payload


def subject_from(token: str, expected_type: str) -> str:
    return claims_from(token, expected_type)["sub"]
