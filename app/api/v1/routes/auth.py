from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageOut,
    RefreshRequest,
    RegisterRequest,
    ResendVerifyRequest,
    ResetPasswordRequest,
    TokenPair,
    UserOut,
    VerifyRequest,
)
from app.models.user import User
from app.services import auth_service
from app.api.deps import get_current_user

router = APIRouter(tags=["auth"])


def _user_out(u: User) -> UserOut:
    return UserOut(id=u.id, email=u.email, full_name=u.full_name or "", role=u.role.value, is_verified=u.is_verified)


def _client_ip(req: Request) -> str:
    return req.client.host if req.client else ""


@router.post("/auth/register", response_model=UserOut, status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    return _user_out(auth_service.register(db, body.email, body.password, body.full_name))


@router.post("/auth/verify", response_model=UserOut)
def verify(body: VerifyRequest, db: Session = Depends(get_db)):
    return _user_out(auth_service.verify_account(db, body.token))


@router.post("/auth/resend-verify", response_model=MessageOut)
def resend_verify(body: ResendVerifyRequest, db: Session = Depends(get_db)):
    auth_service.resend_verification(db, body.email)
    return MessageOut(message="If the account exists and is not verified, a new link has been sent")


@router.post("/auth/login", response_model=TokenPair)
def login(body: LoginRequest, req: Request, db: Session = Depends(get_db)):
    return TokenPair(**auth_service.login(db, body.email, body.password, ip=_client_ip(req)))


@router.post("/auth/refresh", response_model=TokenPair)
def refresh(body: RefreshRequest, req: Request, db: Session = Depends(get_db)):
    return TokenPair(**auth_service.refresh(db, body.refresh_token, ip=_client_ip(req)))


@router.post("/auth/logout", response_model=MessageOut)
def logout(body: RefreshRequest, db: Session = Depends(get_db)):
    auth_service.logout(db, body.refresh_token)
    return MessageOut(message="Logged out")


@router.get("/auth/me", response_model=UserOut)
def me(me: User = Depends(get_current_user)):
    """Return current user info including role."""
    return _user_out(me)


@router.post("/auth/forgot-password", response_model=MessageOut)
def forgot_password(body: ForgotPasswordRequest, db: Session = Depends(get_db)):
    auth_service.forgot_password(db, body.email)
    return MessageOut(message="If the address is registered, a reset link has been sent")


@router.post("/auth/reset-password", response_model=MessageOut)
def reset_password(body: ResetPasswordRequest, db: Session = Depends(get_db)):
    auth_service.reset_password(db, body.token, body.new_password)
    return MessageOut(message="Password updated")
