from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.models.user import Role


class RegisterRequest(BaseModel):
    email: str  # plain str to allow .local and other dev domains
    password: str = Field(min_length=8)
    full_name: str = ""


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


class VerifyRequest(BaseModel):
    token: str


class ResendVerifyRequest(BaseModel):
    email: str


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str = Field(min_length=8)


class UserOut(BaseModel):
    id: str
    email: str
    full_name: str = ""
    role: str
    is_verified: bool = False


class MessageOut(BaseModel):
    message: str
    detail: Optional[str] = None


class UserAdminOut(UserOut):
    is_active: bool = True
    created_at: Optional[datetime] = None


class UserPatch(BaseModel):
    full_name: Optional[str] = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None
    is_verified: Optional[bool] = None
    password: Optional[str] = Field(default=None, min_length=8)
