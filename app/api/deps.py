from functools import lru_cache

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.core.security import ACCESS, subject_from
from app.models.user import Role, User
from app.services.fx_service import ExchangeRateService, default_fx_service
from app.services.payment_processors import ProcessorRegistry, default_registry

bearer = HTTPBearer(auto_error=False)


def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if not creds:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user_id = subject_from(creds.credentials, ACCESS)
    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user


def require_roles(*roles: Role):
    def _guard(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return user
    return _guard


staff = require_roles(Role.ADMIN, Role.OWNER)


@lru_cache
def get_processor_registry() -> ProcessorRegistry:
    return default_registry()


def get_fx_service() -> ExchangeRateService:
    return default_fx_service()
