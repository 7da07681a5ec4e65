from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import require_roles
from app.models.user import Role, User
from app.schemas.auth import UserAdminOut, UserPatch
from app.services import user_service

router = APIRouter(tags=["users"])

owner = require_roles(Role.OWNER)


def _out(u: User) -> UserAdminOut:
    return UserAdminOut(
        id=u.id,
        email=u.email,
        full_name=u.full_name or "",
        role=u.role.value,
        is_verified=u.is_verified,
        is_active=u.is_active,
        created_at=u.created_at,
    )


@router.get("/users", response_model=List[UserAdminOut])
def list_users(
    role: Optional[Role] = None,
    active: Optional[bool] = None,
    db: Session = Depends(get_db),
    me: User = Depends(owner),
):
    return [_out(u) for u in user_service.list_users(db, role, active)]


@router.get("/users/{user_id}", response_model=UserAdminOut)
def get_user(user_id: str, db: Session = Depends(get_db), me: User = Depends(owner)):
    return _out(user_service.get_user(db, user_id))


@router.patch("/users/{user_id}", response_model=UserAdminOut)
def update_user(user_id: str, body: UserPatch, db: Session = Depends(get_db), me: User = Depends(owner)):
    return _out(user_service.update_user(db, me.id, user_id, body.model_dump(exclude_unset=True)))


@router.delete("/users/{user_id}", status_code=204)
def delete_user(user_id: str, db: Session = Depends(get_db), me: User = Depends(owner)):
    user_service.deactivate_user(db, me.id, user_id)
    return Response(status_code=204)
