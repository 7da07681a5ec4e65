from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user
from app.models.user import User
from app.schemas.profile import ProfileIn, ProfileOut, ProfilePatch
from app.services import profile_service

router = APIRouter(tags=["profiles"])


@router.post("/profiles", response_model=ProfileOut, status_code=201)
def create_profile(body: ProfileIn, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return profile_service.create(db, me.id, body.model_dump())


@router.get("/profiles/me", response_model=ProfileOut)
def my_profile(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return profile_service.get_mine(db, me.id)


@router.patch("/profiles/me", response_model=ProfileOut)
def update_profile(body: ProfilePatch, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    # fields left out keep their value; an explicit null is rejected by the service
    return profile_service.update(db, me.id, body.model_dump(exclude_unset=True))


@router.delete("/profiles/me", status_code=204)
def delete_profile(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    profile_service.delete(db, me.id)
    return Response(status_code=204)
