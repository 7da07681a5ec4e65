from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user, staff
from app.models.user import User
from app.schemas.booking import BookingOut, BookingStatusUpdate, BookTourCreate
from app.services import booking_service

router = APIRouter(tags=["bookings"])


@router.post("/book-tours", response_model=BookingOut, status_code=201)
def add_destination(body: BookTourCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    """Add a destination visit; merges into the open booking for that country."""
    return booking_service.add_destination(db, me.id, body.destination_id, body.visit_date)


@router.get("/book-tours", response_model=List[BookingOut])
def list_bookings(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return booking_service.list_bookings(db, me.id)


@router.get("/book-tours/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return booking_service.get_booking(db, booking_id, me.id)


@router.patch("/book-tours/{booking_id}/status", response_model=BookingOut)
def set_status(booking_id: str, body: BookingStatusUpdate, db: Session = Depends(get_db), user: User = Depends(staff)):
    return booking_service.set_status(db, booking_id, body.status, actor=user.id)
