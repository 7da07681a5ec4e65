from types import SimpleNamespace

import pytest

from app.core.errors import InvalidTransitionError
from app.models.booking import BookingStatus
from app.models.payment import PaymentStatus
from app.services.status_machine import booking_machine, payment_machine


@pytest.mark.parametrize("current,target", [
    (BookingStatus.DRAFT, BookingStatus.PENDING),
    (BookingStatus.PENDING, BookingStatus.DRAFT),
    (BookingStatus.PENDING, BookingStatus.ONGOING),
    (BookingStatus.CONFIRMED, BookingStatus.ONGOING),
    (BookingStatus.ONGOING, BookingStatus.COMPLETED),
])
def test_booking_allowed(current, target):
    assert booking_machine.can(current, target)


@pytest.mark.parametrize("current,target", [
    (BookingStatus.DRAFT, BookingStatus.ONGOING),
    (BookingStatus.COMPLETED, BookingStatus.DRAFT),
    (BookingStatus.CANCELLED, BookingStatus.PENDING),
    (BookingStatus.ONGOING, BookingStatus.CANCELLED),
])
def test_booking_rejected(current, target):
    with pytest.raises(InvalidTransitionError):
        booking_machine.check(current, target)


def test_apply_same_status_is_noop():
    b = SimpleNamespace(id="b1", status=BookingStatus.COMPLETED)
    assert booking_machine.apply(b, BookingStatus.COMPLETED) is False
    assert b.status == BookingStatus.COMPLETED


def test_apply_moves_status():
    p = SimpleNamespace(id="p1", status=PaymentStatus.PENDING)
    assert payment_machine.apply(p, PaymentStatus.FAILED) is True
    assert p.status == PaymentStatus.FAILED
    assert payment_machine.apply(p, PaymentStatus.CANCELLED) is True


def test_success_is_terminal_for_payments():
    p = SimpleNamespace(id="p1", status=PaymentStatus.SUCCESS)
    with pytest.raises(InvalidTransitionError):
        payment_machine.apply(p, PaymentStatus.CANCELLED)
    assert p.status == PaymentStatus.SUCCESS
