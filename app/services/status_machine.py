"""Status transition tables for bookings and payments.

Every status write goes through :meth:`StateMachine.apply`, so an illegal jump
(e.g. a completed booking back to draft) fails loudly instead of being stored.
"""
import enum
import logging

from app.core.errors import InvalidTransitionError
from app.models.booking import BookingStatus
from app.models.payment import PaymentStatus

logger = logging.getLogger(__name__)


class StateMachine:
    def __init__(self, name: str, transitions: dict[enum.Enum, set[enum.Enum]]):
        self.name = name
        self.transitions = transitions

    def can(self, current: enum.Enum, target: enum.Enum) -> bool:
        return current == target or target in self.transitions.get(current, set())

    def check(self, current: enum.Enum, target: enum.Enum) -> None:
        if not self.can(current, target):
            raise InvalidTransitionError(
                f"Invalid {self.name} status transition: {current.value} -> {target.value}",
                field="status",
            )

    def apply(self, entity, target: enum.Enum) -> bool:
        """Move ``entity.status`` to ``target``. Returns False when it was already there."""
        current = entity.status
        self.check(current, target)
        if current == target:
            return False
        entity.status = target
        logger.debug("%s %s: %s -> %s", self.name, entity.id, current.value, target.value)
        return True


BOOKING_TRANSITIONS = {
    BookingStatus.DRAFT: {BookingStatus.PENDING, BookingStatus.CANCELLED},
    BookingStatus.PENDING: {
        BookingStatus.DRAFT,
        BookingStatus.CONFIRMED,
        BookingStatus.ONGOING,
        BookingStatus.CANCELLED,
    },
    BookingStatus.CONFIRMED: {BookingStatus.ONGOING, BookingStatus.CANCELLED},
    BookingStatus.ONGOING: {BookingStatus.COMPLETED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}

PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.SUCCESS, PaymentStatus.FAILED, PaymentStatus.CANCELLED},
    PaymentStatus.FAILED: {PaymentStatus.CANCELLED},
    PaymentStatus.SUCCESS: set(),
    PaymentStatus.CANCELLED: set(),
}

booking_machine = StateMachine("booking", BOOKING_TRANSITIONS)
payment_machine = StateMachine("payment", PAYMENT_TRANSITIONS)
