import pytest

from app.models.booking import BookingStatus
from app.models.payment import Payment, PaymentStatus
from app.models.sale import Sale
from app.services import booking_service, payment_service, tourist_service

from helpers import TODAY, day, person


@pytest.fixture()
def pending_payment(db, traveller, catalog, registry, outbox):
    b = booking_service.add_destination(db, traveller.id, catalog["uluwatu"].id, day(3), today=TODAY)
    tourist_service.add_one(db, b.id, traveller.id, person("W1"))
    return payment_service.create_payment(db, traveller.id, b.id, "paypal", "IDR", registry)


def order_approved(order_id, email="buyer@example.com"):
    return {
        "event_type": "CHECKOUT.ORDER.APPROVED",
        "resource": {"id": order_id, "payer": {"email_address": email}},
    }


def capture_completed(order_id, capture_id="CAP-1"):
    return {
        "event_type": "PAYMENT.CAPTURE.COMPLETED",
        "resource": {"id": capture_id, "supplementary_data": {"related_ids": {"order_id": order_id}}},
    }


def test_approved_event_marks_payment_paid(db, pending_payment):
    result = payment_service.handle_webhook(db, order_approved(pending_payment.transaction_id))

    assert result.outcome == "processed"
    assert result.payment_id == pending_payment.id
    p = db.get(Payment, pending_payment.id)
    assert p.status == PaymentStatus.SUCCESS
    assert p.payer_email == "buyer@example.com"
    assert booking_service.get_booking(db, p.booking_id).status == BookingStatus.ONGOING


def test_second_delivery_is_already_processed(db, pending_payment):
    payload = order_approved(pending_payment.transaction_id)
    payment_service.handle_webhook(db, payload)
    result = payment_service.handle_webhook(db, payload)

    assert result.outcome == "already_processed"
    assert db.query(Sale).count() == 1


def test_capture_completed_uses_related_order_id(db, pending_payment):
    result = payment_service.handle_webhook(db, capture_completed(pending_payment.transaction_id))

    assert result.outcome == "processed"
    assert result.order_id == pending_payment.transaction_id
    assert db.query(Sale).count() == 1


def test_webhook_after_capture_does_not_duplicate_sale(db, pending_payment, registry):
    payment_service.capture_payment(db, pending_payment.transaction_id, registry)
    result = payment_service.handle_webhook(db, capture_completed(pending_payment.transaction_id))

    assert result.outcome == "already_processed"
    assert db.query(Sale).count() == 1


def test_unhandled_event_is_ignored(db, pending_payment):
    result = payment_service.handle_webhook(db, {"event_type": "BILLING.SUBSCRIPTION.CREATED", "resource": {}})
    assert result.outcome == "ignored"
    assert db.get(Payment, pending_payment.id).status == PaymentStatus.PENDING


def test_unknown_order(db, pending_payment):
    result = payment_service.handle_webhook(db, order_approved("ORDER-404"))
    assert result.outcome == "not_found"
    assert result.order_id == "ORDER-404"


def test_cancelled_payment_is_not_revived(db, traveller, pending_payment):
    payment_service.cancel_payment(db, traveller.id, pending_payment.id)

    result = payment_service.handle_webhook(db, order_approved(pending_payment.transaction_id))

    assert result.outcome == "ignored"
    assert db.get(Payment, pending_payment.id).status == PaymentStatus.CANCELLED
    assert db.query(Sale).count() == 0


def test_failure_inside_handler_comes_back_as_error(db, pending_payment, monkeypatch):
    def boom(*a, **k):
        raise RuntimeError("db went away")

    monkeypatch.setattr(payment_service.sales_service, "record_from_payment", boom)

    result = payment_service.handle_webhook(db, order_approved(pending_payment.transaction_id))

    assert result.outcome == "error"
    db.expire_all()
    assert db.get(Payment, pending_payment.id).status == PaymentStatus.PENDING
