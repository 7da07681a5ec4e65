from decimal import Decimal

import pytest

from app.core.config import settings
from app.models.email_log import EmailLog
from app.services import email_service
from app.services.email_service import EmailKind
from app.tasks import worker_jobs


def test_send_records_log_and_marks_sent(db, outbox):
    log = email_service.send(db, EmailKind.VERIFY_ACCOUNT, "ayu@example.com", {"name": "Ayu", "link": "https://app.test/verify?token=abc"})

    assert log.status == "sent"
    assert log.attempts == 1
    assert log.sent_at is not None
    assert outbox[0]["to"] == "ayu@example.com"
    assert outbox[0]["subject"] == "Verify your account"
    assert "https://app.test/verify?token=abc" in outbox[0]["html"]


def test_failed_send_is_retried_by_the_worker(db, session_factory, monkeypatch):
    def down(*a, **k):
        raise OSError("connection refused")

    monkeypatch.setattr(email_service, "send_email", down)
    log = email_service.send(db, EmailKind.RESET_PASSWORD, "ayu@example.com", {"link": "https://app.test/reset"})
    assert log.status == "failed"
    assert log.last_error == "connection refused"

    delivered = []
    monkeypatch.setattr(email_service, "send_email", lambda to, subject, html, cc=None: delivered.append(to))
    result = worker_jobs.process_email_queue(limit=10, session_factory=session_factory)

    assert result == {"processed": 1, "sent": 1, "failed": 0}
    assert delivered == ["ayu@example.com"]
    db.expire_all()
    row = db.get(EmailLog, log.id)
    assert row.status == "sent"
    assert row.attempts == 2


def test_sent_rows_are_not_resent(db, outbox):
    email_service.send(db, EmailKind.VERIFY_ACCOUNT, "ayu@example.com", {"link": "x"})
    assert email_service.process_pending_emails(db) == {"processed": 0, "sent": 0, "failed": 0}
    assert len(outbox) == 1


def test_order_email_without_owner_falls_back_to_first_admin(db, outbox, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAILS", "ops@tours.local,finance@tours.local")
    fields = {"order_code": "INV-1234", "name": "Ayu", "amount": Decimal("1600000"), "currency": "IDR", "payment_method": "paypal"}

    logs = email_service.notify_order(db, EmailKind.PAYMENT_SUCCESS, "ayu@example.com", fields)

    assert len(logs) == 2
    assert outbox[1]["to"] == "ops@tours.local"
    assert outbox[1]["cc"] == ["finance@tours.local"]
    assert outbox[1]["subject"] == "Payment status - INV-1234"
    assert all(log.related_ref == "INV-1234" for log in logs)


def test_notify_order_rejects_account_emails(db, outbox):
    with pytest.raises(ValueError):
        email_service.notify_order(db, EmailKind.VERIFY_ACCOUNT, "ayu@example.com", {})


def test_render_escapes_fields():
    _, body = email_service.render(EmailKind.BOOKING_CONFIRMATION, {"order_code": "INV-1", "name": "<script>", "amount": 1})
    assert "<script>" not in body
    assert "&lt;script&gt;" in body


def test_render_shows_converted_amount():
    fields = {
        "order_code": "INV-1",
        "amount": Decimal("1600000"),
        "currency": "IDR",
        "processor_amount": Decimal("98.46"),
        "processor_currency": "USD",
        "exchange_rate": Decimal("16250"),
        "payment_method": "paypal",
    }
    _, body = email_service.render(EmailKind.BOOKING_CONFIRMATION, fields)
    assert "Rp 1.600.000" in body
    assert "$ 98.46" in body
    assert "1 USD = Rp 16.250" in body


@pytest.mark.parametrize("amount,currency,expected", [
    (Decimal("1600000"), "IDR", "Rp 1.600.000"),
    (Decimal("98.456"), "USD", "$ 98.46"),
    (Decimal("1234.5"), "eur", "EUR 1,234.50"),
    (None, "IDR", "Rp 0"),
])
def test_format_money(amount, currency, expected):
    assert email_service.format_money(amount, currency) == expected
