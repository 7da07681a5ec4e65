import enum
import html
import logging
import smtplib
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from email.message import EmailMessage

import requests
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.email_log import EmailLog

logger = logging.getLogger(__name__)

FOOTER = '<hr/><p style="font-size: 12px; color: #777;">This email was sent automatically, please do not reply.</p>'
WRAP = '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: auto; border: 1px solid #ddd; padding: 20px; border-radius: 8px;">{body}' + FOOTER + "</div>"


class EmailKind(str, enum.Enum):
    VERIFY_ACCOUNT = "verify_account"
    RESET_PASSWORD = "reset_password"
    BOOKING_CONFIRMATION = "booking_confirmation"
    PAYMENT_SUCCESS = "payment_success"


ORDER_KINDS = (EmailKind.BOOKING_CONFIRMATION, EmailKind.PAYMENT_SUCCESS)


def _e(value) -> str:
    return html.escape("" if value is None else str(value))


def format_money(amount, currency: str) -> str:
    currency = (currency or "").upper()
    value = Decimal(str(amount or 0))
    if currency == "IDR":
        return "Rp " + f"{value:,.0f}".replace(",", ".")
    if currency == "USD":
        return f"$ {value:,.2f}"
    return f"{currency} {value:,.2f}"


def _amount_lines(fields: dict) -> list[str]:
    currency = fields.get("currency") or "IDR"
    lines = [f"Total: {format_money(fields.get('amount'), currency)}"]
    p_amount, p_currency = fields.get("processor_amount"), fields.get("processor_currency")
    if p_amount is not None and p_currency and p_currency != currency:
        lines.append(f"Charged via {_e(fields.get('payment_method') or 'processor')}: {format_money(p_amount, p_currency)}")
        if fields.get("exchange_rate"):
            lines.append(f"Exchange rate: 1 {_e(p_currency)} = {format_money(fields['exchange_rate'], currency)}")
    return lines


def _items_html(fields: dict) -> str:
    items = fields.get("items") or []
    if not items:
        return ""
    rows = "".join(f"<li>{_e(i.get('name'))} ({_e(i.get('visit_date'))})</li>" for i in items)
    return f'<h3>Order details</h3><ul style="background: #f9f9f9; padding: 10px 25px; border-radius: 5px;">{rows}</ul>'


def _button(href: str | None, label: str, colour: str = "rgb(246, 127, 0)") -> str:
    if not href:
        return ""
    return (
        f'<a href="{_e(href)}" style="display: inline-block; background: {colour}; color: white; '
        f'padding: 10px 20px; text-decoration: none; border-radius: 5px; margin-top: 10px;">{label}</a>'
    )


def render(kind: EmailKind, fields: dict, audience: str = "customer") -> tuple[str, str]:
    """Subject and HTML body for ``kind``. ``audience`` is ``customer`` or ``admin``."""
    kind = EmailKind(kind)
    code = _e(fields.get("order_code"))
    who = _e(fields.get("name") or fields.get("email"))

    if kind == EmailKind.VERIFY_ACCOUNT:
        subject = "Verify your account"
        body = (
            f"<p>Hi <strong>{who}</strong>, please confirm your email address.</p>"
            f"{_button(fields.get('link'), 'Verify Account', 'rgb(0, 0, 0)')}"
            "<p>This link is only valid for a limited time.</p>"
        )
    elif kind == EmailKind.RESET_PASSWORD:
        subject = "Reset your password"
        body = (
            "<p>We received a request to reset your password.</p>"
            f"{_button(fields.get('link'), 'Reset Password')}"
            "<p>This link expires in a few minutes. Ignore this email if you did not ask for it.</p>"
        )
    else:
        amounts = "".join(f"<li>{line}</li>" for line in _amount_lines(fields))
        method = _e(fields.get("payment_method"))
        if kind == EmailKind.BOOKING_CONFIRMATION and audience == "customer":
            subject = f"Your booking confirmation - {fields.get('order_code')}"
            body = (
                '<h2 style="color: #333;">Booking confirmation</h2>'
                f"<p>Hi <strong>{who}</strong>,</p>"
                f"<p>Thank you for booking with us. We have received your order <strong>{code}</strong>.</p>"
                f"{_items_html(fields)}<ul>{amounts}<li>Payment method: {method}</li></ul>"
                "<p>Please complete your payment with the method you chose.</p>"
                f"{_button(fields.get('link'), 'Continue to payment')}"
            )
        elif kind == EmailKind.BOOKING_CONFIRMATION:
            subject = f"New order received - {fields.get('order_code')}"
            body = (
                '<h2 style="color: #d9534f;">New order received</h2>'
                f"<ul><li>Order: {code}</li><li>Customer: {_e(fields.get('email'))}</li>{amounts}"
                f"<li>Payment method: {method}</li></ul>{_items_html(fields)}"
                "<p>The order is waiting for the customer's payment.</p>"
            )
        elif audience == "customer":
            subject = f"Payment successful - {fields.get('order_code')}"
            body = (
                '<h2 style="color: #28a745;">Payment successful</h2>'
                f"<p>Hi <strong>{who}</strong>,</p>"
                f"<p>Your payment for order <strong>{code}</strong> has been processed.</p>"
                f"{_items_html(fields)}<ul>{amounts}</ul>"
                "<p>We will process your order shortly. Thank you!</p>"
            )
        else:
            subject = f"Payment status - {fields.get('order_code')}"
            body = (
                '<h2 style="color: #28a745;">Payment received</h2>'
                f"<ul><li>Order: {code}</li><li>Customer: {_e(fields.get('email'))}</li>"
                f"<li>Payer: {_e(fields.get('payer_email'))}</li>{amounts}<li>Payment method: {method}</li></ul>"
                f"{_items_html(fields)}"
            )
    return subject, WRAP.format(body=body)


def queue_email(db: Session, kind: str, to_email: str, subject: str, html_body: str, cc: list[str] | None = None, related_ref: str = "") -> EmailLog:
    """Record the email and attempt immediate send. Body is stored so the worker can retry on failure."""
    log = EmailLog(
        id=str(uuid.uuid4()),
        kind=kind,
        to_email=to_email,
        cc=",".join(cc or []),
        subject=subject,
        html=html_body,
        status="queued",
        attempts=0,
        related_ref=related_ref,
    )
    db.add(log)
    db.commit()
    _attempt(log)
    db.commit()
    return log


def _attempt(log: EmailLog) -> bool:
    log.attempts = (log.attempts or 0) + 1
    try:
        send_email(log.to_email, log.subject, log.html or "", cc=[c for c in log.cc.split(",") if c])
    except (smtplib.SMTPException, OSError, requests.RequestException, RuntimeError) as e:
        # worker retries via process_pending_emails
        log.status = "failed"
        log.last_error = str(e)[:500]
        logger.warning("email %s to %s failed (attempt %d): %s", log.id, log.to_email, log.attempts, e)
        return False
    log.status = "sent"
    log.last_error = ""
    log.sent_at = datetime.now(timezone.utc)
    logger.debug("email %s sent to %s", log.id, log.to_email)
    return True


def send(db: Session, kind: EmailKind, recipient: str, fields: dict) -> EmailLog:
    kind = EmailKind(kind)
    subject, body = render(kind, {"email": recipient, **fields})
    return queue_email(db, kind.value, recipient, subject, body, related_ref=str(fields.get("order_code") or ""))


def notify_order(db: Session, kind: EmailKind, recipient: str, fields: dict) -> list[EmailLog]:
    """Customer copy plus one admin copy to the owner, admins on cc."""
    kind = EmailKind(kind)
    if kind not in ORDER_KINDS:
        raise ValueError(f"{kind.value} is not an order email")
    logs = [send(db, kind, recipient, fields)]

    admins = settings.admin_emails
    owner = settings.OWNER_EMAIL or (admins[0] if admins else "")
    if not owner:
        logger.debug("no owner/admin address configured, skipping admin copy of %s", kind.value)
        return logs
    cc = [a for a in admins if a != owner]
    subject, body = render(kind, {"email": recipient, **fields}, audience="admin")
    logs.append(queue_email(db, kind.value, owner, subject, body, cc=cc, related_ref=str(fields.get("order_code") or "")))
    return logs


def send_email(to_email: str, subject: str, html_body: str, cc: list[str] | None = None):
    """Send email via SendGrid if configured, otherwise SMTP."""
    cc = cc or []
    if settings.SENDGRID_API_KEY:
        _send_via_sendgrid(to_email, subject, html_body, cc)
        return

    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    if cc:
        msg["Cc"] = ", ".join(cc)
    msg["Subject"] = subject
    msg.set_content("This message requires an HTML capable mail client.")
    msg.add_alternative(html_body, subtype="html")

    if settings.SMTP_PORT == 465:
        smtp = smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT)
    else:
        smtp = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT)
    with smtp:
        if settings.SMTP_PORT != 465 and smtp.has_extn("starttls"):
            smtp.starttls()
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


def _send_via_sendgrid(to_email: str, subject: str, html_body: str, cc: list[str]):
    from_email = settings.SENDGRID_FROM_EMAIL or settings.SMTP_FROM
    personalization = {"to": [{"email": to_email}]}
    if cc:
        personalization["cc"] = [{"email": c} for c in cc]
    payload = {
        "personalizations": [personalization],
        "from": {"email": from_email},
        "subject": subject,
        "content": [{"type": "text/html", "value": html_body}],
    }
    r = requests.post(
        "https://api.sendgrid.com/v3/mail/send",
        json=payload,
        headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"},
        timeout=20,
    )
    if r.status_code >= 400:
        raise RuntimeError(f"SendGrid error {r.status_code}: {r.text}")


def process_pending_emails(db: Session, limit: int = 50) -> dict:
    """Process up to `limit` queued or failed emails; retry send and update status. Returns counts."""
    pending = (
        db.query(EmailLog)
        .filter(EmailLog.status.in_(["queued", "failed"]), EmailLog.html.isnot(None), EmailLog.html != "")
        .order_by(EmailLog.created_at.asc())
        .limit(limit)
        .all()
    )
    sent = sum(1 for log in pending if _attempt(log))
    if pending:
        db.commit()
    return {"processed": len(pending), "sent": sent, "failed": len(pending) - sent}
