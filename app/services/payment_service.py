"""Payment orchestration: create, capture, webhook, cancel.

State changes are committed before any email goes out; notifications run
through :func:`best_effort` and never undo a payment.
"""
import random
import string
import uuid
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    AlreadyPaidError,
    ConflictError,
    ExternalServiceError,
    InternalError,
    NoTouristsError,
    NotFoundError,
    PaymentAttemptsExceededError,
    ValidationError,
    service_boundary,
)
from app.models.booking import Booking, BookingStatus, OPEN_STATUSES
from app.models.destination import Destination
from app.models.payment import Payment, PaymentMethod, PaymentStatus
from app.models.user import User
from app.services import email_service, sales_service
from app.services.audit_service import log_audit
from app.services.best_effort import SideEffectResult, best_effort
from app.services.booking_service import get_booking
from app.services.email_service import EmailKind
from app.services.fx_service import ExchangeRateService, default_fx_service
from app.services.payment_processors import ProcessorAttemptsExceeded, ProcessorError, ProcessorRegistry
from app.services.status_machine import booking_machine, payment_machine
from app.services.tourist_service import count_for_booking

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
WEBHOOK_ACTOR = "paypal-webhook"

CAPTURE_COMPLETED = "PAYMENT.CAPTURE.COMPLETED"
ORDER_APPROVED = "CHECKOUT.ORDER.APPROVED"
ORDER_COMPLETED = "CHECKOUT.ORDER.COMPLETED"
HANDLED_EVENTS = (CAPTURE_COMPLETED, ORDER_APPROVED, ORDER_COMPLETED)


def make_invoice_code() -> str:
    return "INV-" + "".join(random.choices(string.digits, k=4))


def _new_invoice_code(db: Session) -> str:
    for _ in range(settings.INVOICE_CODE_MAX_ATTEMPTS):
        code = make_invoice_code()
        exists = db.query(Payment.id).filter(Payment.invoice_code == code).first()
        if not exists:
            return code
    raise InternalError("Could not allocate an invoice code", field="invoice_code")


def _order_fields(db: Session, payment: Payment, booking: Booking) -> dict:
    user = db.get(User, payment.user_id)
    dest_ids = [i.destination_id for i in booking.items if i.deleted_at is None]
    names = dict(db.query(Destination.id, Destination.name).filter(Destination.id.in_(dest_ids)).all()) if dest_ids else {}
    return {
        "order_code": payment.invoice_code,
        "name": user.full_name if user else "",
        "email": user.email if user else "",
        "amount": payment.amount,
        "currency": payment.currency,
        "processor_amount": payment.processor_amount,
        "processor_currency": payment.processor_currency,
        "exchange_rate": payment.exchange_rate,
        "payment_method": payment.payment_method.value,
        "payer_email": payment.payer_email,
        "link": payment.redirect_url,
        "items": [
            {"name": names.get(i.destination_id, i.destination_id), "visit_date": i.visit_date.isoformat()}
            for i in booking.items
            if i.deleted_at is None
        ],
    }


def _send_order_email(db: Session, kind: EmailKind, payment: Payment) -> int:
    booking = get_booking(db, payment.booking_id)
    fields = _order_fields(db, payment, booking)
    if not fields["email"]:
        raise NotFoundError("Traveller email not found", field="user_id")
    return len(email_service.notify_order(db, kind, fields["email"], fields))


def _notify(db: Session, kind: EmailKind, payment: Payment) -> SideEffectResult:
    result = best_effort(f"{kind.value} email", _send_order_email, db, kind, payment)
    if not result.ok:
        db.rollback()
    return result


def _processor_amount(amount: Decimal, currency: str, processor_currency: str,
                      exchange_rate: Decimal | None, fx: ExchangeRateService | None) -> tuple[Decimal | None, Decimal | None]:
    """Amount to charge in the processor currency and the rate used (1 processor unit = rate payment units)."""
    if currency == processor_currency:
        return None, None
    if exchange_rate is not None:
        rate = Decimal(str(exchange_rate))
        if rate <= 0:
            raise ValidationError("Exchange rate must be positive", field="exchange_rate")
    else:
        fx = fx or default_fx_service()
        rate = fx.get_rate(processor_currency, currency)
    return (amount / rate).quantize(CENT, rounding=ROUND_HALF_UP), rate


@service_boundary("create payment")
def create_payment(
    db: Session,
    user_id: str,
    booking_id: str,
    method: PaymentMethod | str,
    currency: str,
    registry: ProcessorRegistry,
    exchange_rate: Decimal | None = None,
    fx: ExchangeRateService | None = None,
) -> Payment:
    processor = registry.get(method)

    booking = get_booking(db, booking_id, user_id)
    if booking.status not in OPEN_STATUSES:
        raise AlreadyPaidError("Book tour is already paid", field="booking_id")
    tourists = count_for_booking(db, booking.id)
    if tourists < 1:
        raise NoTouristsError("Add at least one tourist before paying", field="booking_id")

    currency = currency.strip().upper()
    amount = (Decimal(booking.subtotal) * tourists).quantize(CENT)
    processor_amount, rate = _processor_amount(amount, currency, processor.currency, exchange_rate, fx)

    payment = Payment(
        id=str(uuid.uuid4()),
        user_id=user_id,
        booking_id=booking.id,
        invoice_code=_new_invoice_code(db),
        total_tourists=tourists,
        amount=amount,
        currency=currency,
        payment_method=PaymentMethod(method),
        status=PaymentStatus.PENDING,
        processor_amount=processor_amount,
        processor_currency=processor.currency if processor_amount is not None else None,
        exchange_rate=rate,
    )
    db.add(payment)
    booking_machine.apply(booking, BookingStatus.PENDING)
    log_audit(db, user_id, "payment.created", "payment", payment.id, {
        "booking_id": booking.id,
        "amount": amount,
        "currency": currency,
        "tourists": tourists,
    })
    db.commit()
    logger.info("payment %s (%s) created for booking %s: %s %s", payment.id, payment.invoice_code, booking.id, amount, currency)

    charge_amount = processor_amount if processor_amount is not None else amount
    charge_currency = processor.currency if processor_amount is not None else currency
    try:
        order = processor.create_order(payment.invoice_code, charge_amount, charge_currency)
    except ProcessorError as e:
        payment_machine.apply(payment, PaymentStatus.FAILED)
        log_audit(db, user_id, "payment.order_failed", "payment", payment.id, {"error": str(e)})
        db.commit()
        logger.error("payment %s: processor order creation failed: %s", payment.id, e)
        raise ExternalServiceError(f"Payment processor rejected the order: {e}", field="payment_method")

    payment.transaction_id = order.order_id
    payment.redirect_url = order.approval_url
    db.commit()
    db.refresh(payment)

    _notify(db, EmailKind.BOOKING_CONFIRMATION, payment)
    return payment


def _find_by_order(db: Session, order_id: str) -> Payment | None:
    return db.query(Payment).filter(Payment.transaction_id == order_id).first()


def _apply_success(db: Session, payment: Payment, payer_email: str | None, actor: str) -> None:
    """Mark paid, advance the booking and record the sale. Caller commits."""
    payment_machine.apply(payment, PaymentStatus.SUCCESS)
    if payer_email:
        payment.payer_email = payer_email
    payment.redirect_url = None

    booking = db.get(Booking, payment.booking_id)
    if booking_machine.can(booking.status, BookingStatus.ONGOING):
        booking_machine.apply(booking, BookingStatus.ONGOING)
    else:
        logger.warning("payment %s succeeded but booking %s is %s, leaving it", payment.id, booking.id, booking.status.value)

    sale = sales_service.record_from_payment(db, payment.id, booking.id, payment.amount, payment.currency)
    log_audit(db, actor, "payment.success", "payment", payment.id, {"sale_id": sale.id, "payer_email": payer_email})


@service_boundary("capture payment")
def capture_payment(db: Session, order_id: str, registry: ProcessorRegistry, user_id: str | None = None) -> Payment:
    payment = _find_by_order(db, order_id)
    if not payment or (user_id is not None and payment.user_id != user_id):
        raise NotFoundError("Payment not found", field="order_id")
    if payment.status == PaymentStatus.SUCCESS:
        logger.info("payment %s already captured", payment.id)
        return payment
    payment_machine.check(payment.status, PaymentStatus.SUCCESS)
    booking = db.get(Booking, payment.booking_id)
    booking_machine.check(booking.status, BookingStatus.ONGOING)

    processor = registry.get(payment.payment_method)
    try:
        capture = processor.capture(order_id)
    except ProcessorAttemptsExceeded as e:
        payment_machine.apply(payment, PaymentStatus.FAILED)
        log_audit(db, user_id or "system", "payment.attempts_exceeded", "payment", payment.id, {"error": str(e)})
        db.commit()
        raise PaymentAttemptsExceededError(str(e), field="order_id")
    except ProcessorError as e:
        logger.error("payment %s: capture failed: %s", payment.id, e)
        raise ExternalServiceError(f"Failed to capture payment: {e}", field="order_id")
    if not capture.completed:
        raise ExternalServiceError(f"Payment not completed, status: {capture.status}", field="order_id")

    _apply_success(db, payment, capture.payer_email, user_id or "system")
    db.commit()
    db.refresh(payment)
    logger.info("payment %s captured (order %s)", payment.id, order_id)

    _notify(db, EmailKind.PAYMENT_SUCCESS, payment)
    return payment


@dataclass(frozen=True)
class WebhookResult:
    outcome: str  # processed, already_processed, ignored, not_found, error
    event_type: str | None = None
    order_id: str | None = None
    payment_id: str | None = None


def _webhook_order_id(event_type: str, resource: dict) -> str | None:
    if event_type == CAPTURE_COMPLETED:
        related = (resource.get("supplementary_data") or {}).get("related_ids") or {}
        return related.get("order_id") or resource.get("id")
    return resource.get("id")


def _webhook_payer_email(resource: dict) -> str | None:
    payer = resource.get("payer") or {}
    return payer.get("email_address") or (payer.get("payer_info") or {}).get("email")


def _process_webhook(db: Session, payload: dict) -> WebhookResult:
    event_type = payload.get("event_type")
    if event_type not in HANDLED_EVENTS:
        logger.info("paypal webhook %s ignored", event_type)
        return WebhookResult("ignored", event_type)

    resource = payload.get("resource") or {}
    order_id = _webhook_order_id(event_type, resource)
    payment = _find_by_order(db, order_id) if order_id else None
    if not payment:
        logger.warning("paypal webhook %s: no payment for order %s", event_type, order_id)
        return WebhookResult("not_found", event_type, order_id)
    if payment.status == PaymentStatus.SUCCESS:
        return WebhookResult("already_processed", event_type, order_id, payment.id)
    if not payment_machine.can(payment.status, PaymentStatus.SUCCESS):
        logger.warning("paypal webhook %s: payment %s is %s, not marking paid", event_type, payment.id, payment.status.value)
        return WebhookResult("ignored", event_type, order_id, payment.id)

    _apply_success(db, payment, _webhook_payer_email(resource), WEBHOOK_ACTOR)
    db.commit()
    logger.info("paypal webhook %s: payment %s marked success", event_type, payment.id)
    _notify(db, EmailKind.PAYMENT_SUCCESS, payment)
    return WebhookResult("processed", event_type, order_id, payment.id)


def handle_webhook(db: Session, payload: dict) -> WebhookResult:
    """Apply a PayPal event. Never raises; failures come back as ``error``."""
    result = best_effort("paypal webhook", _process_webhook, db, payload)
    if result.ok:
        return result.value
    db.rollback()
    return WebhookResult("error", payload.get("event_type") if isinstance(payload, dict) else None)


def verify_webhook(registry: ProcessorRegistry, headers: dict, payload: dict) -> bool:
    processor = registry.get(PaymentMethod.PAYPAL)
    verify = getattr(processor, "verify_webhook", None)
    if verify is None:
        return False
    return verify(headers, payload)


def _owned_payment(db: Session, payment_id: str, user_id: str) -> Payment:
    p = db.get(Payment, payment_id)
    if not p or p.user_id != user_id:
        raise NotFoundError("Payment not found", field="payment_id")
    return p


@service_boundary("cancel payment")
def cancel_payment(db: Session, user_id: str, payment_id: str) -> Payment:
    payment = _owned_payment(db, payment_id, user_id)
    if payment.status == PaymentStatus.SUCCESS:
        raise ConflictError("Successful payments cannot be cancelled, refunds are not supported", field="status")
    if payment.status == PaymentStatus.CANCELLED:
        raise ConflictError("Payment is already cancelled", field="status")

    payment_machine.apply(payment, PaymentStatus.CANCELLED)
    booking = db.get(Booking, payment.booking_id)
    others_pending = (
        db.query(Payment.id)
        .filter(Payment.booking_id == booking.id, Payment.id != payment.id, Payment.status == PaymentStatus.PENDING)
        .first()
    )
    if booking.status == BookingStatus.PENDING and not others_pending:
        booking_machine.apply(booking, BookingStatus.DRAFT)
    log_audit(db, user_id, "payment.cancelled", "payment", payment.id, {"booking_status": booking.status.value})
    db.commit()
    db.refresh(payment)
    logger.info("payment %s cancelled", payment.id)
    return payment


@service_boundary("list payments")
def list_payments(db: Session, user_id: str) -> list[Payment]:
    return db.query(Payment).filter(Payment.user_id == user_id).order_by(Payment.created_at.desc()).all()


@service_boundary("get payment")
def get_payment(db: Session, payment_id: str, user_id: str) -> Payment:
    return _owned_payment(db, payment_id, user_id)
