import json
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user, get_fx_service, get_processor_registry
from app.core.config import settings
from app.models.user import User
from app.schemas.payments import PaymentCreate, PaymentOut, WebhookAck
from app.services import payment_service
from app.services.fx_service import ExchangeRateService
from app.services.payment_processors import ProcessorRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])


@router.post("/payments/create", response_model=PaymentOut, status_code=201)
def create_payment(
    body: PaymentCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    registry: ProcessorRegistry = Depends(get_processor_registry),
    fx: ExchangeRateService = Depends(get_fx_service),
):
    """Create a payment attempt and the processor order; ``redirect_url`` is the approval link."""
    return payment_service.create_payment(
        db,
        me.id,
        body.booking_id,
        body.payment_method,
        body.currency,
        registry,
        exchange_rate=body.exchange_rate,
        fx=fx,
    )


@router.post("/payments/capture/{order_id}", response_model=PaymentOut)
def capture_payment(
    order_id: str,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    registry: ProcessorRegistry = Depends(get_processor_registry),
):
    return payment_service.capture_payment(db, order_id, registry, user_id=me.id)


@router.post("/payments/webhook", response_model=WebhookAck)
async def paypal_webhook(
    req: Request,
    db: Session = Depends(get_db),
    registry: ProcessorRegistry = Depends(get_processor_registry),
):
    body = await req.body()
    try:
        payload = json.loads(body.decode("utf-8") or "{}")
    except (UnicodeDecodeError, json.JSONDecodeError):
        logger.warning("paypal webhook with unreadable body (%d bytes)", len(body))
        return WebhookAck(outcome="error")
    if not isinstance(payload, dict):
        return WebhookAck(outcome="error")

    # verification and handling are blocking calls, run them off the event loop
    if settings.PAYPAL_WEBHOOK_VERIFY:
        verified = await run_in_threadpool(payment_service.verify_webhook, registry, dict(req.headers), payload)
        if not verified:
            raise HTTPException(status_code=401, detail="Invalid webhook signature")

    result = await run_in_threadpool(payment_service.handle_webhook, db, payload)
    return WebhookAck(outcome=result.outcome, event_type=result.event_type, payment_id=result.payment_id)


@router.post("/payments/{payment_id}/cancel", response_model=PaymentOut)
def cancel_payment(payment_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return payment_service.cancel_payment(db, me.id, payment_id)


@router.get("/payments", response_model=List[PaymentOut])
def list_payments(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return payment_service.list_payments(db, me.id)


@router.get("/payments/{payment_id}", response_model=PaymentOut)
def get_payment(payment_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return payment_service.get_payment(db, payment_id, me.id)
