from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.payment import PaymentMethod, PaymentStatus


class PaymentCreate(BaseModel):
    booking_id: str
    payment_method: str = PaymentMethod.PAYPAL.value  # validated against the processor registry
    currency: str = Field(default="IDR", min_length=3, max_length=3)
    # 1 unit of the processor currency in the payment currency, e.g. 16000 for USD->IDR
    exchange_rate: Optional[Decimal] = Field(default=None, gt=0)


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    booking_id: str
    invoice_code: str
    total_tourists: int
    amount: Decimal
    currency: str
    payment_method: PaymentMethod
    status: PaymentStatus
    processor_amount: Optional[Decimal] = None
    processor_currency: Optional[str] = None
    exchange_rate: Optional[Decimal] = None
    transaction_id: Optional[str] = None
    payer_email: Optional[str] = None
    redirect_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class WebhookAck(BaseModel):
    received: bool = True
    outcome: str
    event_type: Optional[str] = None
    payment_id: Optional[str] = None
