"""Payment processors keyed by payment method.

The payment service only talks to :class:`PaymentProcessor`; PayPal is the one
real implementation, tests register a fake.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol

import requests

from app.core.config import settings
from app.core.errors import UnsupportedMethodError
from app.models.payment import PaymentMethod
from app.services.paypal_client import PaypalClient, PaypalConfig, PaypalError, PaypalTooManyAttemptsError

logger = logging.getLogger(__name__)

COMPLETED = "COMPLETED"


class ProcessorError(RuntimeError):
    pass


class ProcessorAttemptsExceeded(ProcessorError):
    """The processor refuses further capture attempts on this order."""


@dataclass(frozen=True)
class ProcessorOrder:
    order_id: str
    approval_url: str


@dataclass(frozen=True)
class ProcessorCapture:
    status: str
    payer_email: str | None = None
    raw: dict = field(default_factory=dict)

    @property
    def completed(self) -> bool:
        return self.status == COMPLETED


class PaymentProcessor(Protocol):
    currency: str

    def create_order(self, reference: str, amount: Decimal, currency: str) -> ProcessorOrder: ...

    def capture(self, order_id: str) -> ProcessorCapture: ...


class PaypalProcessor:
    def __init__(self, client: PaypalClient, currency: str = "USD"):
        self.client = client
        self.currency = currency

    @classmethod
    def from_settings(cls) -> "PaypalProcessor":
        cfg = PaypalConfig(
            api_base=settings.PAYPAL_API,
            client_id=settings.PAYPAL_CLIENT_ID,
            secret=settings.PAYPAL_SECRET,
            return_url=settings.PAYPAL_RETURN_URL,
            cancel_url=settings.PAYPAL_CANCEL_URL,
            brand_name=settings.PAYPAL_BRAND_NAME,
            webhook_id=settings.PAYPAL_WEBHOOK_ID,
            timeout=settings.PAYPAL_TIMEOUT,
        )
        return cls(PaypalClient(cfg), currency=settings.PAYPAL_CURRENCY)

    def create_order(self, reference: str, amount: Decimal, currency: str) -> ProcessorOrder:
        try:
            res = self.client.create_order(reference=reference, amount=f"{amount:.2f}", currency=currency)
        except (PaypalError, requests.RequestException, ValueError) as e:
            raise ProcessorError(str(e)) from e
        return ProcessorOrder(order_id=res["order_id"], approval_url=res["approval_url"])

    def capture(self, order_id: str) -> ProcessorCapture:
        try:
            res = self.client.capture_order(order_id)
        except PaypalTooManyAttemptsError as e:
            raise ProcessorAttemptsExceeded(str(e)) from e
        except (PaypalError, requests.RequestException, ValueError) as e:
            raise ProcessorError(str(e)) from e
        return ProcessorCapture(status=res.get("status") or "", payer_email=res.get("payer_email"), raw=res.get("raw") or {})

    def verify_webhook(self, headers: dict, event: dict) -> bool:
        try:
            return self.client.verify_webhook_signature(headers, event)
        except (PaypalError, requests.RequestException, ValueError) as e:
            logger.warning("paypal webhook verification failed: %s", e)
            return False


class ProcessorRegistry:
    def __init__(self, processors: dict[PaymentMethod, PaymentProcessor] | None = None):
        self._processors: dict[PaymentMethod, PaymentProcessor] = dict(processors or {})

    def register(self, method: PaymentMethod, processor: PaymentProcessor) -> None:
        self._processors[method] = processor

    def methods(self) -> list[PaymentMethod]:
        return list(self._processors)

    def get(self, method: PaymentMethod | str) -> PaymentProcessor:
        try:
            key = PaymentMethod(method)
        except ValueError:
            raise UnsupportedMethodError(f"Unknown payment method: {method}", field="payment_method")
        processor = self._processors.get(key)
        if processor is None:
            raise UnsupportedMethodError(f"Payment method {key.value} is not supported", field="payment_method")
        return processor


def default_registry() -> ProcessorRegistry:
    return ProcessorRegistry({PaymentMethod.PAYPAL: PaypalProcessor.from_settings()})
