import base64
import json
import logging
from dataclasses import dataclass

import requests

logger = logging.getLogger(__name__)

TOO_MANY_ATTEMPTS = "MAX_NUMBER_OF_PAYMENT_ATTEMPTS_EXCEEDED"


@dataclass
class PaypalConfig:
    api_base: str           # https://api-m.sandbox.paypal.com OR https://api-m.paypal.com
    client_id: str
    secret: str
    return_url: str
    cancel_url: str
    brand_name: str = ""
    webhook_id: str = ""
    timeout: int = 25


class PaypalError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None, issue: str | None = None, data: dict | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.issue = issue
        self.data = data or {}


class PaypalTooManyAttemptsError(PaypalError):
    pass


def _first_issue(data: dict) -> tuple[str | None, str | None]:
    details = data.get("details") or []
    if details and isinstance(details, list):
        d = details[0] or {}
        return d.get("issue"), d.get("description") or data.get("message")
    return None, data.get("message")


class PaypalClient:
    def __init__(self, cfg: PaypalConfig, session: requests.Session | None = None):
        self.cfg = cfg
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.cfg.api_base.rstrip('/')}{path}"

    def access_token(self) -> str:
        basic = base64.b64encode(f"{self.cfg.client_id}:{self.cfg.secret}".encode("utf-8")).decode("utf-8")
        r = self.session.post(
            self._url("/v1/oauth2/token"),
            headers={
                "Authorization": f"Basic {basic}",
                "Content-Type": "application/x-www-form-urlencoded",
            },
            data="grant_type=client_credentials",
            timeout=self.cfg.timeout,
        )
        if r.status_code >= 400:
            raise PaypalError(f"PayPal auth {r.status_code}: {r.text}", status_code=r.status_code)
        return r.json()["access_token"]

    def request(self, method: str, path: str, payload: dict | None = None) -> dict:
        token = self.access_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        body = json.dumps(payload, separators=(",", ":")) if payload is not None else None
        r = self.session.request(method=method.upper(), url=self._url(path), data=body, headers=headers, timeout=self.cfg.timeout)
        try:
            data = r.json() if r.text else {}
        except ValueError:
            data = {"raw": r.text}
        if r.status_code >= 400:
            issue, description = _first_issue(data)
            if issue == TOO_MANY_ATTEMPTS:
                raise PaypalTooManyAttemptsError(
                    "This order has already been attempted too many times. Please create a new order to try again.",
                    status_code=r.status_code,
                    issue=issue,
                    data=data,
                )
            raise PaypalError(f"PayPal {r.status_code}: {description or data}", status_code=r.status_code, issue=issue, data=data)
        return data

    def create_order(self, *, reference: str, amount: str, currency: str) -> dict:
        """Returns ``{"order_id", "approval_url", "raw"}`` for an intent=CAPTURE order."""
        payload = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "reference_id": reference,
                    "amount": {"currency_code": currency, "value": amount},
                    "description": f"Order ID: {reference}",
                }
            ],
            "application_context": {
                "return_url": self.cfg.return_url,
                "cancel_url": self.cfg.cancel_url,
                "shipping_preference": "NO_SHIPPING",
                "user_action": "PAY_NOW",
                "brand_name": self.cfg.brand_name,
            },
        }
        data = self.request("POST", "/v2/checkout/orders", payload)
        approval = next((link.get("href") for link in data.get("links", []) if link.get("rel") == "approve"), None)
        if not data.get("id") or not approval:
            raise PaypalError(f"PayPal order response missing id or approve link: {data}", data=data)
        return {"order_id": data["id"], "approval_url": approval, "raw": data}

    def capture_order(self, order_id: str) -> dict:
        data = self.request("POST", f"/v2/checkout/orders/{order_id}/capture")
        return {
            "status": data.get("status"),
            "payer_email": (data.get("payer") or {}).get("email_address"),
            "raw": data,
        }

    def verify_webhook_signature(self, headers: dict, event: dict) -> bool:
        h = {k.lower(): v for k, v in headers.items()}
        payload = {
            "auth_algo": h.get("paypal-auth-algo"),
            "cert_url": h.get("paypal-cert-url"),
            "transmission_id": h.get("paypal-transmission-id"),
            "transmission_sig": h.get("paypal-transmission-sig"),
            "transmission_time": h.get("paypal-transmission-time"),
            "webhook_id": self.cfg.webhook_id,
            "webhook_event": event,
        }
        if not all(payload.values()):
            logger.warning("paypal webhook missing signature headers")
            return False
        data = self.request("POST", "/v1/notifications/verify-webhook-signature", payload)
        return data.get("verification_status") == "SUCCESS"
