import uuid
from datetime import date, timedelta

import requests

from app.core.security import create_access_token, hash_password
from app.models.user import Role, User
from app.services.payment_processors import ProcessorCapture, ProcessorError, ProcessorOrder

TODAY = date(2030, 1, 10)


def day(offset: int) -> date:
    return TODAY + timedelta(days=offset)


def make_user(db, email: str | None = None, role: Role = Role.TRAVELLER, verified: bool = True, password: str = "secret123") -> User:
    u = User(
        id=str(uuid.uuid4()),
        email=email or f"{uuid.uuid4().hex[:8]}@example.com",
        full_name="Test User",
        role=role,
        password_hash=hash_password(password),
        is_active=True,
        is_verified=verified,
    )
    db.add(u)
    db.commit()
    return u


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def person(passport: str, name: str = "Ayu", gender: str = "Ms") -> dict:
    return {"name": name, "gender": gender, "nationality": "Indonesian", "passport_number": passport}


class FakeProcessor:
    """In-memory stand-in for PayPal."""

    def __init__(self, currency: str = "IDR"):
        self.currency = currency
        self.orders: list[dict] = []
        self.captures: list[str] = []
        self.fail_create = False
        self.capture_error: Exception | None = None
        self.capture_status = "COMPLETED"
        self.payer_email = "payer@example.com"

    def create_order(self, reference, amount, currency):
        if self.fail_create:
            raise ProcessorError("order rejected")
        order_id = f"ORDER-{len(self.orders) + 1}"
        self.orders.append({"reference": reference, "amount": amount, "currency": currency, "order_id": order_id})
        return ProcessorOrder(order_id=order_id, approval_url=f"https://paypal.test/approve/{order_id}")

    def capture(self, order_id):
        self.captures.append(order_id)
        if self.capture_error:
            raise self.capture_error
        return ProcessorCapture(status=self.capture_status, payer_email=self.payer_email)


class StubResponse:
    def __init__(self, payload: dict, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code
        self.text = "x"

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(str(self.status_code))

    def json(self):
        return self._payload


class StubSession:
    """requests.Session look-alike returning canned payloads."""

    def __init__(self, rates: dict | None = None, error: Exception | None = None):
        self.rates = rates or {}
        self.error = error
        self.calls: list[str] = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        if self.error:
            raise self.error
        return StubResponse({"result": "success", "rates": self.rates})
