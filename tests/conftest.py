import os

# settings are read at import time
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["OWNER_EMAIL"] = ""
os.environ["ADMIN_EMAILS"] = ""
os.environ["SENDGRID_API_KEY"] = ""
os.environ["PAYPAL_WEBHOOK_VERIFY"] = "false"
os.environ["LOG_FILE"] = ""
os.environ["LOG_ERROR_FILE"] = ""

import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.session import get_db
from app.models.country import Country, State
from app.models.destination import Destination
from app.models.payment import PaymentMethod
from app.services import email_service
from app.services.fx_service import ExchangeRateService, InMemoryRateCache
from app.services.payment_processors import ProcessorRegistry

from helpers import FakeProcessor, StubSession, make_user


@pytest.fixture()
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def outbox(monkeypatch):
    sent: list[dict] = []

    def fake_send(to_email, subject, html_body, cc=None):
        sent.append({"to": to_email, "subject": subject, "html": html_body, "cc": cc or []})

    monkeypatch.setattr(email_service, "send_email", fake_send)
    return sent


@pytest.fixture()
def traveller(db):
    return make_user(db, email="traveller@example.com")


@pytest.fixture()
def catalog(db):
    """Indonesia/Bali with two destinations, Thailand/Phuket with one."""
    indonesia = Country(id=str(uuid.uuid4()), iso="ID", name="Indonesia", currency="IDR")
    thailand = Country(id=str(uuid.uuid4()), iso="TH", name="Thailand", currency="THB")
    bali = State(id=str(uuid.uuid4()), country_id=indonesia.id, name="Bali")
    phuket = State(id=str(uuid.uuid4()), country_id=thailand.id, name="Phuket")
    uluwatu = Destination(id=str(uuid.uuid4()), state_id=bali.id, name="Uluwatu Temple", price=Decimal("500000"))
    terrace = Destination(id=str(uuid.uuid4()), state_id=bali.id, name="Tegallalang Rice Terrace", price=Decimal("300000"))
    patong = Destination(id=str(uuid.uuid4()), state_id=phuket.id, name="Patong Beach", price=Decimal("200000"))
    db.add_all([indonesia, thailand, bali, phuket, uluwatu, terrace, patong])
    db.commit()
    return {
        "indonesia": indonesia,
        "thailand": thailand,
        "bali": bali,
        "uluwatu": uluwatu,
        "terrace": terrace,
        "patong": patong,
    }


@pytest.fixture()
def processor():
    return FakeProcessor(currency="IDR")


@pytest.fixture()
def registry(processor):
    return ProcessorRegistry({PaymentMethod.PAYPAL: processor})


@pytest.fixture()
def fx():
    return ExchangeRateService(InMemoryRateCache(), ttl_seconds=3600, api_url="https://fx.test/latest", session=StubSession({"IDR": 16250}))


@pytest.fixture()
def client(session_factory, registry, fx, outbox):
    from app.main import app
    from app.api.deps import get_fx_service, get_processor_registry

    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_processor_registry] = lambda: registry
    app.dependency_overrides[get_fx_service] = lambda: fx
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
