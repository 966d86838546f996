import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from tablebook.api.dependencies import get_gateway, get_store
from tablebook.infrastructure.db.models import Base, Event, User
from tablebook.infrastructure.db.session import build_session_factory
from tablebook.infrastructure.gateway.razorpay_gateway import PaymentIntent
from tablebook.infrastructure.store import RecordStore
from tablebook.main import app

OWNER_PHONE = "+34600000001"
GUEST_PHONE = "+34600000002"
VALID_SIGNATURE = "valid-signature"


class FakeGateway:

    def __init__(self):
        self.intents = []

    def create_payment_intent(self, amount_minor_units, currency, metadata):
        self.intents.append(
            {"amount_minor_units": amount_minor_units, "currency": currency, "metadata": metadata}
        )
        return PaymentIntent(
            id=f"order_test_{len(self.intents)}",
            client_secret="rzp_test_key",
            amount_minor_units=amount_minor_units,
            currency=currency,
        )

    def verify_webhook(self, body, signature):
        return signature == VALID_SIGNATURE


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
def store(session_factory):
    return RecordStore(session_factory)


@pytest.fixture
def gateway():
    return FakeGateway()


def _persist(session_factory, record):
    with session_factory() as db:
        db.add(record)
        db.commit()
    return record


@pytest.fixture
def event(session_factory):
    return _persist(
        session_factory,
        Event(title="Summer Closing Party", venue="Sala Apolo", date="2026-08-30", image=""),
    )


@pytest.fixture
def owner(session_factory):
    return _persist(
        session_factory,
        User(email="owner@example.com", name="Olivia Owner", phone_number=OWNER_PHONE),
    )


@pytest.fixture
def guest(session_factory):
    return _persist(
        session_factory,
        User(email="guest@example.com", name="Gabriel Guest", phone_number=GUEST_PHONE),
    )


@pytest.fixture
def table(store, event):
    return store.create_table(
        event_id=event.id,
        name="VIP 1",
        capacity=10,
        min_spend=Decimal("50.00"),
        zone="vip",
    )


@pytest.fixture
def client(store, gateway):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()
