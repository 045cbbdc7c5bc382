import hashlib
import hmac
import json
import time
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from shop_payments.auth import create_access_token
from shop_payments.config import Settings
from shop_payments.database import init_db, make_engine, make_session_factory
from shop_payments.ledger import LedgerStore
from shop_payments.main import create_app
from shop_payments.models import Payment, PENDING

WEBHOOK_SECRET = "whsec_test_secret"
JWT_SECRET = "test-jwt-secret"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'payments.db'}",
        stripe_secret_key="sk_test_123",
        stripe_webhook_secret=WEBHOOK_SECRET,
        stripe_timeout_seconds=5.0,
        webhook_tolerance_seconds=300,
        jwt_secret=JWT_SECRET,
        default_currency="usd",
        log_level="INFO",
    )


@pytest.fixture
def session_factory(settings):
    engine = make_engine(settings.database_url)
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def ledger(session_factory):
    return LedgerStore(session_factory)


@pytest.fixture
def make_payment():
    def _make(intent_id="pi_123", user_id="1", amount="49.99", currency="usd"):
        return Payment(
            user_id=user_id,
            amount=Decimal(amount),
            currency=currency,
            description="Payment",
            provider_intent_id=intent_id,
            status=PENDING,
        )
    return _make


@pytest.fixture
def stripe_signature():
    """Build a Stripe-Signature header the way Stripe signs deliveries."""
    def _sign(payload: bytes, secret=WEBHOOK_SECRET, timestamp=None):
        timestamp = int(time.time()) if timestamp is None else timestamp
        signed = f"{timestamp}.".encode("utf-8") + payload
        digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
        return f"t={timestamp},v1={digest}"
    return _sign


@pytest.fixture
def make_event():
    def _event(event_type, intent_id, user_id=None, event_id="evt_test"):
        intent = {"id": intent_id, "object": "payment_intent"}
        if user_id is not None:
            intent["metadata"] = {"userId": user_id}
        body = {"id": event_id, "type": event_type, "data": {"object": intent}}
        return json.dumps(body).encode("utf-8")
    return _event


@pytest.fixture
def auth_header():
    def _header(user_id):
        return {"Authorization": f"Bearer {create_access_token(user_id, JWT_SECRET)}"}
    return _header


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c
