import hashlib
import hmac
import json
import time
from typing import Optional

import httpx
import pytest
from fastapi import Header
from fastapi.testclient import TestClient

from compcoach.core.config import Settings
from compcoach.core.errors import AuthError
from compcoach.db.base import Base
from compcoach.db.session import build_engine, build_session_factory
from compcoach.dependencies.auth import get_current_identity
from compcoach.main import create_app
from compcoach.services.account_store import AccountStore
from compcoach.services.news_feed import NewsFeed

WEBHOOK_SECRET = "whsec_test_secret"
PRICE_PRO = "price_pro_monthly"
PRICE_PREMIUM = "price_premium_monthly"


def sign_stripe_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def subscription_event(event_type: str, customer: str, price_id: str = PRICE_PREMIUM,
                       status: str = "active", subscription_id: str = "sub_123") -> dict:
    return {
        "id": "evt_test",
        "type": event_type,
        "data": {
            "object": {
                "id": subscription_id,
                "object": "subscription",
                "customer": customer,
                "status": status,
                "items": {"data": [{"price": {"id": price_id}}]},
            }
        },
    }


class FakeAnthropic:
    """httpx.MockTransport handler standing in for the Messages API."""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.body = {
            "id": "msg_01",
            "type": "message",
            "role": "assistant",
            "content": [{"type": "text", "text": "Ask for 15% more."}],
            "usage": {"input_tokens": 12, "output_tokens": 7},
        }
        self.raw_body: Optional[bytes] = None
        self.exception: Optional[Exception] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exception is not None:
            raise self.exception
        if self.raw_body is not None:
            return httpx.Response(self.status_code, content=self.raw_body)
        return httpx.Response(self.status_code, json=self.body)

    def last_payload(self) -> dict:
        return json.loads(self.requests[-1].content)


class FakeStripeBilling:
    def __init__(self):
        self.customers = []
        self.checkouts = []
        self.portals = []

    def create_customer(self, identity_ref: str) -> str:
        customer_id = f"cus_{len(self.customers) + 1}"
        self.customers.append((identity_ref, customer_id))
        return customer_id

    def create_checkout_session(self, customer_id, price_id, identity_ref, tier):
        self.checkouts.append((customer_id, price_id, identity_ref, tier))
        return f"https://checkout.stripe.test/{customer_id}"

    def create_portal_session(self, customer_id):
        self.portals.append(customer_id)
        return f"https://billing.stripe.test/{customer_id}"


class FakeNewsResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._payload = payload if payload is not None else {"articles": []}

    def json(self):
        return self._payload


class FakeNewsSession:
    def __init__(self, response=None):
        self.response = response or FakeNewsResponse()
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        return self.response


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        run_migrations=False,
        stripe_secret_key="sk_test_123",
        stripe_webhook_secret=WEBHOOK_SECRET,
        stripe_price_pro=PRICE_PRO,
        stripe_price_premium=PRICE_PREMIUM,
        anthropic_api_key="test-anthropic-key",
        newsapi_key="test-news-key",
        static_dir="no-such-static-dir",
    )


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def store(session_factory):
    return AccountStore(session_factory)


@pytest.fixture
def anthropic():
    return FakeAnthropic()


@pytest.fixture
def stripe_billing():
    return FakeStripeBilling()


@pytest.fixture
def news_session():
    return FakeNewsSession()


def _identity_from_test_header(x_test_user: Optional[str] = Header(None)) -> str:
    if not x_test_user:
        raise AuthError("Missing authorization header")
    return x_test_user


@pytest.fixture
def app(settings, engine, anthropic, stripe_billing, news_session):
    application = create_app(
        settings,
        engine=engine,
        http_client=httpx.Client(transport=httpx.MockTransport(anthropic)),
        stripe_billing=stripe_billing,
        news_feed=NewsFeed(settings.newsapi_key, session=news_session),
    )
    application.dependency_overrides[get_current_identity] = _identity_from_test_header
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def app_store(app):
    return app.state.account_store


def as_user(identity: str) -> dict:
    return {"x-test-user": identity}
