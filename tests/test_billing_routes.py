import json
import threading
import time

from fastapi.testclient import TestClient

from conftest import PRICE_PREMIUM, PRICE_PRO, as_user, sign_stripe_payload, subscription_event


def test_subscription_creates_account_on_first_call(client, app_store):
    response = client.get("/api/subscription", headers=as_user("u1"))

    assert response.status_code == 200
    assert response.json() == {
        "tier": "free",
        "status": "active",
        "usage_count": 0,
        "stripe_customer_id": None,
    }
    assert app_store.get("u1") is not None


def test_subscription_requires_identity(client):
    assert client.get("/api/subscription").status_code == 401


def test_checkout_creates_customer_once(client, app_store, stripe_billing):
    first = client.post("/api/create-checkout", json={"priceId": PRICE_PRO, "tier": "individual"}, headers=as_user("u1"))
    second = client.post("/api/create-checkout", json={"priceId": PRICE_PREMIUM, "tier": "premium"}, headers=as_user("u1"))

    assert first.status_code == 200
    assert first.json() == {"url": "https://checkout.stripe.test/cus_1"}
    assert second.status_code == 200
    assert stripe_billing.customers == [("u1", "cus_1")]
    assert stripe_billing.checkouts == [
        ("cus_1", PRICE_PRO, "u1", "individual"),
        ("cus_1", PRICE_PREMIUM, "u1", "premium"),
    ]
    assert app_store.get("u1").billing_customer_ref == "cus_1"


def test_checkout_requires_price(client, stripe_billing):
    response = client.post("/api/create-checkout", json={"tier": "premium"}, headers=as_user("u1"))
    assert response.status_code == 400
    assert stripe_billing.checkouts == []


def test_checkout_does_not_change_tier(client, app_store):
    client.post("/api/create-checkout", json={"priceId": PRICE_PREMIUM, "tier": "premium"}, headers=as_user("u1"))
    assert app_store.get("u1").tier == "free"


def test_portal_without_customer_is_client_error(client, stripe_billing):
    response = client.post("/api/create-portal-session", headers=as_user("u1"))
    assert response.status_code == 400
    assert response.json() == {"error": "No billing account found. Subscribe to a plan first."}
    assert stripe_billing.portals == []


def test_portal_for_existing_customer(client, app_store, stripe_billing):
    app_store.get_or_create("u1")
    app_store.set_billing_customer_ref("u1", "cus_9")

    response = client.post("/api/create-portal-session", headers=as_user("u1"))

    assert response.status_code == 200
    assert response.json() == {"url": "https://billing.stripe.test/cus_9"}


def test_webhook_premium_price_upgrades_account(client, app_store):
    app_store.get_or_create("u1")
    app_store.set_billing_customer_ref("u1", "cus_1")
    payload = json.dumps(subscription_event("customer.subscription.updated", "cus_1", price_id=PRICE_PREMIUM, status="active"))

    response = client.post(
        "/api/stripe-webhook",
        content=payload,
        headers={"stripe-signature": sign_stripe_payload(payload), "content-type": "application/json"},
    )

    assert response.status_code == 200
    assert response.json() == {"received": True}
    account = app_store.get("u1")
    assert account.tier == "premium"
    assert account.status == "active"


def test_webhook_bad_signature_changes_nothing(client, app_store):
    app_store.get_or_create("u1")
    app_store.set_billing_customer_ref("u1", "cus_1")
    payload = json.dumps(subscription_event("customer.subscription.updated", "cus_1", price_id=PRICE_PREMIUM))

    response = client.post(
        "/api/stripe-webhook",
        content=payload,
        headers={"stripe-signature": "t=123,v1=deadbeef", "content-type": "application/json"},
    )

    assert response.status_code == 400
    assert app_store.get("u1").tier == "free"


def test_webhook_unmatched_customer_is_acknowledged(client):
    payload = json.dumps(subscription_event("customer.subscription.deleted", "cus_nobody"))

    response = client.post(
        "/api/stripe-webhook",
        content=payload,
        headers={"stripe-signature": sign_stripe_payload(payload)},
    )

    assert response.status_code == 200
    assert response.json() == {"received": True}


def test_webhook_non_utf8_body_is_client_error(client):
    response = client.post(
        "/api/stripe-webhook",
        content=b"\xff\xfe{",
        headers={"stripe-signature": "t=1,v1=ab"},
    )

    assert response.status_code == 400
    assert "error" in response.json()


def test_slow_webhook_does_not_block_other_requests(app, app_store, monkeypatch):
    app_store.get_or_create("u1")
    app_store.set_billing_customer_ref("u1", "cus_1")
    real_update = app_store.apply_billing_update

    def slow_update(*args, **kwargs):
        time.sleep(1.0)
        return real_update(*args, **kwargs)

    monkeypatch.setattr(app_store, "apply_billing_update", slow_update)
    payload = json.dumps(subscription_event("customer.subscription.updated", "cus_1", price_id=PRICE_PREMIUM))

    with TestClient(app) as client:
        webhook = threading.Thread(
            target=client.post,
            args=("/api/stripe-webhook",),
            kwargs={"content": payload, "headers": {"stripe-signature": sign_stripe_payload(payload)}},
        )
        webhook.start()
        time.sleep(0.1)

        started = time.monotonic()
        health = client.get("/api/health")
        latency = time.monotonic() - started
        webhook.join()

    assert health.status_code == 200
    assert latency < 0.5
    assert app_store.get("u1").tier == "premium"
