"""
Billing Sync Listener: reconciles account tier/status from Stripe subscription events.

Register the webhook endpoint (POST /api/stripe-webhook) in the Stripe dashboard and
subscribe it to customer.subscription.created, .updated and .deleted.
"""
import json
import logging
from typing import Optional

import stripe

from compcoach.core.config import Settings
from compcoach.core.errors import ConfigurationError, ValidationError, WebhookSignatureError
from compcoach.core.plan_limits import SubscriptionStatus, Tier
from compcoach.services.account_store import AccountStore

logger = logging.getLogger(__name__)

SUBSCRIPTION_UPSERT_EVENTS = ("customer.subscription.created", "customer.subscription.updated")
SUBSCRIPTION_DELETED_EVENT = "customer.subscription.deleted"
SIGNATURE_TOLERANCE_SECONDS = 300


class BillingSyncListener:
    def __init__(
        self,
        store: AccountStore,
        webhook_secret: str,
        price_tiers: dict[str, str],
        tolerance: int = SIGNATURE_TOLERANCE_SECONDS,
    ):
        self._store = store
        self.webhook_secret = webhook_secret
        self.price_tiers = dict(price_tiers)
        self.tolerance = tolerance

    @classmethod
    def from_settings(cls, settings: Settings, store: AccountStore) -> "BillingSyncListener":
        return cls(
            store=store,
            webhook_secret=settings.stripe_webhook_secret,
            price_tiers=settings.price_tiers(),
        )

    def verify(self, payload: bytes, signature_header: Optional[str]) -> dict:
        """Check the stripe-signature header against the raw body and return the parsed event."""
        if not self.webhook_secret:
            raise ConfigurationError("Stripe webhook secret not configured")
        if not signature_header:
            raise WebhookSignatureError("Webhook Error: Missing stripe-signature header")

        try:
            body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        except UnicodeDecodeError as e:
            # A body Stripe signed is always UTF-8 JSON
            raise WebhookSignatureError("Webhook Error: Payload is not valid UTF-8") from e
        try:
            stripe.WebhookSignature.verify_header(
                body, signature_header, self.webhook_secret, self.tolerance
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("Webhook signature verification failed: %s", e)
            raise WebhookSignatureError(f"Webhook Error: {e}") from e

        try:
            event = json.loads(body)
        except json.JSONDecodeError as e:
            raise ValidationError("Webhook Error: Invalid JSON payload") from e
        if not isinstance(event, dict) or not isinstance(event.get("type"), str):
            raise ValidationError("Webhook Error: Malformed event")
        return event

    def tier_for_price(self, price_id: Optional[str]) -> str:
        """Unknown or missing prices map to free."""
        if not price_id:
            return Tier.FREE.value
        return self.price_tiers.get(price_id, Tier.FREE.value)

    def apply(self, event: dict) -> bool:
        """Apply a verified event. Returns True when an account was updated."""
        event_type = event.get("type")
        subscription = (event.get("data") or {}).get("object") or {}
        customer_id = subscription.get("customer")

        if event_type not in SUBSCRIPTION_UPSERT_EVENTS and event_type != SUBSCRIPTION_DELETED_EVENT:
            logger.info("[Stripe webhook] Ignoring event type=%s", event_type)
            return False
        if not customer_id:
            logger.warning("[Stripe webhook] %s without a customer, skipping", event_type)
            return False

        if event_type == SUBSCRIPTION_DELETED_EVENT:
            updated = self._store.apply_billing_update(
                customer_id,
                tier=Tier.FREE.value,
                status=SubscriptionStatus.CANCELED.value,
            )
        else:
            tier = self.tier_for_price(_first_price_id(subscription))
            status = subscription.get("status") or SubscriptionStatus.ACTIVE.value
            updated = self._store.apply_billing_update(
                customer_id,
                tier=tier,
                status=status,
                subscription_ref=subscription.get("id"),
            )

        if updated:
            logger.info("[Stripe webhook] %s applied to customer %s", event_type, customer_id)
        else:
            logger.info("[Stripe webhook] %s for unknown customer %s, nothing to update", event_type, customer_id)
        return updated


def _first_price_id(subscription: dict) -> Optional[str]:
    items = (subscription.get("items") or {}).get("data") or []
    if not items:
        return None
    price = items[0].get("price") or {}
    return price.get("id")
