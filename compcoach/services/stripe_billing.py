"""
Stripe Checkout and Billing Portal sessions.
"""
import logging

import stripe

from compcoach.core.config import Settings
from compcoach.core.errors import ConfigurationError, PaymentProviderError

logger = logging.getLogger(__name__)


class StripeBilling:
    def __init__(self, api_key: str, app_url: str = "http://localhost:3000"):
        self.api_key = api_key
        self.app_url = app_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "StripeBilling":
        return cls(api_key=settings.stripe_secret_key, app_url=settings.app_url)

    def _require_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError("Stripe secret key not configured")
        return self.api_key

    def create_customer(self, identity_ref: str) -> str:
        api_key = self._require_key()
        try:
            customer = stripe.Customer.create(
                api_key=api_key,
                metadata={"clerk_user_id": identity_ref},
            )
        except stripe.StripeError as e:
            logger.error("Stripe error creating customer for %s: %s", identity_ref, e)
            raise PaymentProviderError("Failed to create checkout session") from e
        logger.info("Created Stripe customer %s for %s", customer.id, identity_ref)
        return customer.id

    def create_checkout_session(self, customer_id: str, price_id: str, identity_ref: str, tier: str | None) -> str:
        """Subscription-mode Checkout Session for one price. Returns the hosted checkout URL."""
        api_key = self._require_key()
        metadata = {"clerk_user_id": identity_ref}
        if tier:
            metadata["tier"] = tier
        try:
            session = stripe.checkout.Session.create(
                api_key=api_key,
                customer=customer_id,
                payment_method_types=["card"],
                line_items=[
                    {
                        "price": price_id,
                        "quantity": 1,
                    }
                ],
                mode="subscription",
                success_url=f"{self.app_url}?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=self.app_url,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error("Stripe error creating checkout session: %s", e)
            raise PaymentProviderError("Failed to create checkout session") from e

        logger.info("Created Stripe Checkout Session %s for %s", session.id, identity_ref)
        return session.url

    def create_portal_session(self, customer_id: str) -> str:
        api_key = self._require_key()
        try:
            session = stripe.billing_portal.Session.create(
                api_key=api_key,
                customer=customer_id,
                return_url=self.app_url,
            )
        except stripe.StripeError as e:
            logger.error("Stripe error creating portal session: %s", e)
            raise PaymentProviderError("Failed to create billing portal session") from e
        return session.url
