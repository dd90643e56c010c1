"""
Subscription status, Stripe Checkout and Billing Portal routes.
"""
from fastapi import APIRouter, Depends

from compcoach.core.errors import ValidationError
from compcoach.dependencies.auth import get_current_identity
from compcoach.dependencies.services import get_account_store, get_stripe_billing
from compcoach.schemas.billing import CheckoutRequest, SessionUrlResponse, SubscriptionResponse
from compcoach.services.account_store import AccountStore
from compcoach.services.stripe_billing import StripeBilling

router = APIRouter()


@router.get("/subscription", response_model=SubscriptionResponse)
def get_subscription(
    identity: str = Depends(get_current_identity),
    store: AccountStore = Depends(get_account_store),
):
    """Current tier, status and usage. The account is created on first call."""
    account = store.get_or_create(identity)
    return {
        "tier": account.tier,
        "status": account.status,
        "usage_count": account.usage_count or 0,
        "stripe_customer_id": account.billing_customer_ref,
    }


@router.post("/create-checkout", response_model=SessionUrlResponse)
def create_checkout(
    request: CheckoutRequest,
    identity: str = Depends(get_current_identity),
    store: AccountStore = Depends(get_account_store),
    billing: StripeBilling = Depends(get_stripe_billing),
):
    """
    Create a Stripe Checkout Session for a subscription upgrade.
    The Stripe customer is created on first checkout and remembered on the account.
    """
    account = store.get_or_create(identity)

    customer_id = account.billing_customer_ref
    if not customer_id:
        customer_id = billing.create_customer(identity)
        store.set_billing_customer_ref(identity, customer_id)

    url = billing.create_checkout_session(customer_id, request.price_id, identity, request.tier)
    return {"url": url}


@router.post("/create-portal-session", response_model=SessionUrlResponse)
def create_portal_session(
    identity: str = Depends(get_current_identity),
    store: AccountStore = Depends(get_account_store),
    billing: StripeBilling = Depends(get_stripe_billing),
):
    account = store.get(identity)
    if account is None or not account.billing_customer_ref:
        raise ValidationError("No billing account found. Subscribe to a plan first.")

    return {"url": billing.create_portal_session(account.billing_customer_ref)}
