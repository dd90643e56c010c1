"""
Stripe webhook. Register https://<your-backend>/api/stripe-webhook in the Stripe dashboard.
"""
import asyncio

from fastapi import APIRouter, Depends, Request

from compcoach.dependencies.services import get_billing_sync
from compcoach.services.billing_sync import BillingSyncListener

router = APIRouter()


@router.post("/stripe-webhook")
async def stripe_webhook(
    request: Request,
    billing_sync: BillingSyncListener = Depends(get_billing_sync),
):
    # Signature is computed over the raw body, so read it before any JSON parsing
    payload = await request.body()
    event = billing_sync.verify(payload, request.headers.get("stripe-signature"))

    # Store writes are blocking; keep them off the event loop.
    # Acknowledge even when no account matched so Stripe stops redelivering
    await asyncio.to_thread(billing_sync.apply, event)
    return {"received": True}
