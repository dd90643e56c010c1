from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class SubscriptionResponse(BaseModel):
    tier: str
    status: str
    usage_count: int
    stripe_customer_id: Optional[str] = None


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    price_id: str = Field(..., alias="priceId", min_length=1)
    tier: Optional[str] = None


class SessionUrlResponse(BaseModel):
    url: str
