from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from compcoach.db.base import Base


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    identity_ref = Column(String, unique=True, index=True, nullable=False)  # Clerk user ID
    tier = Column(String, default="free", nullable=False)
    status = Column(String, default="active", nullable=False)  # Mirrors Stripe subscription status
    usage_count = Column(Integer, default=0, nullable=False)
    billing_customer_ref = Column(String, unique=True, index=True, nullable=True)  # Stripe customer ID
    billing_subscription_ref = Column(String, nullable=True)  # Stripe subscription ID
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
