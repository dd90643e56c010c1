"""
Request-scoped accessors for the clients wired up in compcoach.main.create_app.
Tests swap implementations by passing their own into create_app.
"""
from fastapi import Request

from compcoach.core.config import Settings
from compcoach.services.account_store import AccountStore
from compcoach.services.billing_sync import BillingSyncListener
from compcoach.services.news_feed import NewsFeed
from compcoach.services.provider_gateway import ProviderGateway
from compcoach.services.stripe_billing import StripeBilling
from compcoach.services.usage_accountant import UsageAccountant
from compcoach.services.waitlist import WaitlistService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_account_store(request: Request) -> AccountStore:
    return request.app.state.account_store


def get_provider_gateway(request: Request) -> ProviderGateway:
    return request.app.state.provider_gateway


def get_usage_accountant(request: Request) -> UsageAccountant:
    return request.app.state.usage_accountant


def get_billing_sync(request: Request) -> BillingSyncListener:
    return request.app.state.billing_sync


def get_stripe_billing(request: Request) -> StripeBilling:
    return request.app.state.stripe_billing


def get_waitlist(request: Request) -> WaitlistService:
    return request.app.state.waitlist


def get_news_feed(request: Request) -> NewsFeed:
    return request.app.state.news_feed
