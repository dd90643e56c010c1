"""
CompCoach.ai Backend API
Subscription-gated AI chat: Clerk identity, Stripe billing, Anthropic Messages API.
"""
from dotenv import load_dotenv
load_dotenv()

import logging
import sys
from pathlib import Path
from typing import Optional

import httpx
from alembic import command
from alembic.config import Config
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.engine import Engine

from compcoach.api.routes import billing, chat, health, news, waitlist, webhooks
from compcoach.core.config import Settings, load_settings
from compcoach.core.errors import register_exception_handlers
from compcoach.db.base import Base
from compcoach.db.session import build_engine, build_session_factory
from compcoach.dependencies.auth import ClerkVerifier
from compcoach.services.account_store import AccountStore
from compcoach.services.billing_sync import BillingSyncListener
from compcoach.services.news_feed import NewsFeed
from compcoach.services.provider_gateway import ProviderGateway
from compcoach.services.stripe_billing import StripeBilling
from compcoach.services.usage_accountant import UsageAccountant
from compcoach.services.waitlist import WaitlistService
import compcoach.models  # noqa: F401 - register all models with Base

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def run_migrations(database_url: str) -> None:
    """Run Alembic migrations. Fails startup if they fail, so the DB is never left out of sync."""
    alembic_ini = PROJECT_ROOT / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("alembic.ini not found, skipping Alembic migrations")
        return
    try:
        alembic_cfg = Config(str(alembic_ini))
        alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
        alembic_cfg.set_main_option("sqlalchemy.url", database_url)
        command.upgrade(alembic_cfg, "head")
        logger.info("Alembic migrations completed successfully")
    except Exception as e:
        logger.exception("Alembic migration failed: %s", e)
        raise


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    http_client: Optional[httpx.Client] = None,
    stripe_billing: Optional[StripeBilling] = None,
    news_feed: Optional[NewsFeed] = None,
    clerk_verifier: Optional[ClerkVerifier] = None,
) -> FastAPI:
    """
    Build the application with explicitly constructed clients. Anything not passed in is
    built from settings, which default to the environment.
    """
    settings = settings or load_settings()
    engine = engine or build_engine(settings.database_url)
    session_factory = build_session_factory(engine)

    app = FastAPI(title="CompCoach.ai API")

    provider_client = http_client or httpx.Client()
    account_store = AccountStore(session_factory, default_tier=settings.default_tier)
    app.state.settings = settings
    app.state.engine = engine
    app.state.account_store = account_store
    app.state.usage_accountant = UsageAccountant(account_store)
    app.state.provider_gateway = ProviderGateway.from_settings(settings, provider_client)
    app.state.billing_sync = BillingSyncListener.from_settings(settings, account_store)
    app.state.stripe_billing = stripe_billing or StripeBilling.from_settings(settings)
    app.state.waitlist = WaitlistService(session_factory)
    app.state.news_feed = news_feed or NewsFeed(settings.newsapi_key)
    app.state.clerk_verifier = clerk_verifier or ClerkVerifier.from_settings(settings)

    @app.on_event("startup")
    async def startup_event():
        """Create tables, then run Alembic migrations on every server restart."""
        if not settings.run_migrations:
            logger.info("RUN_MIGRATIONS disabled, skipping schema setup")
            return
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        run_migrations(settings.database_url)
        logger.info("CompCoach.ai ready (default tier for new accounts: %s)", settings.default_tier)

    @app.on_event("shutdown")
    async def shutdown_event():
        if http_client is None:
            provider_client.close()

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(news.router, prefix="/api", tags=["News"])
    app.include_router(waitlist.router, prefix="/api", tags=["Waitlist"])
    app.include_router(billing.router, prefix="/api", tags=["Billing"])
    app.include_router(webhooks.router, prefix="/api", tags=["Webhooks"])
    app.include_router(chat.router, prefix="/api", tags=["Chat"])

    # Serve the frontend build; mounted last so /api routes win
    static_dir = Path(settings.static_dir)
    if not static_dir.is_absolute():
        static_dir = PROJECT_ROOT / static_dir
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
    else:
        logger.info("Static directory %s not found, not serving frontend", static_dir)

    return app


app = create_app()
