import os
from dataclasses import dataclass, field


def _split(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def _flag(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def normalize_database_url(url: str) -> str:
    # Supabase/Render hand out postgres:// which SQLAlchemy no longer accepts
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


@dataclass
class Settings:
    database_url: str = "sqlite:///./compcoach.db"
    run_migrations: bool = True

    clerk_secret_key: str = ""
    clerk_jwt_key: str = ""
    clerk_api_url: str = "https://api.clerk.com/v1"
    clerk_authorized_parties: list[str] = field(default_factory=list)

    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_price_pro: str = ""
    stripe_price_premium: str = ""

    supabase_url: str = ""

    anthropic_api_key: str = ""
    anthropic_base_url: str = "https://api.anthropic.com"
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_max_tokens: int = 1000
    anthropic_timeout_seconds: float = 60.0

    newsapi_key: str = ""

    app_url: str = "http://localhost:3000"
    default_tier: str = "free"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    static_dir: str = "public"

    def price_tiers(self) -> dict[str, str]:
        """Stripe price id -> subscription tier, for the prices that are configured."""
        tiers = {}
        if self.stripe_price_pro:
            tiers[self.stripe_price_pro] = "individual"
        if self.stripe_price_premium:
            tiers[self.stripe_price_premium] = "premium"
        return tiers


def _default_tier() -> str:
    explicit = os.getenv("DEFAULT_TIER", "").strip().lower()
    if explicit:
        return explicit
    # Beta mode: everyone gets premium free
    if _flag(os.getenv("BETA_MODE", "false")):
        return "premium"
    return "free"


def load_settings() -> Settings:
    return Settings(
        database_url=normalize_database_url(os.getenv("DATABASE_URL", "sqlite:///./compcoach.db").strip()),
        run_migrations=_flag(os.getenv("RUN_MIGRATIONS", "true")),
        clerk_secret_key=os.getenv("CLERK_SECRET_KEY", "").strip(),
        clerk_jwt_key=os.getenv("CLERK_JWT_KEY", "").strip().replace("\\n", "\n"),
        clerk_api_url=os.getenv("CLERK_API_URL", "https://api.clerk.com/v1").rstrip("/"),
        clerk_authorized_parties=_split(os.getenv("CLERK_AUTHORIZED_PARTIES", "")),
        stripe_secret_key=os.getenv("STRIPE_SECRET_KEY", "").strip(),
        stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET", "").strip(),
        stripe_price_pro=os.getenv("STRIPE_PRICE_PRO", "").strip(),
        stripe_price_premium=os.getenv("STRIPE_PRICE_PREMIUM", "").strip(),
        supabase_url=os.getenv("SUPABASE_URL", "").strip(),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", "").strip(),
        anthropic_base_url=os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com").rstrip("/"),
        anthropic_model=os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514").strip(),
        anthropic_max_tokens=int(os.getenv("ANTHROPIC_MAX_TOKENS", "1000")),
        anthropic_timeout_seconds=float(os.getenv("ANTHROPIC_TIMEOUT_SECONDS", "60")),
        newsapi_key=os.getenv("NEWSAPI_KEY", "").strip(),
        app_url=os.getenv("APP_URL", "http://localhost:3000").rstrip("/") or "http://localhost:3000",
        default_tier=_default_tier(),
        cors_origins=_split(os.getenv("CORS_ORIGINS", "*")) or ["*"],
        static_dir=os.getenv("STATIC_DIR", "public").strip(),
    )
