from fastapi import APIRouter, Depends

from compcoach.core.config import Settings
from compcoach.dependencies.services import get_settings

router = APIRouter()


def _flag(value: str) -> str:
    return "configured" if value else "missing"


@router.get("/health")
def health(settings: Settings = Depends(get_settings)):
    """Liveness plus which third-party secrets are present. Never echoes the secrets."""
    return {
        "status": "ok",
        "service": "CompCoach.ai API",
        "clerk": _flag(settings.clerk_secret_key or settings.clerk_jwt_key),
        "stripe": _flag(settings.stripe_secret_key),
        "supabase": _flag(settings.supabase_url),
        "anthropic": _flag(settings.anthropic_api_key),
    }
