import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from compcoach.core.errors import QuotaExceeded
from compcoach.dependencies.auth import get_current_identity
from compcoach.dependencies.services import get_account_store, get_provider_gateway, get_usage_accountant
from compcoach.schemas.chat import ChatRequest
from compcoach.services.account_store import AccountStore
from compcoach.services.entitlements import check_quota
from compcoach.services.provider_gateway import ProviderGateway
from compcoach.services.usage_accountant import UsageAccountant

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/chat")
def chat(
    request: ChatRequest,
    identity: str = Depends(get_current_identity),
    store: AccountStore = Depends(get_account_store),
    gateway: ProviderGateway = Depends(get_provider_gateway),
    accountant: UsageAccountant = Depends(get_usage_accountant),
):
    """
    Quota-gated proxy to the Anthropic Messages API.

    Order matters: the quota check happens before the upstream call and usage is only
    recorded after the upstream call succeeded. Any failure in between leaves usage alone.
    """
    account = store.get_or_create(identity)

    decision = check_quota(account)
    if isinstance(decision, QuotaExceeded):
        logger.info(
            "Chat quota reached for %s (tier=%s, usage=%s/%s)",
            identity, decision.tier, decision.usage_count, decision.quota,
        )
        raise decision

    data = gateway.forward(request.model, request.max_tokens, request.system, request.messages)
    accountant.record_success(identity)

    return JSONResponse(content=data)
