from fastapi import APIRouter, Depends

from compcoach.dependencies.services import get_waitlist
from compcoach.schemas.waitlist import WaitlistRequest, WaitlistResponse
from compcoach.services.waitlist import WaitlistService

router = APIRouter()


@router.post("/waitlist", response_model=WaitlistResponse)
def join_waitlist(
    request: WaitlistRequest,
    waitlist: WaitlistService = Depends(get_waitlist),
):
    """Public waitlist signup. Signing up twice is acknowledged, not an error."""
    added = waitlist.join(request.email, name=request.name, tier=request.tier)
    if not added:
        return {"success": True, "message": "Already on waitlist!"}
    return {"success": True, "message": "Added to waitlist!"}
