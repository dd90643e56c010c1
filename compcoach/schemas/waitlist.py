from pydantic import BaseModel
from typing import Optional


class WaitlistRequest(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    tier: Optional[str] = None


class WaitlistResponse(BaseModel):
    success: bool
    message: str
