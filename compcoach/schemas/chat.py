from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, List, Optional


class ChatRequest(BaseModel):
    # Extra Anthropic fields are not forwarded
    model_config = ConfigDict(extra="ignore", protected_namespaces=())

    model: Optional[str] = None
    max_tokens: Optional[int] = None
    system: Optional[Any] = None  # Plain string or list of content blocks
    messages: List[Dict[str, Any]]
