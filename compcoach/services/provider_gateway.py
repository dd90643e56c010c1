"""
Provider Gateway: forwards a chat request to the Anthropic Messages API.

One synchronous call per request. No retries, no streaming, no caching. The upstream
body is handed back untouched on success; failures become UpstreamError carrying the
upstream status and message.
"""
import logging
from typing import Any, Optional

import httpx

from compcoach.core.config import Settings
from compcoach.core.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
GENERIC_FAILURE = "Failed to get response from AI"


class ProviderGateway:
    def __init__(
        self,
        client: httpx.Client,
        api_key: str,
        base_url: str = "https://api.anthropic.com",
        default_model: str = "claude-sonnet-4-20250514",
        default_max_tokens: int = 1000,
        timeout: float = 60.0,
    ):
        self._client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.default_max_tokens = default_max_tokens
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.Client) -> "ProviderGateway":
        return cls(
            client=client,
            api_key=settings.anthropic_api_key,
            base_url=settings.anthropic_base_url,
            default_model=settings.anthropic_model,
            default_max_tokens=settings.anthropic_max_tokens,
            timeout=settings.anthropic_timeout_seconds,
        )

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/v1/messages"

    def _headers(self) -> dict[str, str]:
        return {
            "content-type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def build_payload(
        self,
        model: Optional[str],
        max_tokens: Optional[int],
        system_prompt: Any,
        message_history: list,
    ) -> dict:
        body = {
            "model": model or self.default_model,
            "max_tokens": max_tokens or self.default_max_tokens,
            "messages": message_history,
        }
        if system_prompt is not None:
            body["system"] = system_prompt
        return body

    def forward(
        self,
        model: Optional[str],
        max_tokens: Optional[int],
        system_prompt: Any,
        message_history: list,
    ) -> dict:
        if not self.api_key:
            raise ConfigurationError("Server configuration error: API key not set")

        payload = self.build_payload(model, max_tokens, system_prompt, message_history)
        try:
            response = self._client.post(
                self.messages_url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            logger.error("Anthropic API timed out after %ss: %s", self.timeout, e)
            raise UpstreamError("AI provider timed out", status_code=504) from e
        except httpx.HTTPError as e:
            logger.error("Anthropic API request failed: %s", e)
            raise UpstreamError(GENERIC_FAILURE, status_code=502) from e

        if not response.is_success:
            message = _extract_error_message(response)
            logger.error("Anthropic API error: status=%s message=%s", response.status_code, message)
            raise UpstreamError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            logger.error("Anthropic API returned a non-JSON body (status=%s)", response.status_code)
            raise UpstreamError(GENERIC_FAILURE, status_code=502) from e


def _extract_error_message(response: httpx.Response) -> str:
    # Anthropic error shape: {"type": "error", "error": {"type": "...", "message": "..."}}
    try:
        data = response.json()
    except ValueError:
        return GENERIC_FAILURE
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    return GENERIC_FAILURE
