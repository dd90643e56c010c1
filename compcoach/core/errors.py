"""
Error taxonomy for the gateway.

Every failure a handler can surface is a GatewayError carrying the HTTP status it maps
to. The exception handlers registered in compcoach.main turn them into {"error": ...}
JSON bodies. Nothing here is retried.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_body(self) -> dict:
        return {"error": self.message}


class ConfigurationError(GatewayError):
    """A secret or setting required by the endpoint is missing."""
    default_message = "Server configuration error"


class StorageError(GatewayError):
    default_message = "Database error"


class AuthError(GatewayError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthenticated"


class QuotaExceeded(GatewayError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Usage limit reached. Please upgrade your plan."

    def __init__(self, tier: str = "free", quota: int = 0, usage_count: int = 0, message: str | None = None):
        super().__init__(message)
        self.tier = tier
        self.quota = quota
        self.usage_count = usage_count

    def to_body(self) -> dict:
        return {"error": self.message, "limit_reached": True}


class UpstreamError(GatewayError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Failed to get response from AI"


class ValidationError(GatewayError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class WebhookSignatureError(GatewayError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid webhook signature"


class PaymentProviderError(GatewayError):
    default_message = "Payment provider error"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request body")
        if location:
            message = f"{location}: {message}"
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )
