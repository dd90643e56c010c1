from typing import Optional
import logging

import jwt  # PyJWT
from fastapi import Header, Request

from compcoach.core.config import Settings
from compcoach.core.errors import AuthError, ConfigurationError

logger = logging.getLogger(__name__)


class ClerkVerifier:
    """
    Verifies Clerk session tokens (RS256 JWTs).

    With CLERK_JWT_KEY set, the PEM public key from the Clerk dashboard is used directly
    (networkless). Otherwise the signing keys come from Clerk's JWKS endpoint,
    authenticated with CLERK_SECRET_KEY. PyJWKClient caches the keys between requests.
    """

    def __init__(
        self,
        secret_key: str = "",
        jwt_key: str = "",
        api_url: str = "https://api.clerk.com/v1",
        authorized_parties: Optional[list[str]] = None,
    ):
        self.secret_key = secret_key
        self.jwt_key = jwt_key
        self.api_url = api_url.rstrip("/")
        self.authorized_parties = authorized_parties or []
        self._jwks_client = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClerkVerifier":
        return cls(
            secret_key=settings.clerk_secret_key,
            jwt_key=settings.clerk_jwt_key,
            api_url=settings.clerk_api_url,
            authorized_parties=settings.clerk_authorized_parties,
        )

    def _jwks(self) -> jwt.PyJWKClient:
        if self._jwks_client is None:
            self._jwks_client = jwt.PyJWKClient(
                f"{self.api_url}/jwks",
                headers={"Authorization": f"Bearer {self.secret_key}"},
            )
        return self._jwks_client

    def _signing_key(self, token: str):
        if self.jwt_key:
            return self.jwt_key
        if not self.secret_key:
            raise ConfigurationError("Server misconfiguration: CLERK_SECRET_KEY not set")
        try:
            return self._jwks().get_signing_key_from_jwt(token).key
        except jwt.PyJWKClientError as e:
            logger.error("[AUTH] Could not fetch Clerk signing key: %s", e)
            raise AuthError("Invalid token signature") from e
        except jwt.InvalidTokenError as e:
            # Header is decoded before the key lookup, so malformed tokens fail here
            logger.info("[AUTH] Malformed token: %s", e)
            raise AuthError("Invalid token") from e

    def verify(self, token: str) -> dict:
        """Return the verified claims. Clerk session tokens carry no audience."""
        key = self._signing_key(token)
        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=["RS256"],
                options={"verify_aud": False, "require": ["exp", "sub"]},
                leeway=5,
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthError("Token expired") from e
        except jwt.InvalidTokenError as e:
            logger.info("[AUTH] Token verification failed: %s", e)
            raise AuthError("Invalid token signature") from e

        azp = claims.get("azp")
        if self.authorized_parties and azp and azp not in self.authorized_parties:
            raise AuthError("Invalid authorized party")
        return claims


def bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise AuthError("Missing authorization header")
    if not authorization.startswith("Bearer "):
        raise AuthError("Invalid header format. Expected 'Bearer <token>'")
    token = authorization[len("Bearer "):].strip()
    # Reject common invalid token values sent by the frontend before Clerk has loaded
    if not token or token.lower() in ("null", "undefined", "none"):
        raise AuthError("Missing token")
    return token


def get_current_identity(request: Request, authorization: Optional[str] = Header(None)) -> str:
    """FastAPI dependency: verify the Clerk bearer token and return the Clerk user id."""
    verifier: ClerkVerifier = request.app.state.clerk_verifier
    claims = verifier.verify(bearer_token(authorization))
    return claims["sub"]
