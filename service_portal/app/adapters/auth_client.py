"""
Session provider client for the portal gateway.
"""

from typing import Any, Dict, Mapping, Optional

import httpx

from shared.errors import AuthenticationError
from shared.logging import get_logger

from ..domain.models import Session
from ..domain.normalizer import to_datetime, to_str


class AuthClient:
    """Client for the external session provider."""

    def __init__(self, auth_service_url: str, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.auth_service_url = auth_service_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.logger = get_logger("portal.auth_client")

    async def verify_token(self, token: str) -> Session:
        """Resolve a bearer token into a live :class:`Session`."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.auth_service_url}/auth/verify",
                    json={"token": token}
                )
        except httpx.HTTPError as e:
            self.logger.error("Auth service HTTP error", error=str(e))
            raise AuthenticationError(
                "Auth service unavailable",
                details={"http_error": str(e)}
            )

        if response.status_code != 200:
            raise AuthenticationError(
                f"Auth service error: {response.status_code}",
                details={"status_code": response.status_code}
            )

        try:
            result = response.json()
        except ValueError:
            raise AuthenticationError("Auth service returned an unreadable response")

        if not isinstance(result, dict) or not result.get("valid"):
            error = result.get("error") if isinstance(result, dict) else None
            self.logger.warning("Token validation failed", error=error)
            raise AuthenticationError("Invalid or expired session")

        session = self._to_session(result.get("session"), token)
        if session.is_expired():
            raise AuthenticationError("Session expired")
        return session

    def _to_session(self, raw: Any, token: str) -> Session:
        payload: Mapping[str, Any] = raw if isinstance(raw, dict) else {}
        user: Dict[str, Any] = payload.get("user") if isinstance(payload.get("user"), dict) else {}

        user_id = to_str(user.get("id"))
        if user_id is None:
            raise AuthenticationError("Session has no user")

        return Session(
            user_id=user_id,
            bearer_token=to_str(payload.get("accessToken")) or token,
            third_party_id=to_str(user.get("thirdPartyId")),
            email=to_str(user.get("email")),
            expires_at=to_datetime(payload.get("expires")),
        )
