"""
Session authentication for the portal gateway.
"""

from fastapi import Request

from shared.errors import AuthenticationError, ValidationError
from shared.logging import get_logger, set_user_context

from ..adapters.auth_client import AuthClient
from .models import Session


class SessionMiddleware:
    """Resolves the caller's session from the bearer token."""

    def __init__(self, auth_client: AuthClient):
        self.auth_client = auth_client
        self.logger = get_logger("portal.auth_middleware")

    async def authenticate_request(self, request: Request) -> Session:
        auth_header = request.headers.get("Authorization")
        if not auth_header:
            raise AuthenticationError("Authorization header required")

        if not auth_header.startswith("Bearer "):
            raise AuthenticationError("Invalid authorization header format")

        token = auth_header[7:].strip()
        if not token:
            raise AuthenticationError("Invalid authorization header format")

        session = await self.auth_client.verify_token(token)
        set_user_context(session.user_id, session.third_party_id)
        request.state.session = session

        self.logger.info(
            "Request authenticated",
            user_id=session.user_id,
            third_party_id=session.third_party_id,
        )
        return session


def require_third_party(session: Session) -> str:
    """Supplier-scoped operations need the caller's third party id."""
    if not session.third_party_id:
        raise ValidationError("Third Party ID not found", field="thirdPartyId")
    return session.third_party_id
