"""
Unit tests for SessionMiddleware.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi import Request

from service_portal.app.domain.auth_middleware import SessionMiddleware, require_third_party
from service_portal.app.domain.models import Session
from shared.errors import AuthenticationError, ValidationError


class TestSessionMiddleware:
    """Test cases for SessionMiddleware."""

    @pytest.fixture
    def session_middleware(self):
        """Create SessionMiddleware instance."""
        return SessionMiddleware(AsyncMock())

    @pytest.fixture
    def mock_request(self):
        """Create mock request."""
        request = MagicMock(spec=Request)
        request.headers = {}
        return request

    @pytest.fixture
    def session(self):
        return Session(user_id="user-1", bearer_token="erp-access-token", third_party_id="42")

    @pytest.mark.asyncio
    async def test_authenticate_request_success(self, session_middleware, mock_request, session):
        """Test successful bearer authentication."""
        mock_request.headers = {"Authorization": "Bearer portal-token"}
        session_middleware.auth_client.verify_token = AsyncMock(return_value=session)

        result = await session_middleware.authenticate_request(mock_request)

        assert result == session
        assert mock_request.state.session == session
        session_middleware.auth_client.verify_token.assert_called_once_with("portal-token")

    @pytest.mark.asyncio
    async def test_missing_header(self, session_middleware, mock_request):
        with pytest.raises(AuthenticationError, match="Authorization header required"):
            await session_middleware.authenticate_request(mock_request)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", ["Basic abc", "Bearer ", "bearer token"])
    async def test_malformed_header(self, session_middleware, mock_request, header):
        mock_request.headers = {"Authorization": header}
        session_middleware.auth_client.verify_token = AsyncMock()

        with pytest.raises(AuthenticationError):
            await session_middleware.authenticate_request(mock_request)
        session_middleware.auth_client.verify_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_provider_rejection_propagates(self, session_middleware, mock_request):
        mock_request.headers = {"Authorization": "Bearer stale"}
        session_middleware.auth_client.verify_token = AsyncMock(
            side_effect=AuthenticationError("Invalid or expired session")
        )

        with pytest.raises(AuthenticationError, match="Invalid or expired session"):
            await session_middleware.authenticate_request(mock_request)


class TestRequireThirdParty:
    def test_returns_id(self):
        assert require_third_party(Session(user_id="u", bearer_token="t", third_party_id="42")) == "42"

    def test_missing_id(self):
        with pytest.raises(ValidationError) as exc_info:
            require_third_party(Session(user_id="u", bearer_token="t"))
        assert exc_info.value.details == {"field": "thirdPartyId"}
