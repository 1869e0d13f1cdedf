"""
Unit tests for the session provider client.
"""

import httpx
import pytest

from service_portal.app.adapters.auth_client import AuthClient
from shared.errors import AuthenticationError
from shared.test_helpers import TestDataFactory


def _client(handler):
    return AuthClient("http://auth.test", transport=httpx.MockTransport(handler))


class TestAuthClient:
    """Token verification against the session provider."""

    @pytest.fixture
    def user(self):
        return TestDataFactory.create_test_users()[0]

    @pytest.mark.asyncio
    async def test_valid_token(self, user):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=TestDataFactory.create_verify_response(user))

        session = await _client(handler).verify_token("portal-token")

        assert seen[0].url.path == "/auth/verify"
        assert session.user_id == user.user_id
        assert session.third_party_id == "42"
        assert session.bearer_token == "erp-access-token"
        assert session.expires_at is not None

    @pytest.mark.asyncio
    async def test_invalid_token(self, user):
        payload = TestDataFactory.create_verify_response(user, valid=False)
        client = _client(lambda request: httpx.Response(200, json=payload))

        with pytest.raises(AuthenticationError) as exc_info:
            await client.verify_token("portal-token")
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_session(self, user):
        payload = TestDataFactory.create_verify_response(user, expires_in=-60)
        client = _client(lambda request: httpx.Response(200, json=payload))

        with pytest.raises(AuthenticationError, match="expired"):
            await client.verify_token("portal-token")

    @pytest.mark.asyncio
    async def test_out_of_range_expiry_is_ignored(self, user):
        payload = TestDataFactory.create_verify_response(user)
        payload["session"]["expires"] = "9999-12-31T23:59:59-05:00"
        client = _client(lambda request: httpx.Response(200, json=payload))

        session = await client.verify_token("portal-token")

        assert session.user_id == user.user_id
        assert session.expires_at is None

    @pytest.mark.asyncio
    async def test_provider_error_status(self):
        client = _client(lambda request: httpx.Response(503))
        with pytest.raises(AuthenticationError):
            await client.verify_token("portal-token")

    @pytest.mark.asyncio
    async def test_provider_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(AuthenticationError, match="unavailable"):
            await _client(handler).verify_token("portal-token")

    @pytest.mark.asyncio
    async def test_session_without_user(self):
        client = _client(lambda request: httpx.Response(200, json={"valid": True, "session": {}}))
        with pytest.raises(AuthenticationError, match="no user"):
            await client.verify_token("portal-token")
