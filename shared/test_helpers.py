"""
Test helper functions and factory methods for the Supplier Portal Access Layer.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx

from shared.config import ServiceConfig, get_config


@dataclass
class TestUser:
    """Test supplier user data."""
    __test__ = False

    user_id: str
    email: str
    third_party_id: Optional[str]
    access_token: str = "erp-access-token"


class TestDataFactory:
    """Factory for creating test data."""
    __test__ = False

    @staticmethod
    def create_test_users() -> List[TestUser]:
        """Create test users."""
        return [
            TestUser(user_id="user-1", email="supplier@example.com", third_party_id="42"),
            TestUser(user_id="user-2", email="buyer@example.com", third_party_id=None),
        ]

    @staticmethod
    def create_verify_response(user: TestUser, expires_in: int = 3600, valid: bool = True) -> Dict[str, Any]:
        """Body returned by the session provider's /auth/verify."""
        expires = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        return {
            "valid": valid,
            "session": {
                "accessToken": user.access_token,
                "user": {
                    "id": user.user_id,
                    "email": user.email,
                    "thirdPartyId": user.third_party_id,
                },
                "expires": expires.isoformat().replace("+00:00", "Z"),
            },
        }

    @staticmethod
    def create_erp_tenders(count: int = 3, status: str = "PB") -> List[Dict[str, Any]]:
        """Tenders in the ERP's PascalCase shape."""
        return [
            {
                "Id": index,
                "TenderNo": f"ERP/T/{index:03d}",
                "Title": f"ERP tender {index}",
                "TenderType": "OP",
                "Status": status,
                "SubmissionDeadline": "2026-03-01 12:00:00",
                "EstimatedValue": str(100000 * index),
                "Currency": {"code": "KES"},
            }
            for index in range(1, count + 1)
        ]

    @staticmethod
    def create_erp_invitations(tender_ids: List[Any], supplier_id: str = "42") -> List[Dict[str, Any]]:
        """Invitations in the ERP's snake_case shape."""
        return [
            {
                "invitation_id": 100 + index,
                "tender_id": tender_id,
                "supplier_id": supplier_id,
                "response_status": "pending",
                "invitation_date": "2026-01-05T09:00:00Z",
            }
            for index, tender_id in enumerate(tender_ids, start=1)
        ]

    @staticmethod
    def create_laravel_page(records: List[Dict[str, Any]], total: int, page: int = 1, per_page: int = 10) -> Dict[str, Any]:
        """A Laravel paginator wrapped in a response envelope."""
        return {
            "success": True,
            "data": {
                "current_page": page,
                "data": records,
                "per_page": per_page,
                "total": total,
            },
        }


class ErpStub:
    """Routes ``httpx.MockTransport`` requests by method and path."""
    __test__ = False

    def __init__(self):
        self.routes: Dict[tuple, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, status_code: int = 200, body: Any = None, raw: Optional[bytes] = None):
        def _respond(request: httpx.Request) -> httpx.Response:
            if raw is not None:
                return httpx.Response(status_code, content=raw)
            return httpx.Response(status_code, content=json.dumps(body).encode())

        self.routes[(method, path)] = _respond
        return self

    def fail(self, method: str, path: str, error: Exception):
        def _raise(request: httpx.Request) -> httpx.Response:
            raise error

        self.routes[(method, path)] = _raise
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            raise httpx.ConnectError("no route to host", request=request)
        return route(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


class TestEnvironment:
    """Test environment configuration."""
    __test__ = False

    @staticmethod
    def get_mock_config(**overrides) -> ServiceConfig:
        """Get mock configuration for testing."""
        settings = {
            "env": "local",
            "log_level": "warning",
            "erp_base_url": "http://erp.test",
            "auth_service_url": "http://auth.test",
            "write_fallback_mode": "demo",
        }
        settings.update(overrides)
        return get_config("portal", 8000, **settings)
