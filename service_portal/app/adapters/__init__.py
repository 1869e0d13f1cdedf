"""
Adapters package for the Portal Gateway Service.

Contains HTTP client wrappers for external dependencies (the procurement ERP
and the session provider). Each call is a single attempt; failures map to
shared errors or to classified fetch errors the gateway can fall back on.
"""

from .auth_client import AuthClient
from .erp_client import ErpClient, FetchError

__all__ = [
    "AuthClient",
    "ErpClient",
    "FetchError",
]
