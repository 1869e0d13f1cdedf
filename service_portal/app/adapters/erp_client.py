"""
ERP client for the portal gateway.
"""

import time
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.tracing import trace_operation


class FetchError(Exception):
    """An upstream call that produced no usable payload."""

    reason = "upstream_error"

    def __init__(self, message: str, url: Optional[str] = None):
        self.message = message
        self.url = url
        super().__init__(message)


class UpstreamNotConfigured(FetchError):
    reason = "not_configured"


class UpstreamTimeout(FetchError):
    reason = "timeout"


class UpstreamUnreachable(FetchError):
    reason = "unreachable"


class UpstreamBadPayload(FetchError):
    reason = "bad_payload"


class UpstreamStatusError(FetchError):
    reason = "status"

    def __init__(self, status_code: int, body: Any, url: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        super().__init__(f"ERP responded with status {status_code}", url)

    @property
    def is_rejection(self) -> bool:
        """True when the ERP understood the request and refused it."""
        return 400 <= self.status_code < 500 and self.status_code not in (408, 429)


def clean_params(params: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Drop empty and ``"all"`` query values."""
    cleaned: Dict[str, str] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        text = str(value).strip()
        if not text or text.lower() == "all":
            continue
        cleaned[key] = text
    return cleaned


class ErpClient:
    """Single-attempt client for the procurement ERP API."""

    def __init__(
        self,
        base_url: Optional[str],
        timeout: float = 10.0,
        metrics: Optional[MetricsCollector] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = timeout
        self.metrics = metrics
        self.transport = transport
        self.logger = get_logger("portal.erp_client")

    @property
    def configured(self) -> bool:
        return self.base_url is not None

    def url_for(self, path: str) -> Optional[str]:
        if not self.base_url:
            return None
        return f"{self.base_url}{path}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[List[Tuple[str, Tuple[str, bytes, str]]]] = None,
        timeout: Optional[float] = None,
        resource: str = "erp",
    ) -> Any:
        """Execute one upstream request and return the decoded JSON body.

        Raises a :class:`FetchError` subclass for every failure; nothing is
        retried.
        """
        url = self.url_for(path)
        if url is None:
            raise UpstreamNotConfigured("ERP base URL is not configured")

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if files is None and data is None:
            headers["Content-Type"] = "application/json"

        query = clean_params(params)
        started = time.monotonic()
        outcome = "error"

        try:
            with trace_operation("erp.request", **{"http.method": method, "http.url": url, "erp.resource": resource}):
                async with httpx.AsyncClient(timeout=timeout or self.timeout, transport=self.transport) as client:
                    response = await client.request(
                        method,
                        url,
                        params=query or None,
                        headers=headers,
                        json=json,
                        data=data,
                        files=files,
                    )

            if not response.is_success:
                outcome = str(response.status_code)
                self.logger.warning(
                    "ERP request failed",
                    method=method,
                    url=url,
                    status_code=response.status_code,
                    response=response.text[:300],
                )
                raise UpstreamStatusError(response.status_code, _error_body(response), url)

            if not response.content:
                outcome = "ok"
                return None

            try:
                body = response.json()
            except ValueError:
                outcome = "bad_payload"
                raise UpstreamBadPayload("ERP returned a non-JSON body", url)

            outcome = "ok"
            self.logger.debug("ERP request succeeded", method=method, url=url, params=query)
            return body

        except httpx.TimeoutException as exc:
            outcome = "timeout"
            raise UpstreamTimeout(f"ERP request timed out: {exc}", url) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            outcome = "unreachable"
            raise UpstreamUnreachable(f"ERP unreachable: {exc}", url) from exc
        finally:
            if self.metrics is not None:
                self.metrics.record_upstream_call(resource, method, outcome, time.monotonic() - started)


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text[:500]
