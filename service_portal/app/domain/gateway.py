"""
Resource gateway: acquire from the ERP, fall back, normalize, merge.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from shared.config import BaseConfig
from shared.errors import NotFoundError, UpstreamRejectedError, UpstreamUnavailableError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..adapters.erp_client import ErpClient, FetchError, UpstreamBadPayload, UpstreamStatusError
from .merger import merge
from .models import Pagination, ResponseEnvelope, Session
from .normalizer import RawCollection, normalize, normalize_batch, normalize_progress, parse_collection, parse_record
from .query import ListQuery, is_server_paged, list_page, server_page
from .resources import ResourceSpec
from . import fallback


@dataclass
class ListResult:
    records: List[Any]
    pagination: Pagination
    fallback: bool = False
    meta: Dict[str, Any] = field(default_factory=dict)

    def envelope(self) -> ResponseEnvelope:
        return ResponseEnvelope(
            data=self.records,
            pagination=self.pagination,
            fallback=self.fallback,
            extra=dict(self.meta),
        )


class ResourceGateway:
    """Orchestrates every portal read and write against the ERP."""

    def __init__(self, erp: ErpClient, config: BaseConfig, metrics: Optional[MetricsCollector] = None):
        self.erp = erp
        self.config = config
        self.metrics = metrics
        self.logger = get_logger("portal.gateway")

    # Reads

    async def acquire(self, spec: ResourceSpec, query: ListQuery, session: Optional[Session]) -> RawCollection:
        """Fetch one collection; raises :class:`FetchError` instead of falling back.

        Without a session the request is sent anonymously.
        """
        payload = await self.erp.request(
            "GET",
            spec.path,
            token=session.bearer_token if session else None,
            params=spec.build_params(query, session),
            timeout=spec.timeout,
            resource=spec.name,
        )
        raw = parse_collection(payload)
        if not raw.recognized:
            raise UpstreamBadPayload("Unrecognized collection payload", self.erp.url_for(spec.path))
        return raw

    def live_result(self, spec: ResourceSpec, raw: RawCollection, query: ListQuery) -> ListResult:
        records = normalize_batch(spec.kind, raw.records)
        if is_server_paged(raw):
            page, pagination = server_page(records, raw, query, spec.search_fields)
        else:
            page, pagination = list_page(records, query, spec.search_fields)
        meta = {key: raw.meta[key] for key in spec.passthrough if key in raw.meta}
        return ListResult(page, pagination, meta=meta)

    def fallback_result(self, spec: ResourceSpec, query: ListQuery, session: Optional[Session], error: FetchError) -> ListResult:
        self._log_fallback(spec.name, error, self.erp.url_for(spec.path))
        records = normalize_batch(spec.kind, spec.seed(query.params, session))
        page, pagination = list_page(records, query, spec.search_fields)
        return ListResult(page, pagination, fallback=True)

    async def fetch_list(self, spec: ResourceSpec, query: ListQuery, session: Optional[Session]) -> ListResult:
        try:
            raw = await self.acquire(spec, query, session)
        except FetchError as exc:
            return self.fallback_result(spec, query, session, exc)
        return self.live_result(spec, raw, query)

    async def list_resource(self, spec: ResourceSpec, query: ListQuery, session: Optional[Session]) -> ResponseEnvelope:
        result = await self.fetch_list(spec, query, session)
        return result.envelope()

    async def list_tenders_with_invitations(
        self,
        tenders: ResourceSpec,
        invitations: ResourceSpec,
        query: ListQuery,
        session: Session,
    ) -> ResponseEnvelope:
        """List tenders with each one's invitation attached.

        Both collections are fetched concurrently. A live tender page with a
        failed invitation fetch merges against no invitations; a fallback
        tender page merges against the fallback invitations. The envelope's
        fallback flag follows the tenders only.
        """
        invitation_query = ListQuery(page=1, limit=invitations.max_limit)
        tender_outcome, invitation_outcome = await asyncio.gather(
            self.acquire(tenders, query, session),
            self._acquire_invitations(invitations, invitation_query, session),
            return_exceptions=True,
        )

        if isinstance(tender_outcome, FetchError):
            tender_result = self.fallback_result(tenders, query, session, tender_outcome)
            invitation_records = self._invitation_seeds(invitations, session)
        elif isinstance(tender_outcome, BaseException):
            raise tender_outcome
        else:
            tender_result = self.live_result(tenders, tender_outcome, query)
            if isinstance(invitation_outcome, FetchError):
                self.logger.warning(
                    "Invitation fetch failed, merging without invitations",
                    reason=invitation_outcome.reason,
                    url=invitation_outcome.url,
                )
                invitation_records = []
            elif isinstance(invitation_outcome, BaseException):
                raise invitation_outcome
            else:
                invitation_records = normalize_batch(invitations.kind, invitation_outcome.records)

        return ResponseEnvelope(
            data=merge(tender_result.records, invitation_records),
            pagination=tender_result.pagination,
            fallback=tender_result.fallback,
        )

    async def _acquire_invitations(self, spec: ResourceSpec, query: ListQuery, session: Session) -> RawCollection:
        if not session.third_party_id:
            return RawCollection()
        return await self.acquire(spec, query, session)

    def _invitation_seeds(self, spec: ResourceSpec, session: Session) -> List[Any]:
        if not session.third_party_id:
            return []
        return normalize_batch(spec.kind, spec.seed({}, session))

    async def check_existing_bid(self, tender_id: str, session: Session) -> Dict[str, Any]:
        """Look up the caller's existing bid on a tender for draft editing."""
        path = "/api/bid-submissions/existing"
        try:
            payload = await self.erp.request(
                "GET",
                path,
                token=session.bearer_token,
                params={"tender_id": tender_id, "third_party_id": session.third_party_id},
                resource="bid-submissions",
            )
        except UpstreamStatusError as exc:
            self.logger.info("No existing bid found", tender_id=tender_id, status_code=exc.status_code)
            return {"success": True, "hasExistingBid": False, "existingBid": None, "message": "No existing bid found"}
        except FetchError as exc:
            self._log_fallback("bid-submissions", exc, self.erp.url_for(path))
            message = "External API not configured" if exc.reason == "not_configured" else "Unable to check existing bids"
            return {
                "success": True,
                "hasExistingBid": False,
                "existingBid": None,
                "message": message,
                "fallback": True,
            }

        existing = payload.get("data") if isinstance(payload, Mapping) else None
        return {
            "success": True,
            "hasExistingBid": bool(existing),
            "existingBid": normalize("bid", existing).to_dict() if isinstance(existing, Mapping) and existing else None,
            "message": payload.get("message") if isinstance(payload, Mapping) else None,
        }

    async def application_progress(self, round_id: str, session: Session) -> ResponseEnvelope:
        path = f"/api/v1/prequalification/applications/{round_id}/progress"
        try:
            payload = await self.erp.request(
                "GET", path, token=session.bearer_token, resource="prequalification-progress"
            )
        except FetchError as exc:
            self._log_fallback("prequalification-progress", exc, self.erp.url_for(path))
            return ResponseEnvelope(data=normalize_progress(fallback.progress_seed(round_id), round_id), fallback=True)
        return ResponseEnvelope(data=normalize_progress(payload, round_id))

    async def fetch_record(
        self,
        resource: str,
        path: str,
        session: Session,
        *,
        kind: str,
        extract: Callable[[Any], Optional[Mapping[str, Any]]],
        seed: Callable[[], Optional[Dict[str, Any]]],
        params: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> ResponseEnvelope:
        """Fetch and normalize one record, falling back to ``seed``.

        A payload ``extract`` cannot find the record in counts as a bad
        payload. A ``None`` seed means the record is unknown and raises
        :class:`NotFoundError`.
        """
        try:
            payload = await self.erp.request(
                "GET",
                path,
                token=session.bearer_token,
                params=params,
                timeout=timeout,
                resource=resource,
            )
            raw = extract(payload)
            if raw is None:
                raise UpstreamBadPayload("Record missing from payload", self.erp.url_for(path))
        except FetchError as exc:
            seeded = seed()
            if seeded is None:
                raise NotFoundError(f"{resource}: record not found", details={"reason": exc.reason})
            self._log_fallback(resource, exc, self.erp.url_for(path))
            return ResponseEnvelope(data=normalize(kind, seeded), fallback=True)
        return ResponseEnvelope(data=normalize(kind, raw))

    async def check_connection(self, session: Session) -> Dict[str, Any]:
        """Report whether the ERP is configured and reachable."""
        user = {"id": session.user_id, "email": session.email, "thirdPartyId": session.third_party_id}
        if not self.erp.configured:
            return {
                "status": "using_mock_data",
                "message": "ERP base URL not configured - using mock data",
                "user": user,
            }
        try:
            payload = await self.erp.request(
                "GET", "/api/health", token=session.bearer_token, timeout=5.0, resource="health"
            )
        except FetchError as exc:
            return {
                "status": "backend_error",
                "message": "External API configured but not accessible",
                "backend_url": self.erp.base_url,
                "error": exc.message,
                "user": user,
            }
        return {
            "status": "backend_connected",
            "message": "Successfully connected to external API",
            "backend_url": self.erp.base_url,
            "backend_response": payload,
            "user": user,
        }

    # Writes

    async def write(
        self,
        resource: str,
        method: str,
        path: str,
        session: Session,
        *,
        synthesize: Optional[Callable[[], Dict[str, Any]]],
        message: str,
        kind: Optional[str] = None,
        json: Any = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[list] = None,
        timeout: Optional[float] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> ResponseEnvelope:
        """Perform one upstream write.

        ERP rejections (4xx other than 408/429) propagate with their status.
        Any other failure applies the configured write-fallback policy; a
        write with no ``synthesize`` is never faked and fails with 503.
        """
        try:
            body = await self.erp.request(
                method,
                path,
                token=session.bearer_token,
                json=json,
                data=data,
                files=files,
                timeout=timeout,
                resource=resource,
            )
        except UpstreamStatusError as exc:
            if exc.is_rejection:
                raise _rejection(exc)
            return self._write_fallback(resource, exc, path, synthesize, message, kind, extra)
        except FetchError as exc:
            return self._write_fallback(resource, exc, path, synthesize, message, kind, extra)

        record = normalize(kind, parse_record(body)) if kind else body
        return ResponseEnvelope(data=record if record is not None else {}, message=message, extra=dict(extra or {}))

    def _write_fallback(
        self,
        resource: str,
        error: FetchError,
        path: str,
        synthesize: Optional[Callable[[], Dict[str, Any]]],
        message: str,
        kind: Optional[str],
        extra: Optional[Dict[str, Any]],
    ) -> ResponseEnvelope:
        if synthesize is None or self.config.write_fallback_mode == "strict":
            self.logger.error(
                "ERP write failed",
                resource=resource,
                reason=error.reason,
                url=self.erp.url_for(path),
            )
            raise UpstreamUnavailableError(resource, error.message, details={"reason": error.reason})

        self._log_fallback(resource, error, self.erp.url_for(path))
        raw = synthesize()
        return ResponseEnvelope(
            data=normalize(kind, raw) if kind else raw,
            fallback=True,
            degraded=True,
            message=f"{message} (demo mode)",
            extra=dict(extra or {}),
        )

    def _log_fallback(self, resource: str, error: FetchError, url: Optional[str]) -> None:
        self.logger.warning(
            "Serving fallback data",
            resource=resource,
            reason=error.reason,
            error=error.message,
            url=url,
        )
        if self.metrics is not None:
            self.metrics.record_fallback(resource, error.reason)


def _rejection(error: UpstreamStatusError) -> UpstreamRejectedError:
    body = error.body if isinstance(error.body, Mapping) else {}
    message = body.get("message") or f"ERP rejected the request with status {error.status_code}"
    errors = body.get("errors") if isinstance(body.get("errors"), Mapping) else None
    details = {key: body[key] for key in ("tender_status", "submission_deadline") if key in body}
    return UpstreamRejectedError(error.status_code, message, errors=errors, details=details)
