"""
Per-resource gateway configuration.

Each ERP collection is described by one :class:`ResourceSpec`; the gateway
itself has no per-resource code paths.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from . import fallback
from .models import Session
from .normalizer import (
    BID_STATUS_CODES,
    CLARIFICATION_STATUS_CODES,
    INVITATION_STATUS_CODES,
    RFQ_STATUS_CODES,
    ROUND_STATUS_CODES,
    TENDER_STATUS_CODES,
    TENDER_TYPE_CODES,
)
from .query import FilterSpec, ListQuery, upstream_params


QueryBuilder = Callable[[ListQuery, Optional[Session]], Dict[str, Any]]
SeedSupplier = Callable[[Mapping[str, str], Optional[Session]], List[Dict[str, Any]]]


def _passthrough(query: ListQuery, session: Optional[Session]) -> Dict[str, Any]:
    return upstream_params(query, exclude=("includeInvitations",))


@dataclass(frozen=True)
class ResourceSpec:
    name: str
    kind: str
    path: str
    seed: SeedSupplier
    timeout: Optional[float] = None
    default_limit: int = 10
    max_limit: int = 100
    search_param: str = "search"
    limit_param: str = "limit"
    search_fields: Tuple[str, ...] = ()
    filters: Tuple[FilterSpec, ...] = ()
    sort_keys: Mapping[str, str] = field(default_factory=dict)
    passthrough: Tuple[str, ...] = ()
    build_params: QueryBuilder = _passthrough


def _invitation_params(query: ListQuery, session: Optional[Session]) -> Dict[str, Any]:
    return {
        "third_party_id": session.third_party_id if session else None,
        "status": query.params.get("status"),
        "page": query.page,
        "limit": query.limit,
    }


def _clarification_params(query: ListQuery, session: Optional[Session]) -> Dict[str, Any]:
    return {
        "tender_id": query.params.get("tenderId"),
        "page": query.page,
        "limit": query.limit,
        "status": query.params.get("status"),
        "third_party_id": session.third_party_id if session else None,
    }


def _bid_params(query: ListQuery, session: Optional[Session]) -> Dict[str, Any]:
    return {
        "third_party_id": session.third_party_id if session else None,
        "tender_id": query.params.get("tenderId"),
        "status": query.params.get("status"),
    }


def _bank_detail_params(query: ListQuery, session: Optional[Session]) -> Dict[str, Any]:
    return {"ThirdPartyId": session.third_party_id if session else None}


def _no_params(query: ListQuery, session: Optional[Session]) -> Dict[str, Any]:
    return {}


TENDERS = ResourceSpec(
    name="tenders",
    kind="tender",
    path="/api/tenders",
    seed=fallback.tender_seeds,
    timeout=10.0,
    search_fields=("title", "tender_no", "scope_of_work"),
    filters=(
        FilterSpec("status", "status", TENDER_STATUS_CODES),
        FilterSpec("tenderType", "tender_type", TENDER_TYPE_CODES),
    ),
    sort_keys={
        "title": "title",
        "tenderNo": "tender_no",
        "submissionDeadline": "submission_deadline",
        "openingDate": "opening_date",
        "estimatedValue": "estimated_value",
    },
)

INVITATIONS = ResourceSpec(
    name="tender-invitations",
    kind="invitation",
    path="/api/tender-invitations",
    seed=fallback.invitation_seeds,
    timeout=10.0,
    filters=(FilterSpec("status", "response_status", INVITATION_STATUS_CODES),),
    passthrough=("supplierInfo",),
    build_params=_invitation_params,
)

CLARIFICATIONS = ResourceSpec(
    name="tender-clarifications",
    kind="clarification",
    path="/api/tender-clarifications",
    seed=fallback.clarification_seeds,
    timeout=20.0,
    default_limit=20,
    filters=(FilterSpec("status", "status", CLARIFICATION_STATUS_CODES),),
    build_params=_clarification_params,
)

BIDS = ResourceSpec(
    name="tender-bids",
    kind="bid",
    path="/api/tender-bids",
    seed=fallback.bid_seeds,
    filters=(FilterSpec("status", "status", BID_STATUS_CODES),),
    build_params=_bid_params,
)

ROUNDS = ResourceSpec(
    name="prequalification-rounds",
    kind="round",
    path="/api/procurement/prequalification/rounds",
    seed=fallback.round_seeds,
    search_param="q",
    limit_param="pageSize",
    search_fields=("title",),
    filters=(FilterSpec("status", "status", ROUND_STATUS_CODES),),
    sort_keys={
        "title": "title",
        "status": "status",
        "startDate": "start_date",
        "endDate": "end_date",
    },
)

RFQS = ResourceSpec(
    name="rfq-suppliers",
    kind="rfq",
    path="/api/procurement/rfq-suppliers",
    seed=fallback.rfq_seeds,
    search_fields=("title", "reference_number"),
    filters=(FilterSpec("status", "status", RFQ_STATUS_CODES),),
    sort_keys={
        "title": "title",
        "referenceNumber": "reference_number",
        "closingDate": "closing_date",
    },
)

BANK_DETAILS = ResourceSpec(
    name="third-parties-bank-details",
    kind="bank_detail",
    path="/api/third-parties-bank-details",
    seed=fallback.bank_detail_seeds,
    search_fields=("bank_name", "branch"),
    build_params=_bank_detail_params,
)

CURRENCIES = ResourceSpec(
    name="currencies",
    kind="currency",
    path="/api/v1/currencies",
    seed=fallback.currency_seeds,
    default_limit=250,
    max_limit=500,
    search_fields=("code", "name"),
    build_params=_no_params,
)

COUNTRIES = ResourceSpec(
    name="countries",
    kind="country",
    path="/api/v1/countries",
    seed=fallback.country_seeds,
    default_limit=250,
    max_limit=500,
    search_fields=("name", "code"),
    sort_keys={"name": "name", "code": "code"},
    build_params=_no_params,
)
