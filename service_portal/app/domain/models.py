"""
Canonical records emitted by the portal gateway.

Every record is built fresh per request by the normalizer and serialized with
camelCase keys, whatever casing the ERP used.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple


TENDER_STATUSES = ("draft", "published", "closed")
TENDER_TYPES = ("open", "restricted")
INVITATION_STATUSES = ("pending", "accepted", "declined", "submitted")
BID_STATUSES = ("draft", "submitted", "evaluated", "awarded", "rejected")
DOCUMENT_TYPES = ("technical", "financial", "compliance", "bond", "other")
CLARIFICATION_STATUSES = ("pending", "answered", "closed")
ROUND_STATUSES = ("open", "closed")
APPLICATION_STATUSES = ("draft", "submitted", "under_review", "needs_correction", "approved", "rejected")
PROGRESS_STATUSES = ("draft", "submitted", "partial", "complete")
RFQ_STATUSES = ("open", "closed", "draft", "cancelled", "submitted", "partial")
# 1 sole proprietorship, 2 partnership, 3 limited company, 4 non-profit, 5 other
BUSINESS_TYPES = (1, 2, 3, 4, 5)


@dataclass(frozen=True)
class Session:
    """Authenticated caller as reported by the session provider."""

    user_id: str
    bearer_token: str
    third_party_id: Optional[str] = None
    email: Optional[str] = None
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return self.expires_at <= now


@dataclass(frozen=True)
class Tender:
    id: str
    tender_no: str
    title: str
    tender_type: str = "open"
    status: str = "draft"
    tender_category: Optional[str] = None
    scope_of_work: str = ""
    instructions: str = ""
    submission_deadline: Optional[str] = None
    opening_date: Optional[str] = None
    estimated_value: Optional[float] = None
    currency: Optional[str] = None
    procurement_mode: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "tenderNo": self.tender_no,
            "title": self.title,
            "tenderType": self.tender_type,
            "status": self.status,
            "tenderCategory": self.tender_category,
            "scopeOfWork": self.scope_of_work,
            "instructions": self.instructions,
            "submissionDeadline": self.submission_deadline,
            "openingDate": self.opening_date,
            "estimatedValue": self.estimated_value,
            "currency": self.currency,
            "procurementMode": self.procurement_mode,
        }


@dataclass(frozen=True)
class TenderInvitation:
    invitation_id: str
    tender_id: Optional[str]
    supplier_id: Optional[str]
    response_status: str = "pending"
    invitation_date: Optional[str] = None
    response_date: Optional[str] = None
    decline_reason: Optional[str] = None
    confirmation_attachment: Optional[str] = None
    tender: Optional[Tender] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "invitationId": self.invitation_id,
            "tenderId": self.tender_id,
            "supplierId": self.supplier_id,
            "responseStatus": self.response_status,
            "invitationDate": self.invitation_date,
            "responseDate": self.response_date,
            "declineReason": self.decline_reason,
            "confirmationAttachment": self.confirmation_attachment,
            "tender": self.tender.to_dict() if self.tender else None,
        }


@dataclass(frozen=True)
class EncryptedDocument:
    """Metadata of an uploaded bid attachment; the content never passes through here."""

    id: str
    document_type: str = "other"
    original_file_name: Optional[str] = None
    file_size: int = 0
    mime_type: Optional[str] = None
    checksum: Optional[str] = None
    encryption_key_id: Optional[str] = None
    upload_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "documentType": self.document_type,
            "originalFileName": self.original_file_name,
            "fileSize": self.file_size,
            "mimeType": self.mime_type,
            "checksum": self.checksum,
            "encryptionKeyId": self.encryption_key_id,
            "uploadDate": self.upload_date,
        }


@dataclass(frozen=True)
class TenderBid:
    id: str
    tender_id: Optional[str]
    supplier_id: Optional[str]
    bid_amount: float = 0.0
    currency: Optional[str] = None
    validity_period: int = 0
    delivery_period: int = 0
    payment_terms: Optional[str] = None
    status: str = "draft"
    submission_date: Optional[str] = None
    evaluation_score: Optional[float] = None
    documents: Tuple[EncryptedDocument, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "tenderId": self.tender_id,
            "supplierId": self.supplier_id,
            "bidAmount": self.bid_amount,
            "currency": self.currency,
            "validityPeriod": self.validity_period,
            "deliveryPeriod": self.delivery_period,
            "paymentTerms": self.payment_terms,
            "status": self.status,
            "submissionDate": self.submission_date,
            "evaluationScore": self.evaluation_score,
            "documents": [document.to_dict() for document in self.documents],
        }


@dataclass(frozen=True)
class TenderClarification:
    id: str
    tender_id: Optional[str]
    question: str = ""
    supplier_id: Optional[str] = None
    question_date: Optional[str] = None
    response: Optional[str] = None
    response_date: Optional[str] = None
    response_by: Optional[str] = None
    status: str = "pending"
    is_public: bool = False
    attachments: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "tenderId": self.tender_id,
            "supplierId": self.supplier_id,
            "question": self.question,
            "questionDate": self.question_date,
            "response": self.response,
            "responseDate": self.response_date,
            "responseBy": self.response_by,
            "status": self.status,
            "isPublic": self.is_public,
            "attachments": list(self.attachments),
        }


@dataclass(frozen=True)
class RoundCategory:
    id: str
    name: str
    application_status: str = "draft"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "applicationStatus": self.application_status,
        }


@dataclass(frozen=True)
class PrequalificationRound:
    id: str
    title: str
    status: str = "closed"
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    max_vendors: int = 0
    categories: Tuple[RoundCategory, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "maxVendors": self.max_vendors,
            "categories": [category.to_dict() for category in self.categories],
        }


@dataclass(frozen=True)
class ApplicationProgress:
    round_id: str
    overall_status: str = "draft"
    categories: Tuple[RoundCategory, ...] = ()

    def summary(self) -> Dict[str, Any]:
        total = len(self.categories)
        approved = sum(1 for c in self.categories if c.application_status == "approved")
        rejected = sum(1 for c in self.categories if c.application_status == "rejected")
        return {
            "totalCategories": total,
            "approvedCategories": approved,
            "rejectedCategories": rejected,
            "pendingCategories": total - approved - rejected,
            "overallProgress": round(100 * (approved + rejected) / total) if total else 0,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roundId": self.round_id,
            "overallStatus": self.overall_status,
            "categories": [category.to_dict() for category in self.categories],
            "summary": self.summary(),
        }


@dataclass(frozen=True)
class BankDetail:
    id: str
    third_party_id: Optional[str] = None
    bank_name: str = ""
    branch: str = ""
    account_number: str = ""
    currency_id: Optional[int] = None
    swift_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "thirdPartyId": self.third_party_id,
            "bankName": self.bank_name,
            "branch": self.branch,
            "accountNumber": self.account_number,
            "currencyId": self.currency_id,
            "swiftCode": self.swift_code,
        }


@dataclass(frozen=True)
class ThirdPartyDetails:
    """Company record of a supplier. Status fields use the portal's numeric codes."""

    id: str
    third_party_name: str = ""
    trading_name: Optional[str] = None
    business_type: int = 5
    registration_number: Optional[str] = None
    tax_pin: Optional[str] = None
    vat_number: Optional[str] = None
    country: Optional[str] = None
    physical_address: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    approval_status: int = 0
    status: int = 0
    third_party_type: int = 0
    created_on: Optional[str] = None
    modified_on: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "thirdPartyName": self.third_party_name,
            "tradingName": self.trading_name,
            "businessType": self.business_type,
            "registrationNumber": self.registration_number,
            "taxPIN": self.tax_pin,
            "vatNumber": self.vat_number,
            "country": self.country,
            "physicalAddress": self.physical_address,
            "email": self.email,
            "phone": self.phone,
            "website": self.website,
            "approvalStatus": self.approval_status,
            "status": self.status,
            "thirdPartyType": self.third_party_type,
            "createdOn": self.created_on,
            "modifiedOn": self.modified_on,
        }


@dataclass(frozen=True)
class UserProfile:
    id: str
    user_id: Optional[str] = None
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    image_id: Optional[str] = None
    third_party_id: Optional[str] = None
    is_active: bool = False
    is_approved: bool = False
    third_party: Optional[ThirdPartyDetails] = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "gender": self.gender,
            "imageId": self.image_id,
            "thirdPartyId": self.third_party_id,
            "isActive": self.is_active,
            "isApproved": self.is_approved,
            "thirdParty": self.third_party.to_dict() if self.third_party else None,
        }


@dataclass(frozen=True)
class RfqAttachment:
    id: str
    file_name: str = "Document"
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "fileName": self.file_name, "url": self.url}


@dataclass(frozen=True)
class RfqLineItem:
    id: str
    line_number: int = 0
    description: str = ""
    quantity: float = 0.0
    unit_of_measure: str = ""
    specification: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "lineNumber": self.line_number,
            "description": self.description,
            "quantity": self.quantity,
            "unitOfMeasure": self.unit_of_measure,
            "specification": self.specification,
        }


@dataclass(frozen=True)
class RfqInvitation:
    """A request for quotation sent to the supplier; list views carry no lines."""

    id: str
    title: str
    reference_number: str = "-"
    status: str = "open"
    buyer_name: Optional[str] = None
    closing_date: Optional[str] = None
    description: Optional[str] = None
    attachments: Tuple[RfqAttachment, ...] = ()
    lines: Tuple[RfqLineItem, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "referenceNumber": self.reference_number,
            "status": self.status,
            "buyerName": self.buyer_name,
            "closingDate": self.closing_date,
            "description": self.description,
            "attachments": [attachment.to_dict() for attachment in self.attachments],
            "lines": [line.to_dict() for line in self.lines],
        }


@dataclass(frozen=True)
class Currency:
    id: str
    code: str = ""
    name: str = ""
    symbol: str = ""
    is_default: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "code": self.code, "name": self.name, "symbol": self.symbol, "isDefault": self.is_default}


@dataclass(frozen=True)
class Country:
    id: str
    name: str = ""
    code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "code": self.code}


@dataclass(frozen=True)
class TenderWithInvitation:
    tender: Tender
    invitation: Optional[TenderInvitation] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = self.tender.to_dict()
        payload["invitation"] = self.invitation.to_dict() if self.invitation else None
        return payload


@dataclass(frozen=True)
class Pagination:
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return math.ceil(self.total / self.limit)

    def to_dict(self) -> Dict[str, int]:
        return {"total": self.total, "page": self.page, "limit": self.limit, "pages": self.pages}


@dataclass
class ResponseEnvelope:
    """Canonical wrapper returned to the portal UI."""

    data: Any
    pagination: Optional[Pagination] = None
    fallback: bool = False
    degraded: bool = False
    message: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"data": _serialize(self.data)}
        if self.pagination is not None:
            payload["pagination"] = self.pagination.to_dict()
        if self.fallback:
            payload["fallback"] = True
        if self.degraded:
            payload["degraded"] = True
        if self.message is not None:
            payload["message"] = self.message
        for key, value in self.extra.items():
            payload.setdefault(key, _serialize(value))
        return payload


def _serialize(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    return value
