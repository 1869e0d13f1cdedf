"""
Field normalizer for ERP payloads.

The ERP has answered with PascalCase, camelCase and snake_case keys at
different times, sometimes within one payload. Each resource has one alias
table here; every alias tuple is ordered PascalCase, camelCase, snake_case and
the first non-null value wins.

All normalizers are total: any input, including ``None`` or a bare string,
produces a structurally valid canonical record.
"""

from __future__ import annotations

import math
import re
import unicodedata
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .models import (
    BUSINESS_TYPES,
    ApplicationProgress,
    BankDetail,
    Country,
    Currency,
    EncryptedDocument,
    PrequalificationRound,
    RfqAttachment,
    RfqInvitation,
    RfqLineItem,
    RoundCategory,
    Tender,
    TenderBid,
    TenderClarification,
    TenderInvitation,
    ThirdPartyDetails,
    UserProfile,
)


TENDER_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("Id", "ID", "TenderId", "TenderID", "id", "tenderId", "tender_id"),
    "tender_no": ("TenderNo", "TenderNumber", "tenderNo", "tenderNumber", "tender_no", "tender_number"),
    "title": ("Title", "TenderTitle", "title", "tenderTitle", "tender_title"),
    "tender_type": ("TenderType", "tenderType", "tender_type"),
    "status": ("Status", "TenderStatus", "status", "tenderStatus", "tender_status"),
    "tender_category": ("TenderCategory", "tenderCategory", "tender_category", "tenderCategoryRelation"),
    "scope_of_work": ("ScopeOfWork", "scopeOfWork", "scope_of_work"),
    "instructions": ("Instructions", "instructions"),
    "submission_deadline": ("SubmissionDeadline", "submissionDeadline", "submission_deadline"),
    "opening_date": ("OpeningDate", "openingDate", "opening_date"),
    "estimated_value": ("EstimatedValue", "estimatedValue", "estimated_value"),
    "currency": ("Currency", "CurrencyId", "currency", "currencyId", "currency_id"),
    "procurement_mode": ("ProcurementMode", "procurementMode", "procurement_mode"),
}

INVITATION_ALIASES: Dict[str, Sequence[str]] = {
    "invitation_id": ("InvitationID", "InvitationId", "invitationID", "invitationId", "invitation_id", "Id", "id"),
    "tender_id": ("TenderId", "TenderID", "tenderId", "tenderID", "tender_id"),
    "supplier_id": ("SupplierId", "SupplierID", "supplierId", "supplier_id"),
    "response_status": ("ResponseStatus", "responseStatus", "response_status", "status"),
    "invitation_date": ("InvitationDate", "invitationDate", "invitation_date"),
    "response_date": ("ResponseDate", "responseDate", "response_date"),
    "decline_reason": ("DeclineReason", "declineReason", "decline_reason"),
    "confirmation_attachment": ("ConfirmationAttachment", "confirmationAttachment", "confirmation_attachment"),
}

DOCUMENT_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("Id", "DocumentId", "id", "documentId", "document_id"),
    "document_type": ("DocumentType", "documentType", "document_type", "type"),
    "original_file_name": (
        "OriginalFileName", "FileName", "originalFileName", "originalName", "fileName", "filename",
        "original_file_name", "file_name",
    ),
    "file_size": ("FileSize", "fileSize", "size", "file_size"),
    "mime_type": ("MimeType", "mimeType", "mime_type"),
    "checksum": ("Checksum", "checksum"),
    "encryption_key_id": ("EncryptionKeyId", "encryptionKeyId", "encryptionKey", "encryption_key_id"),
    "upload_date": ("UploadDate", "uploadDate", "uploadedAt", "upload_date", "uploaded_at"),
}

BID_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("Id", "BidId", "BidID", "id", "bidId", "bid_id"),
    "tender_id": ("TenderId", "TenderID", "tenderId", "tender_id"),
    "supplier_id": ("SupplierId", "SupplierID", "supplierId", "supplier_id"),
    "bid_amount": ("BidAmount", "bidAmount", "bid_amount"),
    "currency": ("Currency", "currency"),
    "validity_period": ("ValidityPeriod", "validityPeriod", "validity_period"),
    "delivery_period": ("DeliveryPeriod", "deliveryPeriod", "delivery_period"),
    "payment_terms": ("PaymentTerms", "paymentTerms", "payment_terms"),
    "status": ("Status", "status"),
    "submission_date": ("SubmissionDate", "SubmittedAt", "submissionDate", "submittedAt", "submission_date", "submitted_at"),
    "evaluation_score": ("EvaluationScore", "evaluationScore", "evaluation_score"),
    "documents": ("Documents", "BidDocuments", "documents", "bidDocuments", "bid_documents"),
    "compliance_documents": ("ComplianceDocuments", "complianceDocuments", "compliance_documents"),
}

# Single-document bid fields and the document type they imply.
BID_SINGLE_DOCUMENTS: Dict[str, Sequence[str]] = {
    "technical": ("TechnicalProposal", "technicalProposal", "technical_proposal"),
    "financial": ("FinancialProposal", "financialProposal", "financial_proposal"),
    "bond": ("BidBond", "bidBond", "bid_bond"),
}

CLARIFICATION_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("Id", "ClarificationId", "ClarificationID", "id", "clarificationId", "clarification_id"),
    "tender_id": ("TenderId", "TenderID", "tenderId", "tender_id"),
    "supplier_id": ("SupplierId", "SupplierID", "supplierId", "supplier_id"),
    "question": ("Question", "question"),
    "question_date": ("QuestionDate", "questionDate", "question_date"),
    "response": ("Response", "response"),
    "response_date": ("ResponseDate", "responseDate", "response_date"),
    "response_by": ("ResponseBy", "responseBy", "response_by"),
    "status": ("Status", "status"),
    "is_public": ("IsPublic", "isPublic", "is_public"),
    "attachments": ("Attachments", "attachments"),
}

ROUND_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("RoundID", "RoundId", "Id", "roundID", "roundId", "id", "round_id"),
    "title": ("Title", "Name", "title", "name"),
    "status": ("Status", "status"),
    "start_date": ("StartDate", "OpensAt", "startDate", "opensAt", "start_date", "opens_at"),
    "end_date": ("EndDate", "ClosesAt", "endDate", "closesAt", "end_date", "closes_at"),
    "max_vendors": ("MaxVendors", "maxVendors", "max_vendors"),
    "categories": ("Categories", "categories"),
}

CATEGORY_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("CategoryId", "CategoryID", "Id", "categoryId", "id", "category_id"),
    "name": ("CategoryName", "Name", "categoryName", "name", "category_name", "title"),
    "application_status": ("ApplicationStatus", "applicationStatus", "application_status", "status"),
}

PROGRESS_ALIASES: Dict[str, Sequence[str]] = {
    "overall_status": ("OverallStatus", "overallStatus", "overall_status"),
    "categories": ("Categories", "categories"),
}

BANK_DETAIL_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("Id", "BankDetailId", "id", "bankDetailId", "bank_detail_id"),
    "third_party_id": ("ThirdPartyId", "ThirdPartyID", "thirdPartyId", "third_party_id"),
    "bank_name": ("BankName", "bankName", "bank_name"),
    "branch": ("Branch", "BranchName", "branch", "branchName", "branch_name"),
    "account_number": ("AccountNumber", "accountNumber", "account_number"),
    "currency_id": ("CurrencyId", "CurrencyID", "currencyId", "currency_id"),
    "swift_code": ("SwiftCode", "SWIFTCode", "swiftCode", "swift_code"),
}

THIRD_PARTY_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("Id", "ThirdPartyId", "id", "thirdPartyId", "third_party_id"),
    "third_party_name": ("ThirdPartyName", "thirdPartyName", "third_party_name"),
    "trading_name": ("TradingName", "tradingName", "trading_name"),
    "business_type": ("BusinessType", "businessType", "business_type"),
    "registration_number": ("RegistrationNumber", "registrationNumber", "registration_number"),
    "tax_pin": ("TaxPIN", "TaxPin", "taxPIN", "taxPin", "tax_pin"),
    "vat_number": ("VATNumber", "VatNumber", "vatNumber", "vat_number"),
    "country": ("Country", "country"),
    "physical_address": ("PhysicalAddress", "physicalAddress", "physical_address"),
    "email": ("Email", "email"),
    "phone": ("Phone", "phone"),
    "website": ("Website", "website"),
    "approval_status": ("ApprovalStatus", "approvalStatus", "approval_status"),
    "status": ("Status", "status"),
    "third_party_type": ("ThirdPartyType", "thirdPartyType", "third_party_type"),
    "created_on": ("CreatedOn", "createdOn", "created_on", "created_at"),
    "modified_on": ("ModifiedOn", "modifiedOn", "modified_on", "updated_at"),
}

PROFILE_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("Id", "UserProfileId", "id", "userProfileId", "user_profile_id"),
    "user_id": ("UserId", "userId", "user_id"),
    "first_name": ("FirstName", "firstName", "first_name"),
    "last_name": ("LastName", "lastName", "last_name"),
    "email": ("Email", "email"),
    "phone": ("Phone", "phone"),
    "gender": ("Gender", "gender"),
    "image_id": ("ImageId", "imageId", "image_id"),
    "third_party_id": ("ThirdPartyId", "thirdPartyId", "third_party_id"),
    "is_active": ("IsActive", "isActive", "is_active"),
    "is_approved": ("IsApproved", "isApproved", "is_approved"),
    "third_party": ("ThirdParty", "thirdParty", "third_party"),
}

RFQ_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("RFQID", "RfqId", "Id", "rfqId", "id", "rfq_id"),
    "title": ("RFQTitle", "Title", "title", "name", "referenceName"),
    "reference_number": ("RFQRef", "ReferenceNumber", "referenceNumber", "reference", "ref_no", "ref"),
    "status": ("Status", "status"),
    "buyer_name": ("BuyerName", "buyerName", "buyer", "buyer_name"),
    "closing_date": ("ClosingDate", "closingDate", "closeDate", "closing_date", "deadline", "endDate"),
    "description": ("Description", "description", "details"),
    "attachments": ("Attachments", "attachments"),
    "lines": ("Lines", "Items", "lines", "items"),
}

RFQ_LINE_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("RFQLineID", "Id", "rfqLineId", "lineId", "id"),
    "line_number": ("LineNumber", "lineNumber", "line_no"),
    "description": ("Description", "ItemDescription", "description", "itemDescription", "item", "name"),
    "quantity": ("Quantity", "quantity", "qty"),
    "unit_of_measure": ("UOM", "UnitOfMeasure", "unitOfMeasure", "unit", "uomName", "uom"),
    "specification": ("Specification", "specification", "notes", "spec"),
}

RFQ_ATTACHMENT_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("Id", "AttachmentId", "id", "attachmentId", "file_id"),
    "file_name": ("FileName", "fileName", "name", "filename", "title"),
    "url": ("Url", "url", "fileUrl", "downloadUrl", "path"),
}

CURRENCY_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("Id", "CurrencyId", "id", "currencyId", "currency_id"),
    "code": ("Code", "code"),
    "name": ("Name", "name"),
    "symbol": ("Symbol", "symbol"),
    "is_default": ("IsDefault", "isDefault", "is_default"),
}

COUNTRY_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("Id", "CountryId", "id", "countryId", "country_id"),
    "name": ("Name", "CountryName", "name", "countryName", "country_name"),
    "code": ("Code", "ISOCode", "code", "isoCode", "iso2", "iso_code"),
}


TENDER_STATUS_CODES = {
    "pb": "published", "published": "published", "active": "published",
    "dr": "draft", "draft": "draft",
    "cl": "closed", "closed": "closed", "cancelled": "closed", "canceled": "closed",
}
TENDER_TYPE_CODES = {
    "op": "open", "open": "open", "open-to-all": "open",
    "rs": "restricted", "restricted": "restricted",
}
INVITATION_STATUS_CODES = {s: s for s in ("pending", "accepted", "declined", "submitted")}
BID_STATUS_CODES = {s: s for s in ("draft", "submitted", "evaluated", "awarded", "rejected")}
DOCUMENT_TYPE_CODES = {s: s for s in ("technical", "financial", "compliance", "bond", "other")}
CLARIFICATION_STATUS_CODES = {s: s for s in ("pending", "answered", "closed")}
ROUND_STATUS_CODES = {"o": "open", "open": "open", "cl": "closed", "c": "closed", "closed": "closed"}
APPLICATION_STATUS_CODES = {
    "d": "draft", "draft": "draft",
    "s": "submitted", "submitted": "submitted",
    "u": "under_review", "under review": "under_review", "under_review": "under_review",
    "c": "needs_correction", "needs correction": "needs_correction", "needs_correction": "needs_correction",
    "correction": "needs_correction",
    "a": "approved", "approved": "approved",
    "r": "rejected", "rejected": "rejected",
}
PROGRESS_STATUS_CODES = {s: s for s in ("draft", "submitted", "partial", "complete")}
RFQ_STATUS_CODES = {
    "open": "open", "ongoing": "open",
    "closed": "closed",
    "draft": "draft", "drafts": "draft",
    "cancelled": "cancelled", "canceled": "cancelled",
    "submitted": "submitted",
    "partial": "partial",
}
BUSINESS_TYPE_CODES = {
    "sole": 1, "sole proprietorship": 1,
    "partnership": 2,
    "limited": 3, "limited company": 3, "llc": 3, "corporation": 3,
    "non-profit": 4, "nonprofit": 4, "ngo": 4,
    "other": 5,
}


_TRUE_STRINGS = {"true", "1", "yes", "y", "on"}
_FALSE_STRINGS = {"false", "0", "no", "n", "off", ""}
_SLUG_STRIP = re.compile(r"[^a-z0-9]+")


def pick(raw: Mapping[str, Any], aliases: Iterable[str], default: Any = None) -> Any:
    """Return the first non-null value among ``aliases``."""
    for alias in aliases:
        value = raw.get(alias)
        if value is not None:
            return value
    return default


def as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def to_str(value: Any, default: Optional[str] = None) -> Optional[str]:
    if value is None or isinstance(value, (bool, Mapping, list, tuple)):
        return default
    if isinstance(value, float):
        if not math.isfinite(value):
            return default
        if value.is_integer():
            return str(int(value))
    try:
        text = str(value).strip()
    except ValueError:
        # ints beyond the interpreter's digit limit
        return default
    return text if text else default


def to_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        try:
            result = float(value)
        except OverflowError:
            return default
    elif isinstance(value, str):
        try:
            result = float(value.strip().replace(",", ""))
        except ValueError:
            return default
    else:
        return default
    return result if math.isfinite(result) else default


def to_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    number = to_float(value)
    if number is None or not number.is_integer():
        return default
    return int(number)


def to_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, float) and math.isfinite(value):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return default


def to_enum(value: Any, codes: Mapping[str, str], default: str) -> str:
    if not isinstance(value, str):
        return default
    return codes.get(value.strip().lower(), default)


def to_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        candidate = value.strip()
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        if "T" not in candidate and " " in candidate:
            candidate = candidate.replace(" ", "T", 1)
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        # offset pushes the instant outside years 1..9999
        return None


def to_iso(value: Any) -> Optional[str]:
    """Render timestamps as UTC ISO-8601 with millisecond precision, or ``None``."""
    parsed = to_datetime(value)
    if parsed is None:
        return None
    return parsed.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_business_type(value: Any) -> Optional[int]:
    """Numeric business type code from a code or its text label."""
    code = to_int(value)
    if code is None and isinstance(value, str):
        code = BUSINESS_TYPE_CODES.get(value.strip().lower())
    return code if code in BUSINESS_TYPES else None


def to_letter_flag(value: Any, letter: str) -> int:
    """1 when ``value`` is the single-letter code ``letter`` (or already 1), else 0."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return 1 if value == 1 else 0
    text = to_str(value)
    return 1 if text is not None and text.upper() in (letter, "1") else 0


def to_str_list(value: Any) -> tuple:
    if isinstance(value, (list, tuple)):
        return tuple(text for text in (to_str(item) for item in value) if text)
    text = to_str(value)
    return (text,) if text else ()


def canonical_key(value: Any) -> Optional[int]:
    """Integer form of a foreign key, or ``None`` when it is not one."""
    return to_int(value)


def slugify(text: Any, max_length: int = 48) -> str:
    raw = to_str(text, "") or ""
    ascii_text = unicodedata.normalize("NFKD", raw).encode("ascii", "ignore").decode("ascii")
    slug = _SLUG_STRIP.sub("-", ascii_text.lower()).strip("-")
    return slug[:max_length].rstrip("-")


class IdAllocator:
    """Issues identifiers that are unique within one response batch."""

    def __init__(self) -> None:
        self._issued: Set[str] = set()

    def claim(self, value: str) -> str:
        self._issued.add(value)
        return value

    def synthesize(self, label: Any, position: int, fallback_label: str) -> str:
        base = f"{slugify(label) or fallback_label}-{position}"
        candidate = base
        suffix = 2
        while candidate in self._issued:
            candidate = f"{base}-{suffix}"
            suffix += 1
        self._issued.add(candidate)
        return candidate

    def resolve(self, raw_id: Any, label: Any, position: int, fallback_label: str) -> str:
        value = to_str(raw_id)
        if value is not None:
            return self.claim(value)
        return self.synthesize(label, position, fallback_label)


def _name_of(value: Any, *keys: str) -> Optional[str]:
    """Strings pass through; relation objects yield their first named key."""
    if isinstance(value, Mapping):
        return to_str(pick(value, keys))
    return to_str(value)


def normalize_tender(raw: Any, ids: Optional[IdAllocator] = None, position: int = 1) -> Tender:
    raw = as_mapping(raw)
    ids = ids or IdAllocator()
    a = TENDER_ALIASES

    tender_no = to_str(pick(raw, a["tender_no"]), "") or ""
    title = to_str(pick(raw, a["title"])) or tender_no or "Untitled tender"

    return Tender(
        id=ids.resolve(pick(raw, a["id"]), title, position, "tender"),
        tender_no=tender_no,
        title=title,
        tender_type=to_enum(pick(raw, a["tender_type"]), TENDER_TYPE_CODES, "open"),
        status=to_enum(pick(raw, a["status"]), TENDER_STATUS_CODES, "draft"),
        tender_category=_name_of(pick(raw, a["tender_category"]), "tenderCategory", "TenderCategory", "name"),
        scope_of_work=to_str(pick(raw, a["scope_of_work"]), "") or "",
        instructions=to_str(pick(raw, a["instructions"]), "") or "",
        submission_deadline=to_iso(pick(raw, a["submission_deadline"])),
        opening_date=to_iso(pick(raw, a["opening_date"])),
        estimated_value=to_float(pick(raw, a["estimated_value"])),
        currency=_name_of(pick(raw, a["currency"]), "code", "Code", "name"),
        procurement_mode=_name_of(pick(raw, a["procurement_mode"]), "name", "Name"),
    )


def normalize_invitation(raw: Any, ids: Optional[IdAllocator] = None, position: int = 1) -> TenderInvitation:
    """Normalize an invitation, unwrapping the ``{invitation, tender}`` pair shape."""
    raw = as_mapping(raw)
    ids = ids or IdAllocator()

    tender_summary = None
    nested = pick(raw, ("Invitation", "invitation"))
    if isinstance(nested, Mapping):
        tender_raw = pick(raw, ("Tender", "tender"))
        if isinstance(tender_raw, Mapping):
            tender_summary = normalize_tender(tender_raw)
        raw = nested

    a = INVITATION_ALIASES
    tender_id = to_str(pick(raw, a["tender_id"]))
    if tender_id is None and tender_summary is not None:
        tender_id = tender_summary.id

    return TenderInvitation(
        invitation_id=ids.resolve(pick(raw, a["invitation_id"]), f"invitation {tender_id or ''}", position, "invitation"),
        tender_id=tender_id,
        supplier_id=to_str(pick(raw, a["supplier_id"])),
        response_status=to_enum(pick(raw, a["response_status"]), INVITATION_STATUS_CODES, "pending"),
        invitation_date=to_iso(pick(raw, a["invitation_date"])),
        response_date=to_iso(pick(raw, a["response_date"])),
        decline_reason=to_str(pick(raw, a["decline_reason"])),
        confirmation_attachment=to_str(pick(raw, a["confirmation_attachment"])),
        tender=tender_summary,
    )


def normalize_document(
    raw: Any,
    ids: Optional[IdAllocator] = None,
    position: int = 1,
    implied_type: Optional[str] = None,
) -> EncryptedDocument:
    raw = as_mapping(raw)
    ids = ids or IdAllocator()
    a = DOCUMENT_ALIASES

    file_name = to_str(pick(raw, a["original_file_name"]))
    document_type = pick(raw, a["document_type"]) or implied_type
    file_size = to_int(pick(raw, a["file_size"]), 0) or 0

    return EncryptedDocument(
        id=ids.resolve(pick(raw, a["id"]), file_name, position, "document"),
        document_type=to_enum(document_type, DOCUMENT_TYPE_CODES, "other"),
        original_file_name=file_name,
        file_size=max(file_size, 0),
        mime_type=to_str(pick(raw, a["mime_type"])),
        checksum=to_str(pick(raw, a["checksum"])),
        encryption_key_id=to_str(pick(raw, a["encryption_key_id"])),
        upload_date=to_iso(pick(raw, a["upload_date"])),
    )


def _bid_documents(raw: Mapping[str, Any]) -> tuple:
    documents = DocumentBatch()
    for item in _as_list(pick(raw, BID_ALIASES["documents"])):
        documents.add(item)
    for item in _as_list(pick(raw, BID_ALIASES["compliance_documents"])):
        documents.add(item, implied_type="compliance")
    for document_type, aliases in BID_SINGLE_DOCUMENTS.items():
        single = pick(raw, aliases)
        if isinstance(single, Mapping):
            documents.add(single, implied_type=document_type)
    return tuple(documents.items)


def normalize_bid(raw: Any, ids: Optional[IdAllocator] = None, position: int = 1) -> TenderBid:
    raw = as_mapping(raw)
    ids = ids or IdAllocator()
    a = BID_ALIASES
    tender_id = to_str(pick(raw, a["tender_id"]))

    return TenderBid(
        id=ids.resolve(pick(raw, a["id"]), f"bid {tender_id or ''}", position, "bid"),
        tender_id=tender_id,
        supplier_id=to_str(pick(raw, a["supplier_id"])),
        bid_amount=to_float(pick(raw, a["bid_amount"]), 0.0),
        currency=to_str(pick(raw, a["currency"])),
        validity_period=max(to_int(pick(raw, a["validity_period"]), 0), 0),
        delivery_period=max(to_int(pick(raw, a["delivery_period"]), 0), 0),
        payment_terms=to_str(pick(raw, a["payment_terms"])),
        status=to_enum(pick(raw, a["status"]), BID_STATUS_CODES, "draft"),
        submission_date=to_iso(pick(raw, a["submission_date"])),
        evaluation_score=to_float(pick(raw, a["evaluation_score"])),
        documents=_bid_documents(raw),
    )


def normalize_clarification(raw: Any, ids: Optional[IdAllocator] = None, position: int = 1) -> TenderClarification:
    raw = as_mapping(raw)
    ids = ids or IdAllocator()
    a = CLARIFICATION_ALIASES
    question = to_str(pick(raw, a["question"]), "") or ""

    return TenderClarification(
        id=ids.resolve(pick(raw, a["id"]), question, position, "clarification"),
        tender_id=to_str(pick(raw, a["tender_id"])),
        supplier_id=to_str(pick(raw, a["supplier_id"])),
        question=question,
        question_date=to_iso(pick(raw, a["question_date"])),
        response=to_str(pick(raw, a["response"])),
        response_date=to_iso(pick(raw, a["response_date"])),
        response_by=to_str(pick(raw, a["response_by"])),
        status=to_enum(pick(raw, a["status"]), CLARIFICATION_STATUS_CODES, "pending"),
        is_public=to_bool(pick(raw, a["is_public"]), False),
        attachments=to_str_list(pick(raw, a["attachments"])),
    )


def normalize_category(raw: Any, ids: Optional[IdAllocator] = None, position: int = 1) -> RoundCategory:
    if isinstance(raw, str):
        raw = {"name": raw}
    raw = as_mapping(raw)
    ids = ids or IdAllocator()
    a = CATEGORY_ALIASES
    name = to_str(pick(raw, a["name"])) or "Uncategorised"

    return RoundCategory(
        id=ids.resolve(pick(raw, a["id"]), name, position, "category"),
        name=name,
        application_status=to_enum(pick(raw, a["application_status"]), APPLICATION_STATUS_CODES, "draft"),
    )


def _categories(value: Any) -> tuple:
    ids = IdAllocator()
    return tuple(normalize_category(item, ids, index) for index, item in enumerate(_as_list(value), start=1))


def normalize_round(raw: Any, ids: Optional[IdAllocator] = None, position: int = 1) -> PrequalificationRound:
    raw = as_mapping(raw)
    ids = ids or IdAllocator()
    a = ROUND_ALIASES
    raw_id = pick(raw, a["id"])
    title = to_str(pick(raw, a["title"])) or to_str(raw_id) or "Prequalification round"

    return PrequalificationRound(
        id=ids.resolve(raw_id, title, position, "round"),
        title=title,
        status=to_enum(pick(raw, a["status"]), ROUND_STATUS_CODES, "closed"),
        start_date=to_iso(pick(raw, a["start_date"])),
        end_date=to_iso(pick(raw, a["end_date"])),
        max_vendors=max(to_int(pick(raw, a["max_vendors"]), 0), 0),
        categories=_categories(pick(raw, a["categories"])),
    )


def normalize_progress(raw: Any, round_id: str) -> ApplicationProgress:
    raw = as_mapping(raw)
    inner = raw.get("data")
    if isinstance(inner, Mapping):
        raw = inner
    a = PROGRESS_ALIASES

    return ApplicationProgress(
        round_id=round_id,
        overall_status=to_enum(pick(raw, a["overall_status"]), PROGRESS_STATUS_CODES, "draft"),
        categories=_categories(pick(raw, a["categories"])),
    )


def normalize_bank_detail(raw: Any, ids: Optional[IdAllocator] = None, position: int = 1) -> BankDetail:
    raw = as_mapping(raw)
    nested = pick(raw, ("BankDetail", "bankDetail", "bank_detail"))
    if isinstance(nested, Mapping):
        raw = nested
    ids = ids or IdAllocator()
    a = BANK_DETAIL_ALIASES
    bank_name = to_str(pick(raw, a["bank_name"]), "") or ""

    return BankDetail(
        id=ids.resolve(pick(raw, a["id"]), bank_name, position, "bank-detail"),
        third_party_id=to_str(pick(raw, a["third_party_id"])),
        bank_name=bank_name,
        branch=to_str(pick(raw, a["branch"]), "") or "",
        account_number=to_str(pick(raw, a["account_number"]), "") or "",
        currency_id=to_int(pick(raw, a["currency_id"])),
        swift_code=to_str(pick(raw, a["swift_code"])),
    )


_PROFILE_KEYS = ("UserProfile", "userProfile", "user_profile")


def _containers(payload: Any) -> List[Mapping[str, Any]]:
    """The payload and its ``data`` member, whichever are mappings."""
    payload = as_mapping(payload)
    found = [payload] if payload else []
    inner = payload.get("data")
    if isinstance(inner, Mapping) and inner:
        found.append(inner)
    return found


def extract_profile(payload: Any) -> Optional[Mapping[str, Any]]:
    """Locate the user profile in a profile response, or ``None``."""
    for candidate in _containers(payload):
        nested = pick(candidate, _PROFILE_KEYS)
        if isinstance(nested, Mapping):
            return nested
        if pick(candidate, PROFILE_ALIASES["first_name"]) is not None:
            return candidate
    return None


def extract_third_party(payload: Any) -> Optional[Mapping[str, Any]]:
    """Locate the company record: ``userProfile.thirdParty``, ``thirdParty`` or a bare record."""
    profile = extract_profile(payload)
    if profile is not None:
        nested = pick(profile, PROFILE_ALIASES["third_party"])
        if isinstance(nested, Mapping):
            return nested
    for candidate in _containers(payload):
        nested = pick(candidate, PROFILE_ALIASES["third_party"])
        if isinstance(nested, Mapping):
            return nested
        if pick(candidate, THIRD_PARTY_ALIASES["third_party_name"]) is not None:
            return candidate
    return None


def extract_rfq(payload: Any) -> Optional[Mapping[str, Any]]:
    containers = _containers(payload)
    return containers[-1] if containers else None


def normalize_third_party(raw: Any, ids: Optional[IdAllocator] = None, position: int = 1) -> ThirdPartyDetails:
    raw = extract_third_party(raw) or as_mapping(raw)
    ids = ids or IdAllocator()
    a = THIRD_PARTY_ALIASES
    name = to_str(pick(raw, a["third_party_name"]), "") or ""

    return ThirdPartyDetails(
        id=ids.resolve(pick(raw, a["id"]), name, position, "third-party"),
        third_party_name=name,
        trading_name=to_str(pick(raw, a["trading_name"])),
        business_type=to_business_type(pick(raw, a["business_type"])) or 5,
        registration_number=to_str(pick(raw, a["registration_number"])),
        tax_pin=to_str(pick(raw, a["tax_pin"])),
        vat_number=to_str(pick(raw, a["vat_number"])),
        country=to_str(pick(raw, a["country"])),
        physical_address=to_str(pick(raw, a["physical_address"])),
        email=to_str(pick(raw, a["email"])),
        phone=to_str(pick(raw, a["phone"])),
        website=to_str(pick(raw, a["website"])),
        approval_status=to_letter_flag(pick(raw, a["approval_status"]), "A"),
        status=to_letter_flag(pick(raw, a["status"]), "A"),
        third_party_type=to_letter_flag(pick(raw, a["third_party_type"]), "S"),
        created_on=to_iso(pick(raw, a["created_on"])),
        modified_on=to_iso(pick(raw, a["modified_on"])),
    )


def normalize_profile(raw: Any, ids: Optional[IdAllocator] = None, position: int = 1) -> UserProfile:
    raw = extract_profile(raw) or as_mapping(raw)
    ids = ids or IdAllocator()
    a = PROFILE_ALIASES
    first_name = to_str(pick(raw, a["first_name"]), "") or ""
    last_name = to_str(pick(raw, a["last_name"]), "") or ""
    company = pick(raw, a["third_party"])

    return UserProfile(
        id=ids.resolve(pick(raw, a["id"]), f"{first_name} {last_name}", position, "profile"),
        user_id=to_str(pick(raw, a["user_id"])),
        first_name=first_name,
        last_name=last_name,
        email=to_str(pick(raw, a["email"])),
        phone=to_str(pick(raw, a["phone"])),
        gender=to_str(pick(raw, a["gender"])),
        image_id=to_str(pick(raw, a["image_id"])),
        third_party_id=to_str(pick(raw, a["third_party_id"])),
        is_active=to_bool(pick(raw, a["is_active"]), False),
        is_approved=to_bool(pick(raw, a["is_approved"]), False),
        third_party=normalize_third_party(company) if isinstance(company, Mapping) else None,
    )


def normalize_rfq(raw: Any, ids: Optional[IdAllocator] = None, position: int = 1) -> RfqInvitation:
    """Normalize an RFQ from a list row, ``{rfq, lines}`` or ``{header, items}``."""
    container = as_mapping(raw)
    inner = container.get("data")
    if isinstance(inner, Mapping):
        container = inner
    header = pick(container, ("rfq", "header", "invitation"))
    if not isinstance(header, Mapping):
        header = container
    ids = ids or IdAllocator()
    a = RFQ_ALIASES

    reference = to_str(pick(header, a["reference_number"])) or "-"
    title = to_str(pick(header, a["title"])) or "Untitled RFQ"
    line_ids = IdAllocator()
    lines = _as_list(pick(container, a["lines"])) or _as_list(pick(header, a["lines"]))
    attachment_ids = IdAllocator()

    return RfqInvitation(
        id=ids.resolve(pick(header, a["id"]), reference if reference != "-" else title, position, "rfq"),
        title=title,
        reference_number=reference,
        status=to_enum(pick(header, a["status"]), RFQ_STATUS_CODES, "open"),
        buyer_name=to_str(pick(header, a["buyer_name"])),
        closing_date=to_iso(pick(header, a["closing_date"])),
        description=to_str(pick(header, a["description"])),
        attachments=tuple(
            _rfq_attachment(item, attachment_ids, index)
            for index, item in enumerate(_as_list(pick(header, a["attachments"])), start=1)
        ),
        lines=tuple(_rfq_line(item, line_ids, index) for index, item in enumerate(lines, start=1)),
    )


def _rfq_line(raw: Any, ids: IdAllocator, position: int) -> RfqLineItem:
    raw = as_mapping(raw)
    a = RFQ_LINE_ALIASES
    description = to_str(pick(raw, a["description"]), "") or ""
    return RfqLineItem(
        id=ids.resolve(pick(raw, a["id"]), description, position, "line"),
        line_number=to_int(pick(raw, a["line_number"]), position) or position,
        description=description,
        quantity=max(to_float(pick(raw, a["quantity"]), 0.0), 0.0),
        unit_of_measure=to_str(pick(raw, a["unit_of_measure"]), "") or "",
        specification=to_str(pick(raw, a["specification"])),
    )


def _rfq_attachment(raw: Any, ids: IdAllocator, position: int) -> RfqAttachment:
    raw = as_mapping(raw)
    a = RFQ_ATTACHMENT_ALIASES
    file_name = to_str(pick(raw, a["file_name"])) or "Document"
    return RfqAttachment(
        id=ids.resolve(pick(raw, a["id"]), file_name, position, "attachment"),
        file_name=file_name,
        url=to_str(pick(raw, a["url"])),
    )


def normalize_currency(raw: Any, ids: Optional[IdAllocator] = None, position: int = 1) -> Currency:
    raw = as_mapping(raw)
    ids = ids or IdAllocator()
    a = CURRENCY_ALIASES
    code = (to_str(pick(raw, a["code"]), "") or "").upper()
    symbol = to_str(pick(raw, a["symbol"])) or code

    return Currency(
        id=ids.resolve(pick(raw, a["id"]), code, position, "currency"),
        code=code,
        name=to_str(pick(raw, a["name"])) or symbol,
        symbol=symbol,
        # the ERP marks the shilling by symbol only
        is_default=to_bool(pick(raw, a["is_default"]), False) or symbol.lower() == "ksh",
    )


def normalize_country(raw: Any, ids: Optional[IdAllocator] = None, position: int = 1) -> Country:
    if isinstance(raw, str):
        raw = {"name": raw}
    raw = as_mapping(raw)
    ids = ids or IdAllocator()
    a = COUNTRY_ALIASES
    name = to_str(pick(raw, a["name"]), "") or ""
    code = to_str(pick(raw, a["code"]))

    return Country(
        id=ids.resolve(pick(raw, a["id"]), name, position, "country"),
        name=name,
        code=code.upper() if code else None,
    )


class DocumentBatch:
    """Accumulates bid documents under one id allocator."""

    def __init__(self) -> None:
        self.ids = IdAllocator()
        self.items: List[EncryptedDocument] = []

    def add(self, raw: Any, implied_type: Optional[str] = None) -> None:
        self.items.append(normalize_document(raw, self.ids, len(self.items) + 1, implied_type))


NORMALIZERS: Dict[str, Callable[..., Any]] = {
    "tender": normalize_tender,
    "invitation": normalize_invitation,
    "bid": normalize_bid,
    "document": normalize_document,
    "clarification": normalize_clarification,
    "round": normalize_round,
    "bank_detail": normalize_bank_detail,
    "third_party": normalize_third_party,
    "profile": normalize_profile,
    "rfq": normalize_rfq,
    "currency": normalize_currency,
    "country": normalize_country,
}


def normalize(kind: str, raw: Any, ids: Optional[IdAllocator] = None, position: int = 1) -> Any:
    """Normalize one raw record of ``kind``."""
    try:
        normalizer = NORMALIZERS[kind]
    except KeyError:
        raise ValueError(f"Unknown resource kind: {kind}") from None
    return normalizer(raw, ids, position)


ID_ALIASES: Dict[str, Sequence[str]] = {
    "tender": TENDER_ALIASES["id"],
    "invitation": INVITATION_ALIASES["invitation_id"],
    "bid": BID_ALIASES["id"],
    "document": DOCUMENT_ALIASES["id"],
    "clarification": CLARIFICATION_ALIASES["id"],
    "round": ROUND_ALIASES["id"],
    "bank_detail": BANK_DETAIL_ALIASES["id"],
    "third_party": THIRD_PARTY_ALIASES["id"],
    "profile": PROFILE_ALIASES["id"],
    "rfq": RFQ_ALIASES["id"],
    "currency": CURRENCY_ALIASES["id"],
    "country": COUNTRY_ALIASES["id"],
}


def _present_id(kind: str, raw: Any) -> Optional[str]:
    raw = as_mapping(raw)
    if kind == "invitation":
        nested = pick(raw, ("Invitation", "invitation"))
        if isinstance(nested, Mapping):
            raw = nested
    return to_str(pick(raw, ID_ALIASES.get(kind, ())))


def normalize_batch(kind: str, records: Iterable[Any]) -> List[Any]:
    """Normalize a batch; synthesized ids never collide with any id in the batch.

    Ids supplied by the ERP are reserved before any id is synthesized, so a
    synthesized id cannot shadow a real one appearing later in the batch.
    """
    records = list(records)
    ids = IdAllocator()
    for record in records:
        present = _present_id(kind, record)
        if present is not None:
            ids.claim(present)
    return [normalize(kind, record, ids, index) for index, record in enumerate(records, start=1)]


def _as_list(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


@dataclass
class RawCollection:
    """A collection payload as received, before normalization.

    ``recognized`` is False when the body matched none of the known shapes.
    """

    records: List[Any] = field(default_factory=list)
    total: Optional[int] = None
    page: Optional[int] = None
    limit: Optional[int] = None
    meta: Dict[str, Any] = field(default_factory=dict)
    recognized: bool = True


_PAGING_KEYS = ("data", "total", "page", "current_page", "limit", "per_page", "perPage", "pageSize")


def parse_collection(payload: Any) -> RawCollection:
    """Classify an upstream list payload into a :class:`RawCollection`."""
    if isinstance(payload, list):
        return RawCollection(records=list(payload))

    if isinstance(payload, Mapping):
        data = payload.get("data")
        meta = {key: value for key, value in payload.items() if key not in _PAGING_KEYS}
        if isinstance(data, list):
            return RawCollection(
                records=list(data),
                total=to_int(payload.get("total")),
                page=to_int(pick(payload, ("page", "current_page"))),
                limit=to_int(pick(payload, ("limit", "per_page", "perPage", "pageSize"))),
                meta=meta,
            )
        if isinstance(data, Mapping) and isinstance(data.get("data"), list):
            # Laravel paginator wrapped in a response envelope
            inner = parse_collection(data)
            inner.meta = {**meta, **inner.meta}
            return inner

    return RawCollection(recognized=False)


def parse_record(payload: Any) -> Dict[str, Any]:
    """Extract the single record from a write response."""
    if isinstance(payload, Mapping):
        data = payload.get("data")
        if isinstance(data, Mapping):
            return dict(data)
        return dict(payload)
    return {}
