"""
Demo data served when the ERP cannot answer.

Seeds are raw records in the ERP's own mixed casing so they travel through the
same normalize/filter/sort/paginate pipeline as live data. Write synthesizers
build the record the ERP would plausibly have returned.
"""

from __future__ import annotations

import hashlib
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .models import Session


TENDER_SEEDS: Sequence[Dict[str, Any]] = (
    {
        "id": 1,
        "tenderNo": "TND/2025/001",
        "title": "Supply and Delivery of Office Equipment",
        "tenderType": "open",
        "status": "published",
        "tenderCategory": "Goods",
        "scopeOfWork": "Supply of desktop computers, printers and office furniture for head office.",
        "instructions": "Bidders must submit technical and financial proposals separately.",
        "submissionDeadline": "2025-12-15T17:00:00Z",
        "openingDate": "2025-12-16T10:00:00Z",
        "estimatedValue": 2500000,
        "currency": "KES",
        "procurementMode": "Open Tender",
    },
    {
        "Id": 2,
        "TenderNo": "TND/2025/002",
        "Title": "Construction of Storm Water Drainage System",
        "TenderType": "rs",
        "Status": "pb",
        "TenderCategory": "Works",
        "ScopeOfWork": "Design and construction of 4.2 km of storm water drainage in the industrial area.",
        "Instructions": "Restricted to prequalified NCA 3 contractors.",
        "SubmissionDeadline": "2025-12-20T17:00:00Z",
        "OpeningDate": "2025-12-21T10:00:00Z",
        "EstimatedValue": "15000000",
        "Currency": "KES",
        "ProcurementMode": "Restricted Tender",
    },
    {
        "id": 3,
        "tender_no": "TND/2025/003",
        "title": "Supply and Installation of Medical Equipment",
        "tender_type": "op",
        "status": "published",
        "tender_category": "Goods",
        "scope_of_work": "Supply, installation and commissioning of diagnostic imaging equipment.",
        "instructions": "Manufacturer authorisation letters are mandatory.",
        "submission_deadline": "2026-01-10T17:00:00Z",
        "opening_date": "2026-01-11T10:00:00Z",
        "estimated_value": 8500000.0,
        "currency": "KES",
        "procurement_mode": "Open Tender",
    },
)

ROUND_SEEDS: Sequence[Dict[str, Any]] = (
    {
        "roundID": "PQ-2025-01",
        "title": "2025/2026 Supplier Prequalification: Goods",
        "status": "O",
        "startDate": "2025-07-01T00:00:00Z",
        "endDate": "2026-06-30T23:59:59Z",
        "maxVendors": 200,
        "categories": [
            {"categoryId": "G-01", "categoryName": "Office Stationery", "applicationStatus": "A"},
            {"categoryId": "G-02", "categoryName": "ICT Hardware", "applicationStatus": "U"},
            {"categoryId": "G-03", "categoryName": "Furniture and Fittings", "applicationStatus": "D"},
        ],
    },
    {
        "roundID": "PQ-2025-02",
        "title": "2025/2026 Supplier Prequalification: Works",
        "status": "O",
        "startDate": "2025-07-01T00:00:00Z",
        "endDate": "2026-03-31T23:59:59Z",
        "maxVendors": 80,
        "categories": [
            {"categoryId": "W-01", "categoryName": "Civil Works", "applicationStatus": "S"},
            {"categoryId": "W-02", "categoryName": "Electrical Installations", "applicationStatus": "C"},
        ],
    },
    {
        "roundID": "PQ-2024-03",
        "title": "2024/2025 Supplier Prequalification: Consultancy",
        "status": "CL",
        "startDate": "2024-07-01T00:00:00Z",
        "endDate": "2025-06-30T23:59:59Z",
        "maxVendors": 50,
        "categories": [
            {"categoryId": "C-01", "categoryName": "Audit Services", "applicationStatus": "A"},
            {"categoryId": "C-02", "categoryName": "Legal Services", "applicationStatus": "R"},
        ],
    },
    {
        "roundID": "PQ-2024-04",
        "title": "2024/2025 Supplier Prequalification: Services",
        "status": "CL",
        "startDate": "2024-07-01T00:00:00Z",
        "endDate": "2025-06-30T23:59:59Z",
        "maxVendors": 120,
        "categories": [
            {"categoryId": "S-01", "categoryName": "Cleaning Services", "applicationStatus": "D"},
        ],
    },
)

_CLARIFICATION_QUESTIONS = (
    ("Can the submission deadline be extended by two weeks?", "The deadline remains as published.", True),
    ("Are partial bids for individual lots acceptable?", "Yes, bidders may bid for one or more lots.", True),
    ("Is a site visit mandatory before bid submission?", None, False),
    ("Which format is required for the bid security?", "A bank guarantee from a licensed bank.", True),
    ("Should prices include VAT?", None, False),
    ("May bidders propose alternative technical specifications?", "No, only compliant offers will be evaluated.", False),
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def iso(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_iso() -> str:
    return iso(_now())


def local_id(prefix: str) -> str:
    return f"local-{prefix}-{uuid.uuid4().hex[:12]}"


def tender_seeds(params: Mapping[str, str], session: Optional[Session]) -> List[Dict[str, Any]]:
    return [dict(record) for record in TENDER_SEEDS]


def invitation_seeds(params: Mapping[str, str], session: Optional[Session]) -> List[Dict[str, Any]]:
    """Two invitations for the caller: tender 1 pending, tender 2 accepted."""
    supplier_id = session.third_party_id if session else None
    return [
        {
            "invitation": {
                "InvitationID": 1,
                "TenderId": 1,
                "SupplierId": supplier_id,
                "ResponseStatus": "pending",
                "InvitationDate": "2025-11-01T08:00:00Z",
            },
            "tender": dict(TENDER_SEEDS[0]),
        },
        {
            "invitation": {
                "InvitationID": 2,
                "TenderId": 2,
                "SupplierId": supplier_id,
                "ResponseStatus": "accepted",
                "InvitationDate": "2025-11-03T08:00:00Z",
                "ResponseDate": "2025-11-05T14:30:00Z",
            },
            "tender": dict(TENDER_SEEDS[1]),
        },
    ]


def clarification_seeds(params: Mapping[str, str], session: Optional[Session]) -> List[Dict[str, Any]]:
    """Six clarifications bound to the requested tender, dated relative to now."""
    tender_id = params.get("tenderId")
    supplier_id = session.third_party_id if session else None
    now = _now()
    records = []
    for index, (question, response, is_public) in enumerate(_CLARIFICATION_QUESTIONS, start=1):
        asked = now - timedelta(days=10 - index)
        record = {
            "id": index,
            "tenderId": tender_id,
            "supplierId": supplier_id,
            "question": question,
            "questionDate": iso(asked),
            "status": "answered" if response else "pending",
            "isPublic": is_public,
            "attachments": [],
        }
        if response:
            record.update(
                response=response,
                responseDate=iso(asked + timedelta(days=1)),
                responseBy="Procurement Team",
            )
        records.append(record)
    return records


def bid_seeds(params: Mapping[str, str], session: Optional[Session]) -> List[Dict[str, Any]]:
    return []


def round_seeds(params: Mapping[str, str], session: Optional[Session]) -> List[Dict[str, Any]]:
    return [dict(record) for record in ROUND_SEEDS]


def progress_seed(round_id: str) -> Dict[str, Any]:
    for record in ROUND_SEEDS:
        if record["roundID"] == round_id:
            categories = record["categories"]
            break
    else:
        categories = []
    return {"overall_status": "partial" if categories else "draft", "categories": [dict(c) for c in categories]}


RFQ_SEEDS: Sequence[Dict[str, Any]] = (
    {
        "RFQID": "RFQ-2025-014",
        "RFQTitle": "Supply of Printer Toner Cartridges",
        "RFQRef": "RFQ/2025/014",
        "Status": "OPEN",
        "BuyerName": "Central Procurement Unit",
        "ClosingDate": "2025-12-12T12:00:00Z",
        "Description": "Original or compatible toner for the head office printer fleet.",
        "Lines": [
            {"RFQLineID": "L-1", "LineNumber": 1, "Description": "HP 26A black toner", "Quantity": 40, "UOM": "Each"},
            {"RFQLineID": "L-2", "LineNumber": 2, "Description": "HP 410A colour toner set", "Quantity": 12, "UOM": "Set"},
        ],
    },
    {
        "id": "RFQ-2025-015",
        "title": "Routine Servicing of Pool Vehicles",
        "referenceNumber": "RFQ/2025/015",
        "status": "open",
        "buyerName": "Transport Section",
        "closingDate": "2025-12-19T12:00:00Z",
        "attachments": [{"id": "A-1", "fileName": "Vehicle list.pdf", "url": None}],
        "items": [
            {"id": "L-1", "lineNumber": 1, "description": "Minor service, saloon vehicles", "quantity": 8, "unitOfMeasure": "Service"},
            {"id": "L-2", "lineNumber": 2, "description": "Minor service, double cabin pickups", "quantity": 5, "unitOfMeasure": "Service"},
        ],
    },
    {
        "rfq_id": "RFQ-2025-009",
        "title": "Catering for Quarterly Board Meeting",
        "ref": "RFQ/2025/009",
        "status": "closed",
        "closing_date": "2025-10-01T12:00:00Z",
        "lines": [
            {"id": "L-1", "line_no": 1, "description": "Lunch, full board", "qty": 25, "unit": "Pax"},
        ],
    },
)

BANK_DETAIL_SEEDS: Sequence[Dict[str, Any]] = (
    {
        "Id": 1,
        "BankName": "Kenya Commercial Bank",
        "Branch": "Moi Avenue",
        "AccountNumber": "1100223344",
        "CurrencyId": 1,
        "SwiftCode": "KCBLKENX",
    },
    {
        "id": 2,
        "bankName": "Equity Bank",
        "branch": "Upper Hill",
        "accountNumber": "0440299887766",
        "currencyId": 2,
        "swiftCode": "EQBLKENA",
    },
)

CURRENCY_SEEDS: Sequence[Dict[str, Any]] = (
    {"id": 1, "code": "KES", "name": "Kenya Shilling", "symbol": "Ksh"},
    {"id": 2, "code": "USD", "name": "US Dollar", "symbol": "$"},
    {"id": 3, "code": "EUR", "name": "Euro", "symbol": "€"},
    {"id": 4, "code": "GBP", "name": "Pound Sterling", "symbol": "£"},
    {"id": 5, "code": "UGX", "name": "Uganda Shilling", "symbol": "USh"},
    {"id": 6, "code": "TZS", "name": "Tanzania Shilling", "symbol": "TSh"},
)

COUNTRY_SEEDS: Sequence[Dict[str, Any]] = (
    {"id": 1, "name": "Kenya", "code": "KE"},
    {"id": 2, "name": "Uganda", "code": "UG"},
    {"id": 3, "name": "Tanzania", "code": "TZ"},
    {"id": 4, "name": "Rwanda", "code": "RW"},
    {"id": 5, "name": "Burundi", "code": "BI"},
    {"id": 6, "name": "Ethiopia", "code": "ET"},
    {"id": 7, "name": "South Sudan", "code": "SS"},
    {"id": 8, "name": "Somalia", "code": "SO"},
    {"id": 9, "name": "South Africa", "code": "ZA"},
    {"id": 10, "name": "United Kingdom", "code": "GB"},
    {"id": 11, "name": "United States", "code": "US"},
)


def rfq_seeds(params: Mapping[str, str], session: Optional[Session]) -> List[Dict[str, Any]]:
    return [dict(record) for record in RFQ_SEEDS]


def rfq_seed(rfq_id: str) -> Optional[Dict[str, Any]]:
    """The demo RFQ with ``rfq_id`` in detail shape, or ``None``."""
    for record in RFQ_SEEDS:
        if rfq_id in (record.get("RFQID"), record.get("id"), record.get("rfq_id")):
            return {"data": dict(record)}
    return None


def bank_detail_seeds(params: Mapping[str, str], session: Optional[Session]) -> List[Dict[str, Any]]:
    third_party_id = session.third_party_id if session else None
    return [dict(record, ThirdPartyId=third_party_id) for record in BANK_DETAIL_SEEDS]


def currency_seeds(params: Mapping[str, str], session: Optional[Session]) -> List[Dict[str, Any]]:
    return [dict(record) for record in CURRENCY_SEEDS]


def country_seeds(params: Mapping[str, str], session: Optional[Session]) -> List[Dict[str, Any]]:
    return [dict(record) for record in COUNTRY_SEEDS]


def profile_seed(session: Session) -> Dict[str, Any]:
    """A profile response built from what the session knows about the caller."""
    return {
        "userProfile": {
            "id": session.user_id,
            "userId": session.user_id,
            "firstName": "Demo",
            "lastName": "Supplier",
            "email": session.email,
            "thirdPartyId": session.third_party_id,
            "isActive": True,
            "isApproved": True,
            "thirdParty": {
                "id": session.third_party_id,
                "thirdPartyName": "Demo Supplier Ltd",
                "businessType": "limited",
                "country": "Kenya",
                "email": session.email,
                "approvalStatus": "A",
                "status": "A",
                "thirdPartyType": "S",
            },
        }
    }


# Write synthesizers


def synthesize_invitation_response(
    invitation_id: str,
    response_status: str,
    session: Session,
    decline_reason: Optional[str] = None,
    confirmation_attachment: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "invitationId": invitation_id,
        "supplierId": session.third_party_id,
        "responseStatus": response_status,
        "responseDate": iso(_now()),
        "declineReason": decline_reason,
        "confirmationAttachment": confirmation_attachment,
    }


def synthesize_clarification(
    tender_id: str,
    question: str,
    session: Session,
    is_public: bool = False,
    attachments: Sequence[str] = (),
) -> Dict[str, Any]:
    return {
        "id": local_id("clarification"),
        "tenderId": tender_id,
        "supplierId": session.third_party_id,
        "question": question,
        "questionDate": iso(_now()),
        "status": "pending",
        "isPublic": is_public,
        "attachments": list(attachments),
    }


def synthesize_clarification_response(
    clarification_id: str,
    response: str,
    response_by: str,
    status: str = "answered",
    publish_to_all: bool = False,
    attachments: Sequence[str] = (),
) -> Dict[str, Any]:
    return {
        "id": clarification_id,
        "response": response,
        "responseBy": response_by,
        "responseDate": iso(_now()),
        "status": status,
        "isPublic": publish_to_all,
        "attachments": list(attachments),
    }


def synthesize_clarification_publication(clarification_id: str, publish_to_all: bool) -> Dict[str, Any]:
    return {
        "id": clarification_id,
        "isPublic": publish_to_all,
        "status": "answered",
    }


def synthesize_document(file_name: str, content: bytes, mime_type: Optional[str], document_type: str) -> Dict[str, Any]:
    return {
        "id": local_id("document"),
        "documentType": document_type,
        "originalFileName": file_name,
        "fileSize": len(content),
        "mimeType": mime_type,
        "checksum": hashlib.sha256(content).hexdigest(),
        "encryptionKeyId": local_id("key"),
        "uploadDate": iso(_now()),
    }


def synthesize_bid(fields: Mapping[str, Any], session: Session, documents: Sequence[Dict[str, Any]] = ()) -> Dict[str, Any]:
    status = fields.get("status") or "draft"
    return {
        "id": local_id("bid"),
        "tenderId": fields.get("tenderId"),
        "supplierId": session.third_party_id,
        "bidAmount": fields.get("bidAmount"),
        "currency": fields.get("currency"),
        "validityPeriod": fields.get("validityPeriod"),
        "deliveryPeriod": fields.get("deliveryPeriod"),
        "paymentTerms": fields.get("paymentTerms"),
        "status": status,
        "submissionDate": iso(_now()) if status == "submitted" else None,
        "documents": list(documents),
    }


def synthesize_bid_update(bid_id: str, changes: Mapping[str, Any], session: Session) -> Dict[str, Any]:
    record = {"id": bid_id, "supplierId": session.third_party_id, "status": "draft"}
    record.update({key: value for key, value in changes.items() if value is not None})
    return record


def synthesize_bid_submission(bid_id: str, session: Session) -> Dict[str, Any]:
    return {
        "id": bid_id,
        "supplierId": session.third_party_id,
        "status": "submitted",
        "submissionDate": iso(_now()),
    }


def synthesize_application(round_id: str, responses: Sequence[Mapping[str, Any]], session: Session) -> Dict[str, Any]:
    return {
        "id": local_id("application"),
        "round_id": round_id,
        "third_party_id": session.third_party_id,
        "status": "submitted",
        "responses": [dict(response) for response in responses],
        "submitted_at": iso(_now()),
    }


def synthesize_bank_detail(fields: Mapping[str, Any], session: Session, bank_detail_id: Optional[str] = None) -> Dict[str, Any]:
    record = {"Id": bank_detail_id or local_id("bank-detail"), "ThirdPartyId": session.third_party_id}
    record.update({key: value for key, value in fields.items() if value is not None})
    return record


def synthesize_bank_detail_removal(bank_detail_id: str) -> Dict[str, Any]:
    return {"id": bank_detail_id, "deleted": True}


def synthesize_third_party(fields: Mapping[str, Any], session: Session) -> Dict[str, Any]:
    record = {"Id": session.third_party_id, "ModifiedOn": iso(_now())}
    record.update({key: value for key, value in fields.items() if value is not None})
    return record


def synthesize_profile(fields: Mapping[str, Any], session: Session) -> Dict[str, Any]:
    record = dict(profile_seed(session)["userProfile"])
    record.update({key: value for key, value in fields.items() if value is not None})
    return record


def synthesize_rfq_response(rfq_id: str, is_draft: bool) -> Dict[str, Any]:
    return {
        "success": True,
        "responseId": local_id("rfq-response"),
        "rfqId": rfq_id,
        "status": "draft" if is_draft else "submitted",
        "submittedAt": None if is_draft else iso(_now()),
    }
