"""
Input validation for portal writes.

Every check raises :class:`shared.errors.ValidationError` naming the offending
field, before any upstream call is made.
"""

import json
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from shared.errors import ValidationError

from .normalizer import (
    CLARIFICATION_STATUS_CODES,
    INVITATION_STATUS_CODES,
    to_business_type,
    to_float,
    to_int,
    to_str,
)
from .schemas import (
    ApplicationRequest,
    BankDetailRequest,
    BidSubmitRequest,
    BidUpdateRequest,
    ClarificationCreateRequest,
    ClarificationRespondRequest,
    InvitationResponseRequest,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    RfqResponseRequest,
    ThirdPartyDetailsRequest,
)


BID_FORM_STATUSES = ("draft", "submitted")

RequestModel = TypeVar("RequestModel", bound=BaseModel)


async def read_json_body(request: Request, model: Type[RequestModel]) -> RequestModel:
    """Parse a JSON object body into ``model``; an empty body yields the defaults.

    Handlers call this after the session check.
    """
    raw = await request.body()
    if not raw.strip():
        return model()
    try:
        payload = json.loads(raw)
    except ValueError:
        raise ValidationError("Invalid JSON body", field="body")
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object", field="body")

    try:
        return model.model_validate(payload)
    except ModelValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
        raise ValidationError(message, field=field)


def _required(value: Any, field: str, message: Optional[str] = None) -> str:
    text = to_str(value)
    if text is None:
        raise ValidationError(message or f"{field} is required", field=field)
    return text


def validate_invitation_response(body: InvitationResponseRequest) -> Tuple[str, str]:
    invitation_id = _required(body.invitation_id, "invitationId")
    raw_status = _required(body.response_status, "responseStatus")

    status = INVITATION_STATUS_CODES.get(raw_status.lower())
    if status is None or status == "pending":
        raise ValidationError(f"Unsupported responseStatus: {raw_status}", field="responseStatus")

    if status == "declined" and to_str(body.decline_reason) is None:
        raise ValidationError("Decline reason is required when declining an invitation", field="declineReason")

    return invitation_id, status


def validate_clarification_create(body: ClarificationCreateRequest) -> Tuple[str, str]:
    tender_id = _required(body.tender_id, "tenderId", "Tender ID is required")
    question = _required(body.question, "question", "Question is required")
    return tender_id, question


def validate_clarification_response(body: ClarificationRespondRequest) -> Tuple[str, str]:
    response = _required(body.response, "response", "Response is required")
    status = "answered"
    if body.status is not None:
        status = CLARIFICATION_STATUS_CODES.get(body.status.strip().lower())
        if status is None:
            raise ValidationError(f"Unsupported status: {body.status}", field="status")
    return response, status


def parse_bid_form(form: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate the scalar fields of a multipart bid submission."""
    tender_id = _required(form.get("tenderId"), "tenderId", "Tender ID is required")

    bid_amount = to_float(form.get("bidAmount"))
    if bid_amount is None or bid_amount < 0:
        raise ValidationError("bidAmount must be a non-negative number", field="bidAmount")

    currency = _required(form.get("currency"), "currency", "Currency is required")

    periods = {}
    for name in ("validityPeriod", "deliveryPeriod"):
        value = to_int(form.get(name))
        if value is None or value < 0:
            raise ValidationError(f"{name} must be a whole number of days", field=name)
        periods[name] = value

    status = (to_str(form.get("status")) or "draft").lower()
    if status not in BID_FORM_STATUSES:
        raise ValidationError("status must be draft or submitted", field="status")

    return {
        "tenderId": tender_id,
        "bidAmount": bid_amount,
        "currency": currency,
        "validityPeriod": periods["validityPeriod"],
        "deliveryPeriod": periods["deliveryPeriod"],
        "paymentTerms": to_str(form.get("paymentTerms")) or "",
        "status": status,
    }


def validate_bid_update(body: BidUpdateRequest) -> Tuple[str, Dict[str, Any]]:
    bid_id = _required(body.bid_id, "bidId", "Bid ID is required")
    changes = {
        "bidAmount": body.bid_amount,
        "validityPeriod": body.validity_period,
        "deliveryPeriod": body.delivery_period,
        "paymentTerms": body.payment_terms,
    }
    for name, value in changes.items():
        if isinstance(value, (int, float)) and value < 0:
            raise ValidationError(f"{name} must not be negative", field=name)
    return bid_id, {name: value for name, value in changes.items() if value is not None}


def validate_bid_submission(body: BidSubmitRequest) -> None:
    if not body.confirm_submission:
        raise ValidationError("Confirmation is required to submit bid", field="confirmSubmission")


def validate_application(body: ApplicationRequest) -> Tuple[str, List[Dict[str, Any]]]:
    round_id = _required(body.round_id, "round_id", "round_id is required")
    if body.responses is None:
        raise ValidationError("responses is required", field="responses")
    return round_id, [answer.model_dump() for answer in body.responses]


# ERP field name for each bank detail request field.
BANK_DETAIL_FIELDS = {
    "bank_name": ("BankName", "bankName"),
    "branch": ("Branch", "branch"),
    "account_number": ("AccountNumber", "accountNumber"),
    "currency_id": ("CurrencyId", "currencyId"),
    "swift_code": ("SwiftCode", "swiftCode"),
}


def validate_bank_detail(body: BankDetailRequest, partial: bool = False) -> Dict[str, Any]:
    """Return the PascalCase ERP payload; ``partial`` accepts any non-empty subset."""
    values = body.model_dump()
    if not partial:
        for name in ("bank_name", "branch", "account_number"):
            _required(values[name], BANK_DETAIL_FIELDS[name][1])
        if body.currency_id is None:
            raise ValidationError("currencyId is required", field="currencyId")
        supplied = BANK_DETAIL_FIELDS.keys()
    else:
        supplied = [name for name in BANK_DETAIL_FIELDS if name in body.model_fields_set]
        if not supplied:
            raise ValidationError("At least one bank detail field is required", field="body")

    if body.currency_id is not None and body.currency_id < 1:
        raise ValidationError("currencyId must be a positive integer", field="currencyId")
    return {BANK_DETAIL_FIELDS[name][0]: values[name] for name in supplied}


THIRD_PARTY_REQUIRED = (
    ("third_party_name", "thirdPartyName"),
    ("registration_number", "registrationNumber"),
    ("tax_pin", "taxPIN"),
    ("country", "country"),
    ("physical_address", "physicalAddress"),
    ("email", "email"),
    ("phone", "phone"),
)


def validate_third_party_details(body: ThirdPartyDetailsRequest) -> Dict[str, Any]:
    for name, alias in THIRD_PARTY_REQUIRED:
        _required(getattr(body, name), alias)

    business_type = 5
    if body.business_type is not None:
        business_type = to_business_type(body.business_type)
        if business_type is None:
            raise ValidationError(f"Unsupported businessType: {body.business_type}", field="businessType")

    return {
        "ThirdPartyName": to_str(body.third_party_name),
        "TradingName": to_str(body.trading_name),
        "BusinessType": business_type,
        "RegistrationNumber": to_str(body.registration_number),
        "TaxPIN": to_str(body.tax_pin),
        "VATNumber": to_str(body.vat_number),
        "Country": to_str(body.country),
        "PhysicalAddress": to_str(body.physical_address),
        "Email": to_str(body.email),
        "Phone": to_str(body.phone),
        "Website": to_str(body.website),
    }


PROFILE_REQUIRED = (("first_name", "firstName"), ("last_name", "lastName"), ("phone", "phone"), ("email", "email"))


def validate_profile_update(body: ProfileUpdateRequest, partial: bool = False) -> Dict[str, Any]:
    """Full updates need the contact fields; partial ones only the fields sent."""
    if not partial:
        for name, alias in PROFILE_REQUIRED:
            _required(getattr(body, name), alias)
    changes = body.model_dump(by_alias=True, exclude_unset=True)
    if not changes:
        raise ValidationError("At least one profile field is required", field="body")
    return changes


def validate_password_change(body: PasswordChangeRequest) -> Dict[str, str]:
    if not body.current_password:
        raise ValidationError("currentPassword is required", field="currentPassword")
    if not body.new_password:
        raise ValidationError("newPassword is required", field="newPassword")
    return {
        "current_password": body.current_password,
        "new_password": body.new_password,
        "new_password_confirmation": body.new_password,
    }


def validate_rfq_response(body: RfqResponseRequest) -> Tuple[str, Dict[str, Any]]:
    rfq_id = _required(body.rfq_id, "rfqId", "RFQ ID is required")
    if body.duration_days is None or body.duration_days < 1:
        raise ValidationError("Offer validity (days) is required and must be at least 1", field="durationDays")

    items = []
    for index, line in enumerate(body.items):
        line_id = _required(line.rfq_line_id, f"items.{index}.rfqLineId")
        for name, value in (("quotedPrice", line.quoted_price), ("totalPayable", line.total_payable)):
            if value is not None and value < 0:
                raise ValidationError(f"{name} must not be negative", field=f"items.{index}.{name}")
        item = {"rfqLineId": line_id, "quotedPrice": line.quoted_price, "totalPayable": line.total_payable}
        if line.lead_time_days is not None:
            item["leadTimeDays"] = line.lead_time_days
        if line.comments is not None:
            item["comments"] = line.comments
        items.append(item)

    payload = {"rfqId": rfq_id, "durationDays": body.duration_days, "items": items}
    if to_str(body.currency):
        payload["currency"] = to_str(body.currency)
    if body.is_draft:
        payload["isDraft"] = True
    return rfq_id, payload
