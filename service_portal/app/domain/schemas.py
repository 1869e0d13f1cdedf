"""
Request bodies accepted by the portal gateway.

Fields are optional at this layer so that missing values surface as
field-specific 400s from the handlers, after the session check.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


Identifier = Union[int, str]


class _PortalRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class InvitationResponseRequest(_PortalRequest):
    """Supplier response to a tender invitation."""
    invitation_id: Optional[Identifier] = Field(None, alias="invitationId", description="Invitation ID")
    response_status: Optional[str] = Field(None, alias="responseStatus", description="accepted, declined or submitted")
    decline_reason: Optional[str] = Field(None, alias="declineReason", description="Required when declining")
    confirmation_attachment: Optional[str] = Field(None, alias="confirmationAttachment")


class ClarificationCreateRequest(_PortalRequest):
    """Question raised by a supplier on a tender."""
    tender_id: Optional[Identifier] = Field(None, alias="tenderId", description="Tender ID")
    question: Optional[str] = Field(None, description="Question text")
    is_public: bool = Field(False, alias="isPublic")
    attachments: List[str] = Field(default_factory=list)


class ClarificationRespondRequest(_PortalRequest):
    """Answer to a clarification; ``clarificationId`` is only read by the legacy route."""
    clarification_id: Optional[Identifier] = Field(None, alias="clarificationId")
    response: Optional[str] = Field(None, description="Answer text")
    response_by: Optional[str] = Field(None, alias="responseBy")
    publish_to_all: bool = Field(False, alias="publishToAll")
    status: Optional[str] = Field(None, description="Defaults to answered")
    attachments: List[str] = Field(default_factory=list)


class ClarificationPublishRequest(_PortalRequest):
    publish_to_all: bool = Field(True, alias="publishToAll")
    notify_suppliers: bool = Field(True, alias="notifySuppliers")
    published_by: Optional[str] = Field(None, alias="publishedBy")


class BidUpdateRequest(_PortalRequest):
    """Edits to a draft bid."""
    bid_id: Optional[Identifier] = Field(None, alias="bidId", description="Bid ID")
    bid_amount: Optional[float] = Field(None, alias="bidAmount")
    validity_period: Optional[int] = Field(None, alias="validityPeriod")
    delivery_period: Optional[int] = Field(None, alias="deliveryPeriod")
    payment_terms: Optional[str] = Field(None, alias="paymentTerms")


class BidSubmitRequest(_PortalRequest):
    confirm_submission: bool = Field(False, alias="confirmSubmission")
    final_declaration: Optional[str] = Field(None, alias="finalDeclaration")


class ApplicationAnswer(BaseModel):
    criteria_id: Identifier
    response_text: Optional[str] = None


class ApplicationRequest(BaseModel):
    """Prequalification application; the ERP uses snake_case here."""
    round_id: Optional[Identifier] = Field(None, description="Prequalification round ID")
    responses: Optional[List[ApplicationAnswer]] = Field(None, description="Answers per criterion")


class BankDetailRequest(_PortalRequest):
    """Bank account for supplier payments; every field is optional on update."""
    bank_name: Optional[str] = Field(None, alias="bankName")
    branch: Optional[str] = None
    account_number: Optional[str] = Field(None, alias="accountNumber")
    currency_id: Optional[int] = Field(None, alias="currencyId")
    swift_code: Optional[str] = Field(None, alias="swiftCode")


class ThirdPartyDetailsRequest(_PortalRequest):
    """Company registration details."""
    third_party_name: Optional[str] = Field(None, alias="thirdPartyName")
    trading_name: Optional[str] = Field(None, alias="tradingName")
    business_type: Optional[Identifier] = Field(None, alias="businessType", description="Code 1-5 or its label")
    registration_number: Optional[str] = Field(None, alias="registrationNumber")
    tax_pin: Optional[str] = Field(None, alias="taxPIN")
    vat_number: Optional[str] = Field(None, alias="vatNumber")
    country: Optional[str] = None
    physical_address: Optional[str] = Field(None, alias="physicalAddress")
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None


class ProfileUpdateRequest(_PortalRequest):
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    phone: Optional[str] = None
    email: Optional[str] = None
    gender: Optional[str] = None
    image_id: Optional[Identifier] = Field(None, alias="imageId")
    trading_name: Optional[str] = Field(None, alias="tradingName")
    business_type: Optional[str] = Field(None, alias="businessType")
    registration_number: Optional[str] = Field(None, alias="registrationNumber")
    tax_pin: Optional[str] = Field(None, alias="taxPin")
    vat_number: Optional[str] = Field(None, alias="vatNumber")
    country: Optional[str] = None
    physical_address: Optional[str] = Field(None, alias="physicalAddress")
    website: Optional[str] = None


class PasswordChangeRequest(_PortalRequest):
    current_password: Optional[str] = Field(None, alias="currentPassword")
    new_password: Optional[str] = Field(None, alias="newPassword")


class RfqResponseLine(_PortalRequest):
    rfq_line_id: Optional[Identifier] = Field(None, alias="rfqLineId")
    quoted_price: Optional[float] = Field(None, alias="quotedPrice")
    total_payable: Optional[float] = Field(None, alias="totalPayable")
    lead_time_days: Optional[int] = Field(None, alias="leadTimeDays")
    comments: Optional[str] = None


class RfqResponseRequest(_PortalRequest):
    """Supplier quotation against an RFQ, or a draft of one."""
    rfq_id: Optional[Identifier] = Field(None, alias="rfqId")
    currency: Optional[str] = None
    duration_days: Optional[int] = Field(None, alias="durationDays", description="Offer validity in days")
    is_draft: bool = Field(False, alias="isDraft")
    items: List[RfqResponseLine] = Field(default_factory=list)
