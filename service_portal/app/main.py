"""
Supplier portal gateway service.
"""

from typing import Any, Dict, Optional
from urllib.parse import quote

from fastapi import Query, Request
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import UploadFile
from starlette.formparsers import MultiPartException

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import ValidationError

from .adapters.auth_client import AuthClient
from .adapters.erp_client import ErpClient
from .domain import fallback, resources
from .domain.auth_middleware import SessionMiddleware, require_third_party
from .domain.gateway import ResourceGateway
from .domain.models import Session
from .domain.normalizer import extract_profile, extract_rfq, extract_third_party, to_int
from .domain.query import build_query, parse_flag
from .domain.schemas import (
    ApplicationRequest,
    BankDetailRequest,
    BidSubmitRequest,
    BidUpdateRequest,
    ClarificationCreateRequest,
    ClarificationPublishRequest,
    ClarificationRespondRequest,
    InvitationResponseRequest,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    RfqResponseRequest,
    ThirdPartyDetailsRequest,
)
from .domain.validation import (
    parse_bid_form,
    read_json_body,
    validate_application,
    validate_bank_detail,
    validate_bid_submission,
    validate_bid_update,
    validate_clarification_create,
    validate_clarification_response,
    validate_invitation_response,
    validate_password_change,
    validate_profile_update,
    validate_rfq_response,
    validate_third_party_details,
)


SERVICE_NAME = "portal"
SERVICE_PORT = 8000


class PortalGatewayService(BaseService):
    """Supplier portal gateway in front of the procurement ERP."""

    def __init__(self, config: Optional[ServiceConfig] = None):
        super().__init__(SERVICE_NAME, SERVICE_PORT, config)
        self.auth_client = AuthClient(self.config.auth_service_url)
        self.erp_client = ErpClient(
            self.config.erp_base_url,
            timeout=self.config.upstream_timeout_seconds,
            metrics=self.metrics,
        )
        self.session_middleware = SessionMiddleware(self.auth_client)
        self.gateway = ResourceGateway(self.erp_client, self.config, metrics=self.metrics)

        if not self.erp_client.configured:
            self.logger.warning("ERP base URL not configured, all reads will be served from fallback data")

        self._setup_portal_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.portal_service = self

    async def _authenticate(self, request: Request) -> Session:
        return await self.session_middleware.authenticate_request(request)

    async def _check_dependencies(self) -> Dict[str, str]:
        return {
            "erp": "configured" if self.erp_client.configured else "not_configured",
            "write_fallback_mode": self.config.write_fallback_mode,
        }

    def _setup_portal_routes(self):
        """Set up portal routes."""

        @self.app.get("/")
        async def root():
            return {
                "service": self.service_name,
                "message": "Supplier portal gateway",
                "erp_configured": self.erp_client.configured,
            }

        # Tenders

        @self.app.get("/api/tenders")
        async def list_tenders(
            request: Request,
            search: Optional[str] = Query(None),
            status: Optional[str] = Query(None),
            tenderType: Optional[str] = Query(None),
            page: Optional[str] = Query(None),
            limit: Optional[str] = Query(None),
            sortBy: Optional[str] = Query(None),
            sortOrder: Optional[str] = Query(None),
            includeInvitations: Optional[str] = Query(None),
        ):
            """List tenders, optionally with the caller's invitation attached to each."""
            session = await self._authenticate(request)
            query = build_query(resources.TENDERS, {
                "search": search,
                "status": status,
                "tenderType": tenderType,
                "page": page,
                "limit": limit,
                "sortBy": sortBy,
                "sortOrder": sortOrder,
            })

            if parse_flag(includeInvitations, "includeInvitations"):
                envelope = await self.gateway.list_tenders_with_invitations(
                    resources.TENDERS, resources.INVITATIONS, query, session
                )
            else:
                envelope = await self.gateway.list_resource(resources.TENDERS, query, session)
            return envelope.to_dict()

        # Invitations

        @self.app.get("/api/tender-invitations")
        async def list_invitations(
            request: Request,
            status: Optional[str] = Query(None),
            page: Optional[str] = Query(None),
            limit: Optional[str] = Query(None),
        ):
            session = await self._authenticate(request)
            require_third_party(session)
            query = build_query(resources.INVITATIONS, {"status": status, "page": page, "limit": limit})
            envelope = await self.gateway.list_resource(resources.INVITATIONS, query, session)
            return envelope.to_dict()

        @self.app.put("/api/tender-invitations")
        async def respond_to_invitation(request: Request):
            """Accept, decline or mark an invitation as submitted."""
            session = await self._authenticate(request)
            body = await read_json_body(request, InvitationResponseRequest)
            invitation_id, response_status = validate_invitation_response(body)

            now = fallback.now_iso()
            payload = {
                "InvitationID": invitation_id,
                "ResponseStatus": response_status,
                "ResponseDate": now,
                "DeclineReason": body.decline_reason,
                "ConfirmationAttachment": body.confirmation_attachment,
                "ModifiedBy": session.user_id,
                "ModifiedOn": now,
            }
            envelope = await self.gateway.write(
                resources.INVITATIONS.name,
                "PUT",
                f"/api/tender-invitations/{invitation_id}",
                session,
                json=payload,
                timeout=10.0,
                kind="invitation",
                message="Tender invitation response updated successfully",
                synthesize=lambda: fallback.synthesize_invitation_response(
                    invitation_id,
                    response_status,
                    session,
                    decline_reason=body.decline_reason,
                    confirmation_attachment=body.confirmation_attachment,
                ),
            )
            return envelope.to_dict()

        # Clarifications

        @self.app.get("/api/tender-clarifications")
        async def list_clarifications(
            request: Request,
            tenderId: Optional[str] = Query(None),
            status: Optional[str] = Query(None),
            page: Optional[str] = Query(None),
            limit: Optional[str] = Query(None),
        ):
            session = await self._authenticate(request)
            if not tenderId or not tenderId.strip():
                raise ValidationError("Tender ID is required", field="tenderId")
            query = build_query(resources.CLARIFICATIONS, {
                "tenderId": tenderId,
                "status": status,
                "page": page,
                "limit": limit,
            })
            envelope = await self.gateway.list_resource(resources.CLARIFICATIONS, query, session)
            return envelope.to_dict()

        @self.app.post("/api/tender-clarifications")
        async def create_clarification(request: Request):
            """Raise a clarification question on a tender."""
            session = await self._authenticate(request)
            body = await read_json_body(request, ClarificationCreateRequest)
            tender_id, question = validate_clarification_create(body)
            third_party_id = require_third_party(session)

            now = fallback.now_iso()
            # The ERP reads snake_case; camelCase copies are kept for older deployments
            payload = {
                "tender_id": to_int(tender_id, tender_id),
                "third_party_id": third_party_id,
                "question": question,
                "question_date": now,
                "status": "pending",
                "is_public": body.is_public,
                "attachments": body.attachments,
                "created_by": session.user_id,
                "created_on": now,
                "tenderId": to_int(tender_id, tender_id),
                "thirdPartyId": third_party_id,
                "questionDate": now,
                "isPublic": body.is_public,
            }
            envelope = await self.gateway.write(
                resources.CLARIFICATIONS.name,
                "POST",
                "/api/tender-clarifications",
                session,
                json=payload,
                timeout=20.0,
                kind="clarification",
                message="Clarification request submitted successfully",
                synthesize=lambda: fallback.synthesize_clarification(
                    tender_id, question, session, is_public=body.is_public, attachments=body.attachments
                ),
            )
            return envelope.to_dict()

        @self.app.put("/api/tender-clarifications/{clarification_id}/respond")
        async def respond_to_clarification(clarification_id: str, request: Request):
            session = await self._authenticate(request)
            body = await read_json_body(request, ClarificationRespondRequest)
            return await self._respond_to_clarification(clarification_id, body, session)

        @self.app.put("/api/tender-clarifications")
        async def respond_to_clarification_legacy(request: Request):
            """Older clients send the clarification id in the body."""
            session = await self._authenticate(request)
            body = await read_json_body(request, ClarificationRespondRequest)
            if body.clarification_id is None or not str(body.clarification_id).strip():
                raise ValidationError("Clarification ID is required", field="clarificationId")
            return await self._respond_to_clarification(str(body.clarification_id).strip(), body, session)

        @self.app.patch("/api/tender-clarifications/{clarification_id}/publish")
        async def publish_clarification(clarification_id: str, request: Request):
            """Make a clarification answer visible to every supplier, or private again."""
            session = await self._authenticate(request)
            body = await read_json_body(request, ClarificationPublishRequest)

            now = fallback.now_iso()
            suppliers_notified = body.notify_suppliers and body.publish_to_all
            payload = {
                "clarificationId": clarification_id,
                "publishToAll": body.publish_to_all,
                "notifySuppliers": body.notify_suppliers,
                "publishedBy": body.published_by or "Procurement Team",
                "publishedDate": now,
                "modifiedBy": session.user_id,
                "modifiedOn": now,
            }
            message = (
                "Clarification published to all suppliers successfully"
                if body.publish_to_all
                else "Clarification set to private successfully"
            )
            envelope = await self.gateway.write(
                resources.CLARIFICATIONS.name,
                "PATCH",
                f"/api/tender-clarifications/{clarification_id}/publish",
                session,
                json=payload,
                timeout=10.0,
                kind="clarification",
                message=message,
                extra={"suppliersNotified": suppliers_notified},
                synthesize=lambda: fallback.synthesize_clarification_publication(clarification_id, body.publish_to_all),
            )
            return envelope.to_dict()

        # Bids

        @self.app.get("/api/tender-bids")
        async def list_bids(
            request: Request,
            tenderId: Optional[str] = Query(None),
            status: Optional[str] = Query(None),
            checkExisting: Optional[str] = Query(None),
            page: Optional[str] = Query(None),
            limit: Optional[str] = Query(None),
        ):
            """List the caller's bids, or look up an existing bid for draft editing."""
            session = await self._authenticate(request)
            require_third_party(session)

            if parse_flag(checkExisting, "checkExisting"):
                if not tenderId or not tenderId.strip():
                    raise ValidationError("Tender ID is required", field="tenderId")
                return await self.gateway.check_existing_bid(tenderId.strip(), session)

            query = build_query(resources.BIDS, {
                "tenderId": tenderId,
                "status": status,
                "page": page,
                "limit": limit,
            })
            envelope = await self.gateway.list_resource(resources.BIDS, query, session)
            return envelope.to_dict()

        @self.app.post("/api/tender-bids")
        async def create_bid(request: Request):
            """Create a bid from a multipart form carrying its documents."""
            session = await self._authenticate(request)
            try:
                form = await request.form()
            except MultiPartException:
                raise ValidationError("Invalid form data format", field="documents")

            fields = parse_bid_form(form)
            third_party_id = require_third_party(session)

            uploads = [item for item in form.getlist("documents") if isinstance(item, UploadFile) and item.filename]
            document_types = [str(value) for value in form.getlist("documentTypes")]
            if not uploads and fields["status"] == "submitted":
                raise ValidationError("At least one document is required for final bid submission", field="documents")

            documents = []
            for index, upload in enumerate(uploads):
                content = await upload.read()
                document_type = document_types[index] if index < len(document_types) else "other"
                documents.append((upload, content, document_type))

            data = {
                "tender_id": fields["tenderId"],
                "third_party_id": third_party_id,
                "bid_amount": str(fields["bidAmount"]),
                "currency": fields["currency"],
                "validity_period": str(fields["validityPeriod"]),
                "delivery_period": str(fields["deliveryPeriod"]),
                "payment_terms": fields["paymentTerms"],
                "status": fields["status"],
            }
            files = []
            for index, (upload, content, document_type) in enumerate(documents):
                data[f"bid_documents[{index}][document_type]"] = document_type
                files.append(
                    ("bid_documents[]", (upload.filename, content, upload.content_type or "application/octet-stream"))
                )

            envelope = await self.gateway.write(
                "bid-submissions",
                "POST",
                "/api/bid-submissions",
                session,
                data=data,
                files=files or None,
                timeout=20.0,
                kind="bid",
                message="Bid submitted to ERP successfully",
                synthesize=lambda: fallback.synthesize_bid(
                    fields,
                    session,
                    [
                        fallback.synthesize_document(upload.filename, content, upload.content_type, document_type)
                        for upload, content, document_type in documents
                    ],
                ),
            )
            return envelope.to_dict()

        @self.app.put("/api/tender-bids")
        async def update_bid(request: Request):
            session = await self._authenticate(request)
            bid_id, changes = validate_bid_update(await read_json_body(request, BidUpdateRequest))

            now = fallback.now_iso()
            payload = dict(changes, modifiedBy=session.user_id, modifiedOn=now)
            envelope = await self.gateway.write(
                resources.BIDS.name,
                "PUT",
                f"/api/tender-bids/{bid_id}",
                session,
                json=payload,
                kind="bid",
                message="Tender bid updated successfully",
                synthesize=lambda: fallback.synthesize_bid_update(bid_id, changes, session),
            )
            return envelope.to_dict()

        @self.app.post("/api/tender-bids/{bid_id}/submit")
        async def submit_bid(bid_id: str, request: Request):
            """Finalize a draft bid."""
            session = await self._authenticate(request)
            body = await read_json_body(request, BidSubmitRequest)
            validate_bid_submission(body)
            require_third_party(session)

            now = fallback.now_iso()
            payload = {
                "status": "submitted",
                "submissionDate": now,
                "finalDeclaration": body.final_declaration,
                "modifiedBy": session.user_id,
                "modifiedOn": now,
            }
            envelope = await self.gateway.write(
                resources.BIDS.name,
                "POST",
                f"/api/tender-bids/{bid_id}/submit",
                session,
                json=payload,
                kind="bid",
                message="Bid submitted successfully",
                synthesize=lambda: fallback.synthesize_bid_submission(bid_id, session),
            )
            return envelope.to_dict()

        # Prequalification

        @self.app.get("/api/prequalification/rounds")
        async def list_rounds(
            request: Request,
            q: Optional[str] = Query(None),
            status: Optional[str] = Query(None),
            sortBy: Optional[str] = Query(None),
            sortOrder: Optional[str] = Query(None),
            page: Optional[str] = Query(None),
            pageSize: Optional[str] = Query(None),
        ):
            session = await self._authenticate(request)
            query = build_query(resources.ROUNDS, {
                "q": q,
                "status": status,
                "sortBy": sortBy,
                "sortOrder": sortOrder,
                "page": page,
                "pageSize": pageSize,
            })
            envelope = await self.gateway.list_resource(resources.ROUNDS, query, session)
            return envelope.to_dict()

        @self.app.get("/api/prequalification/applications/{round_id}/progress")
        async def application_progress(round_id: str, request: Request):
            session = await self._authenticate(request)
            envelope = await self.gateway.application_progress(round_id, session)
            return envelope.to_dict()

        @self.app.post("/api/prequalification/applications")
        async def submit_application(request: Request):
            """Submit answers for a prequalification round."""
            session = await self._authenticate(request)
            body = await read_json_body(request, ApplicationRequest)
            round_id, answers = validate_application(body)

            envelope = await self.gateway.write(
                "prequalification-applications",
                "POST",
                "/api/procurement/prequalification/applications",
                session,
                json={"round_id": body.round_id, "responses": answers},
                message="Application submitted successfully",
                synthesize=lambda: fallback.synthesize_application(round_id, answers, session),
            )
            return JSONResponse(status_code=201, content=envelope.to_dict(), headers={"Cache-Control": "no-store"})

        # RFQs

        @self.app.get("/api/procurement/rfq-suppliers")
        async def list_rfqs(request: Request):
            """List the caller's RFQ invitations; query parameters pass through to the ERP."""
            session = await self._authenticate(request)
            query = build_query(resources.RFQS, dict(request.query_params))
            envelope = await self.gateway.list_resource(resources.RFQS, query, session)
            return envelope.to_dict()

        @self.app.get("/api/procurement/rfq-suppliers/{rfq_id}")
        async def get_rfq(rfq_id: str, request: Request):
            """One RFQ with its line items and attachments."""
            session = await self._authenticate(request)
            envelope = await self.gateway.fetch_record(
                resources.RFQS.name,
                f"{resources.RFQS.path}/{quote(rfq_id, safe='')}",
                session,
                kind="rfq",
                extract=extract_rfq,
                seed=lambda: fallback.rfq_seed(rfq_id),
                params=dict(request.query_params),
            )
            return envelope.to_dict()

        @self.app.post("/api/procurement/rfq-responses")
        async def submit_rfq_response(request: Request):
            """Quote against an RFQ, or save the quotation as a draft."""
            session = await self._authenticate(request)
            rfq_id, payload = validate_rfq_response(await read_json_body(request, RfqResponseRequest))
            payload["supplierId"] = require_third_party(session)

            envelope = await self.gateway.write(
                "rfq-responses",
                "POST",
                "/api/procurement/rfq-responses",
                session,
                json=payload,
                message="RFQ draft saved" if payload.get("isDraft") else "RFQ response submitted successfully",
                synthesize=lambda: fallback.synthesize_rfq_response(rfq_id, bool(payload.get("isDraft"))),
            )
            return envelope.to_dict()

        # Supplier account

        @self.app.get("/api/third-parties-bank-details")
        async def list_bank_details(request: Request):
            session = await self._authenticate(request)
            require_third_party(session)
            query = build_query(resources.BANK_DETAILS, dict(request.query_params))
            envelope = await self.gateway.list_resource(resources.BANK_DETAILS, query, session)
            return envelope.to_dict()

        @self.app.post("/api/third-parties-bank-details")
        async def create_bank_detail(request: Request):
            session = await self._authenticate(request)
            payload = validate_bank_detail(await read_json_body(request, BankDetailRequest))
            payload["ThirdPartyId"] = require_third_party(session)

            envelope = await self.gateway.write(
                resources.BANK_DETAILS.name,
                "POST",
                resources.BANK_DETAILS.path,
                session,
                json=payload,
                kind="bank_detail",
                message="Bank details added successfully",
                synthesize=lambda: fallback.synthesize_bank_detail(payload, session),
            )
            return JSONResponse(status_code=201, content=envelope.to_dict())

        @self.app.put("/api/third-parties-bank-details/{bank_detail_id}")
        async def update_bank_detail(bank_detail_id: str, request: Request):
            """Partial update; only the fields sent are changed."""
            session = await self._authenticate(request)
            payload = validate_bank_detail(await read_json_body(request, BankDetailRequest), partial=True)
            payload["ThirdPartyId"] = require_third_party(session)

            envelope = await self.gateway.write(
                resources.BANK_DETAILS.name,
                "PUT",
                f"{resources.BANK_DETAILS.path}/{quote(bank_detail_id, safe='')}",
                session,
                json=payload,
                kind="bank_detail",
                message="Bank details updated successfully",
                synthesize=lambda: fallback.synthesize_bank_detail(payload, session, bank_detail_id),
            )
            return envelope.to_dict()

        @self.app.delete("/api/third-parties-bank-details/{bank_detail_id}")
        async def delete_bank_detail(bank_detail_id: str, request: Request):
            session = await self._authenticate(request)
            envelope = await self.gateway.write(
                resources.BANK_DETAILS.name,
                "DELETE",
                f"{resources.BANK_DETAILS.path}/{quote(bank_detail_id, safe='')}",
                session,
                message="Bank details removed successfully",
                synthesize=lambda: fallback.synthesize_bank_detail_removal(bank_detail_id),
            )
            if envelope.degraded:
                return envelope.to_dict()
            return Response(status_code=204)

        @self.app.get("/api/third-party-details")
        async def get_third_party_details(request: Request):
            """The caller's company record, taken from the profile endpoint."""
            session = await self._authenticate(request)
            require_third_party(session)
            envelope = await self.gateway.fetch_record(
                "third-party-profile",
                "/api/third-party-profile",
                session,
                kind="third_party",
                extract=extract_third_party,
                seed=lambda: fallback.profile_seed(session),
            )
            return envelope.to_dict()

        @self.app.put("/api/third-party-details")
        async def update_third_party_details(request: Request):
            session = await self._authenticate(request)
            require_third_party(session)
            payload = validate_third_party_details(await read_json_body(request, ThirdPartyDetailsRequest))

            envelope = await self.gateway.write(
                "third-party-profile",
                "PUT",
                "/api/third-party-profile",
                session,
                json=payload,
                kind="third_party",
                message="Company details updated successfully",
                synthesize=lambda: fallback.synthesize_third_party(payload, session),
            )
            return envelope.to_dict()

        @self.app.get("/api/third-party-profile")
        async def get_profile(request: Request):
            session = await self._authenticate(request)
            envelope = await self.gateway.fetch_record(
                "third-party-profile",
                "/api/third-party-profile",
                session,
                kind="profile",
                extract=extract_profile,
                seed=lambda: fallback.profile_seed(session),
            )
            return envelope.to_dict()

        @self.app.put("/api/third-party-profile")
        async def replace_profile(request: Request):
            session = await self._authenticate(request)
            changes = validate_profile_update(await read_json_body(request, ProfileUpdateRequest))
            return await self._update_profile("PUT", changes, session)

        @self.app.patch("/api/third-party-profile")
        async def patch_profile(request: Request):
            session = await self._authenticate(request)
            changes = validate_profile_update(await read_json_body(request, ProfileUpdateRequest), partial=True)
            return await self._update_profile("PATCH", changes, session)

        @self.app.put("/api/third-party-profile/password")
        async def change_password(request: Request):
            """Password changes are never simulated; an unreachable ERP yields 503."""
            session = await self._authenticate(request)
            payload = validate_password_change(await read_json_body(request, PasswordChangeRequest))

            envelope = await self.gateway.write(
                "third-party-profile",
                "PUT",
                "/api/third-party-profile/password",
                session,
                json=payload,
                message="Password updated successfully.",
                synthesize=None,
            )
            upstream = envelope.data if isinstance(envelope.data, dict) else {}
            return {"message": upstream.get("message") or envelope.message}

        # Lookups

        @self.app.get("/api/currencies")
        async def list_currencies(request: Request):
            query = build_query(resources.CURRENCIES, dict(request.query_params))
            envelope = await self.gateway.list_resource(resources.CURRENCIES, query, None)
            return JSONResponse(content=envelope.to_dict(), headers={"Cache-Control": "public, max-age=60"})

        @self.app.get("/api/v1/countries")
        async def list_countries(request: Request):
            query = build_query(resources.COUNTRIES, dict(request.query_params))
            envelope = await self.gateway.list_resource(resources.COUNTRIES, query, None)
            return JSONResponse(content=envelope.to_dict(), headers={"Cache-Control": "public, max-age=300"})

        # Diagnostics

        @self.app.get("/api/test-connection")
        async def test_connection(request: Request):
            session = await self._authenticate(request)
            return await self.gateway.check_connection(session)

    async def _respond_to_clarification(
        self,
        clarification_id: str,
        body: ClarificationRespondRequest,
        session: Session,
    ) -> Dict[str, Any]:
        response, status = validate_clarification_response(body)
        response_by = body.response_by or "Procurement Team"

        now = fallback.now_iso()
        payload = {
            "clarificationId": clarification_id,
            "response": response,
            "responseBy": response_by,
            "responseDate": now,
            "status": status,
            "publishToAll": body.publish_to_all,
            "attachments": body.attachments,
            "modifiedBy": session.user_id,
            "modifiedOn": now,
        }
        envelope = await self.gateway.write(
            resources.CLARIFICATIONS.name,
            "PUT",
            f"/api/tender-clarifications/{clarification_id}/respond",
            session,
            json=payload,
            timeout=10.0,
            kind="clarification",
            message="Clarification response submitted successfully",
            extra={"publishedToAll": body.publish_to_all},
            synthesize=lambda: fallback.synthesize_clarification_response(
                clarification_id,
                response,
                response_by,
                status=status,
                publish_to_all=body.publish_to_all,
                attachments=body.attachments,
            ),
        )
        return envelope.to_dict()


    async def _update_profile(self, method: str, changes: Dict[str, Any], session: Session) -> Dict[str, Any]:
        envelope = await self.gateway.write(
            "third-party-profile",
            method,
            "/api/third-party-profile",
            session,
            json=changes,
            kind="profile",
            message="Profile updated successfully",
            synthesize=lambda: fallback.synthesize_profile(changes, session),
        )
        return envelope.to_dict()


def create_app(config: Optional[ServiceConfig] = None):
    """Create FastAPI application."""
    service = PortalGatewayService(config or get_config(SERVICE_NAME, SERVICE_PORT))
    return service.app


if __name__ == "__main__":
    service = PortalGatewayService()
    service.run()
