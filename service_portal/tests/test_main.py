"""
Unit tests for the portal gateway service.
"""

import json

import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from service_portal.app.domain.models import Session
from service_portal.app.main import PortalGatewayService
from shared.errors import AuthenticationError
from shared.test_helpers import ErpStub, TestDataFactory, TestEnvironment


AUTH = {"Authorization": "Bearer portal-token"}


class TestPortalGatewayService:
    """Test cases for PortalGatewayService."""

    @pytest.fixture
    def stub(self):
        return ErpStub()

    @pytest.fixture
    def supplier(self):
        return Session(user_id="user-1", bearer_token="erp-access-token", third_party_id="42", email="supplier@example.com")

    @pytest.fixture
    def portal_service(self, stub, supplier):
        """Create PortalGatewayService wired to the ERP stub."""
        service = PortalGatewayService(TestEnvironment.get_mock_config())
        service.auth_client.verify_token = AsyncMock(return_value=supplier)
        service.erp_client.transport = stub.transport()
        return service

    @pytest.fixture
    def client(self, portal_service):
        """Create test client."""
        return TestClient(portal_service.app)

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "portal"
        assert response.json()["erp_configured"] is True

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["dependencies"] == {"erp": "configured", "write_fallback_mode": "demo"}

    def test_metrics_expose_fallback_counter(self, client):
        client.get("/api/tenders", headers=AUTH)

        response = client.get("/metrics")

        assert response.status_code == 200
        body = response.text
        assert "fallback_responses_total" in body
        assert 'resource="tenders"' in body
        assert "upstream_requests_total" in body
        assert "http_requests_total" in body

    def test_missing_authorization(self, client, stub):
        response = client.get("/api/tenders")
        assert response.status_code == 401
        assert response.json()["code"] == "AUTHENTICATION_ERROR"
        assert stub.requests == []

    def test_unauthenticated_bad_body_is_401(self, client, stub):
        response = client.post("/api/tender-clarifications", json={"tenderId": 1, "isPublic": "maybe"})
        assert response.status_code == 401
        assert stub.requests == []

    def test_authenticated_bad_body_names_field(self, client, stub):
        response = client.post(
            "/api/tender-clarifications",
            json={"tenderId": 1, "question": "Q", "isPublic": "maybe"},
            headers=AUTH,
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "isPublic"
        assert stub.requests == []

    def test_non_object_body(self, client):
        response = client.put("/api/tender-bids", content=b"[1, 2]", headers=AUTH)
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "body"

    def test_rejected_session(self, client, portal_service):
        portal_service.auth_client.verify_token = AsyncMock(side_effect=AuthenticationError("Invalid or expired session"))
        response = client.get("/api/tenders", headers=AUTH)
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired session"

    def test_published_filter_on_live_data(self, client, stub):
        tenders = TestDataFactory.create_erp_tenders(3)
        tenders[1]["Status"] = "DR"
        stub.add("GET", "/api/tenders", body={"data": tenders})

        response = client.get("/api/tenders", params={"status": "pb"}, headers=AUTH)

        assert response.status_code == 200
        data = response.json()
        assert "fallback" not in data
        assert [t["id"] for t in data["data"]] == ["1", "3"]
        assert {t["status"] for t in data["data"]} == {"published"}
        assert data["pagination"]["total"] == 2

    def test_extreme_field_values_do_not_fail_listing(self, client, stub):
        tenders = TestDataFactory.create_erp_tenders(2)
        tenders[0]["SubmissionDeadline"] = "0001-01-01T00:00:00+05:00"
        tenders[1]["EstimatedValue"] = 10 ** 400
        stub.add("GET", "/api/tenders", body={"data": tenders})

        response = client.get("/api/tenders", headers=AUTH)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data[0]["submissionDeadline"] is None
        assert data[1]["estimatedValue"] is None

    def test_outage_serves_demo_tenders(self, client):
        response = client.get("/api/tenders", headers=AUTH)

        assert response.status_code == 200
        data = response.json()
        assert data["fallback"] is True
        assert len(data["data"]) == 3
        assert {t["currency"] for t in data["data"]} == {"KES"}

    def test_tenders_with_invitations(self, client, stub):
        stub.add("GET", "/api/tenders", body={"data": TestDataFactory.create_erp_tenders(2)})
        stub.add("GET", "/api/tender-invitations", body={"data": TestDataFactory.create_erp_invitations([1])})

        response = client.get("/api/tenders", params={"includeInvitations": "true"}, headers=AUTH)

        data = response.json()["data"]
        assert data[0]["invitation"]["responseStatus"] == "pending"
        assert data[1]["invitation"] is None

    @pytest.mark.parametrize("params,field", [
        ({"page": "0"}, "page"),
        ({"status": "unknown"}, "status"),
        ({"includeInvitations": "maybe"}, "includeInvitations"),
    ])
    def test_invalid_query(self, client, stub, params, field):
        response = client.get("/api/tenders", params=params, headers=AUTH)
        assert response.status_code == 400
        assert response.json()["details"]["field"] == field
        assert stub.requests == []

    def test_invitations_need_third_party(self, client, portal_service):
        portal_service.auth_client.verify_token = AsyncMock(
            return_value=Session(user_id="user-2", bearer_token="erp-access-token")
        )
        response = client.get("/api/tender-invitations", headers=AUTH)
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "thirdPartyId"

    def test_decline_requires_reason(self, client, stub):
        response = client.put(
            "/api/tender-invitations",
            json={"invitationId": 7, "responseStatus": "declined"},
            headers=AUTH,
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "declineReason"
        assert stub.requests == []

    def test_accept_invitation(self, client, stub):
        stub.add("PUT", "/api/tender-invitations/7", body={
            "data": {"InvitationID": 7, "TenderId": 1, "ResponseStatus": "accepted"},
        })

        response = client.put(
            "/api/tender-invitations",
            json={"invitationId": 7, "responseStatus": "accepted"},
            headers=AUTH,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["data"]["responseStatus"] == "accepted"
        assert data["message"] == "Tender invitation response updated successfully"
        sent = stub.calls("PUT", "/api/tender-invitations/7")[0]
        assert b'"ModifiedBy":"user-1"' in sent.read().replace(b" ", b"")

    def test_malformed_body(self, client):
        response = client.put("/api/tender-invitations", json={"invitationId": {"nested": True}}, headers=AUTH)
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_clarifications_need_tender(self, client):
        response = client.get("/api/tender-clarifications", headers=AUTH)
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "tenderId"

    def test_clarification_fallback(self, client):
        response = client.get("/api/tender-clarifications", params={"tenderId": "5"}, headers=AUTH)
        data = response.json()
        assert data["fallback"] is True
        assert len(data["data"]) == 6
        assert {c["tenderId"] for c in data["data"]} == {"5"}

    def test_clarification_rejected_by_erp(self, client, stub):
        stub.add("POST", "/api/tender-clarifications", status_code=422, body={
            "message": "Clarification period has ended",
            "errors": {"question": ["closed"]},
        })

        response = client.post(
            "/api/tender-clarifications",
            json={"tenderId": 1, "question": "Can we extend?"},
            headers=AUTH,
        )

        assert response.status_code == 422
        data = response.json()
        assert data["message"] == "Clarification period has ended"
        assert data["details"]["errors"] == {"question": ["closed"]}

    def test_publish_clarification_demo(self, client):
        response = client.patch("/api/tender-clarifications/9/publish", json={}, headers=AUTH)
        data = response.json()
        assert response.status_code == 200
        assert data["degraded"] is True
        assert data["suppliersNotified"] is True
        assert data["data"]["isPublic"] is True

    def test_legacy_clarification_response(self, client):
        response = client.put(
            "/api/tender-clarifications",
            json={"clarificationId": 9, "response": "Yes", "publishToAll": True},
            headers=AUTH,
        )
        data = response.json()
        assert data["data"]["id"] == "9"
        assert data["data"]["status"] == "answered"
        assert data["publishedToAll"] is True

    def test_create_bid_multipart(self, client, stub):
        stub.add("POST", "/api/bid-submissions", status_code=201, body={
            "success": True,
            "data": {"id": 55, "tender_id": 1, "bid_amount": "1000", "status": "submitted"},
        })

        response = client.post(
            "/api/tender-bids",
            data={
                "tenderId": "1",
                "bidAmount": "1000",
                "currency": "KES",
                "validityPeriod": "90",
                "deliveryPeriod": "30",
                "status": "submitted",
                "documentTypes": "technical",
            },
            files=[("documents", ("proposal.pdf", b"%PDF-1.4", "application/pdf"))],
            headers=AUTH,
        )

        assert response.status_code == 200
        assert response.json()["data"]["id"] == "55"
        sent = stub.calls("POST", "/api/bid-submissions")[0]
        assert sent.headers["Content-Type"].startswith("multipart/form-data")
        body = sent.read()
        assert b'name="bid_documents[]"; filename="proposal.pdf"' in body
        assert b'name="bid_documents[0][document_type]"' in body
        assert b'name="third_party_id"' in body

    def test_submitted_bid_needs_documents(self, client, stub):
        response = client.post(
            "/api/tender-bids",
            data={
                "tenderId": "1",
                "bidAmount": "1000",
                "currency": "KES",
                "validityPeriod": "90",
                "deliveryPeriod": "30",
                "status": "submitted",
            },
            headers=AUTH,
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "documents"
        assert stub.requests == []

    def test_bid_submission_needs_confirmation(self, client):
        response = client.post("/api/tender-bids/5/submit", json={}, headers=AUTH)
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "confirmSubmission"

    def test_update_bid(self, client, stub):
        stub.add("PUT", "/api/tender-bids/5", body={"id": 5, "tender_id": 1, "BidAmount": 900, "status": "draft"})

        response = client.put("/api/tender-bids", json={"bidId": 5, "bidAmount": 900}, headers=AUTH)
        data = response.json()
        assert response.status_code == 200
        assert "fallback" not in data
        assert data["message"] == "Tender bid updated successfully"
        assert data["data"]["bidAmount"] == 900.0
        assert "modifiedBy" in stub.calls("PUT", "/api/tender-bids/5")[0].read().decode()

    def test_update_bid_demo(self, client):
        response = client.put("/api/tender-bids", json={"bidId": 5, "deliveryPeriod": 30}, headers=AUTH)
        data = response.json()
        assert response.status_code == 200
        assert data["degraded"] is True
        assert data["data"]["id"] == "5"
        assert data["data"]["deliveryPeriod"] == 30
        assert data["data"]["supplierId"] == "42"

    def test_update_bid_rejects_negative_amount(self, client, stub):
        response = client.put("/api/tender-bids", json={"bidId": 5, "bidAmount": -1}, headers=AUTH)
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "bidAmount"
        assert stub.requests == []

    def test_check_existing_bid(self, client, stub):
        stub.add("GET", "/api/bid-submissions/existing", status_code=404, body={"message": "none"})
        response = client.get("/api/tender-bids", params={"checkExisting": "true", "tenderId": "1"}, headers=AUTH)
        assert response.json()["hasExistingBid"] is False

    def test_rounds_fallback(self, client):
        response = client.get("/api/prequalification/rounds", params={"status": "O", "pageSize": "1"}, headers=AUTH)
        data = response.json()
        assert data["fallback"] is True
        assert len(data["data"]) == 1
        assert data["pagination"] == {"total": 2, "page": 1, "limit": 1, "pages": 2}

    def test_application_progress(self, client):
        response = client.get("/api/prequalification/applications/PQ-2025-02/progress", headers=AUTH)
        data = response.json()
        assert data["data"]["roundId"] == "PQ-2025-02"
        assert data["data"]["summary"]["totalCategories"] == 2

    def test_submit_application(self, client):
        response = client.post(
            "/api/prequalification/applications",
            json={"round_id": "PQ-2025-01", "responses": [{"criteria_id": 1, "response_text": "ISO 9001"}]},
            headers=AUTH,
        )
        assert response.status_code == 201
        assert response.headers["Cache-Control"] == "no-store"
        data = response.json()
        assert data["fallback"] is True
        assert data["data"]["round_id"] == "PQ-2025-01"

    def test_application_needs_round(self, client):
        response = client.post("/api/prequalification/applications", json={"responses": []}, headers=AUTH)
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "round_id"

    def test_rfq_list_live(self, client, stub):
        stub.add("GET", "/api/procurement/rfq-suppliers", body={"data": [
            {"RFQID": 7, "RFQTitle": "Toner", "RFQRef": "RFQ/7", "Status": "OPEN", "ClosingDate": "2026-01-10 12:00:00"},
            {"rfq_id": 8, "title": "Catering", "ref": "RFQ/8", "status": "closed"},
        ]})

        response = client.get("/api/procurement/rfq-suppliers", params={"status": "open", "vendor": "x"}, headers=AUTH)

        assert response.status_code == 200
        data = response.json()
        assert [r["referenceNumber"] for r in data["data"]] == ["RFQ/7"]
        assert data["data"][0]["closingDate"] == "2026-01-10T12:00:00.000Z"
        assert stub.calls("GET", "/api/procurement/rfq-suppliers")[0].url.params["vendor"] == "x"

    def test_rfq_list_fallback(self, client):
        response = client.get("/api/procurement/rfq-suppliers", params={"status": "closed"}, headers=AUTH)
        data = response.json()
        assert data["fallback"] is True
        assert [r["id"] for r in data["data"]] == ["RFQ-2025-009"]

    def test_rfq_detail_live(self, client, stub):
        stub.add("GET", "/api/procurement/rfq-suppliers/RFQ-7", body={"data": {
            "rfq": {"id": "RFQ-7", "title": "Toner", "referenceNumber": "RFQ/7"},
            "items": [{"id": "L1", "description": "Black toner", "quantity": "12", "uom": "Each"}],
        }})

        response = client.get("/api/procurement/rfq-suppliers/RFQ-7", headers=AUTH)

        data = response.json()["data"]
        assert data["title"] == "Toner"
        assert data["lines"][0]["quantity"] == 12.0
        assert data["lines"][0]["unitOfMeasure"] == "Each"

    def test_rfq_detail_fallback_and_unknown(self, client):
        found = client.get("/api/procurement/rfq-suppliers/RFQ-2025-015", headers=AUTH)
        assert found.status_code == 200
        assert found.json()["fallback"] is True
        assert len(found.json()["data"]["lines"]) == 2

        missing = client.get("/api/procurement/rfq-suppliers/RFQ-0000", headers=AUTH)
        assert missing.status_code == 404
        assert missing.json()["code"] == "NOT_FOUND"

    def test_rfq_response(self, client, stub):
        stub.add("POST", "/api/procurement/rfq-responses", body={"success": True, "responseId": "R-1"})

        response = client.post("/api/procurement/rfq-responses", json={
            "rfqId": "RFQ-7",
            "currency": "KES",
            "durationDays": 30,
            "items": [{"rfqLineId": "L1", "quotedPrice": 100, "totalPayable": 1200}],
        }, headers=AUTH)

        assert response.status_code == 200
        assert response.json()["data"]["responseId"] == "R-1"
        sent = stub.calls("POST", "/api/procurement/rfq-responses")[0]
        body = json.loads(sent.content)
        assert body["supplierId"] == "42"
        assert "isDraft" not in body
        assert body["items"] == [{"rfqLineId": "L1", "quotedPrice": 100.0, "totalPayable": 1200.0}]

    def test_rfq_response_needs_validity(self, client, stub):
        response = client.post(
            "/api/procurement/rfq-responses",
            json={"rfqId": "RFQ-7", "durationDays": 0, "items": []},
            headers=AUTH,
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "durationDays"
        assert stub.requests == []

    def test_rfq_draft_demo(self, client):
        response = client.post(
            "/api/procurement/rfq-responses",
            json={"rfqId": "RFQ-2025-014", "durationDays": 14, "isDraft": True},
            headers=AUTH,
        )
        data = response.json()
        assert data["degraded"] is True
        assert data["data"]["status"] == "draft"
        assert data["data"]["responseId"].startswith("local-rfq-response-")

    def test_bank_details_scoped_to_caller(self, client, stub):
        stub.add("GET", "/api/third-parties-bank-details", body={"data": [
            {"Id": 5, "BankName": "KCB", "Branch": "Moi Avenue", "AccountNumber": "123", "CurrencyId": "1"},
        ]})

        response = client.get("/api/third-parties-bank-details", headers=AUTH)

        assert response.json()["data"][0]["currencyId"] == 1
        assert stub.calls("GET", "/api/third-parties-bank-details")[0].url.params["ThirdPartyId"] == "42"

    def test_create_bank_detail(self, client, stub):
        stub.add("POST", "/api/third-parties-bank-details", status_code=201, body={
            "message": "Created",
            "bankDetail": {"Id": 9, "BankName": "Equity", "Branch": "Upper Hill", "AccountNumber": "77", "CurrencyId": 2},
        })

        response = client.post("/api/third-parties-bank-details", json={
            "bankName": "Equity", "branch": "Upper Hill", "accountNumber": "77", "currencyId": 2, "thirdPartyId": 999,
        }, headers=AUTH)

        assert response.status_code == 201
        assert response.json()["data"]["id"] == "9"
        sent = json.loads(stub.calls("POST", "/api/third-parties-bank-details")[0].content)
        assert sent["ThirdPartyId"] == "42"
        assert sent["BankName"] == "Equity"

    def test_create_bank_detail_needs_currency(self, client, stub):
        response = client.post(
            "/api/third-parties-bank-details",
            json={"bankName": "Equity", "branch": "Upper Hill", "accountNumber": "77"},
            headers=AUTH,
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "currencyId"
        assert stub.requests == []

    def test_update_bank_detail_sends_only_changed_fields(self, client, stub):
        stub.add("PUT", "/api/third-parties-bank-details/9", body={"bankDetail": {"Id": 9, "Branch": "Westlands"}})

        response = client.put("/api/third-parties-bank-details/9", json={"branch": "Westlands"}, headers=AUTH)

        assert response.status_code == 200
        sent = json.loads(stub.calls("PUT", "/api/third-parties-bank-details/9")[0].content)
        assert sent == {"Branch": "Westlands", "ThirdPartyId": "42"}

    def test_delete_bank_detail(self, client, stub):
        stub.add("DELETE", "/api/third-parties-bank-details/9", status_code=204, raw=b"")

        assert client.delete("/api/third-parties-bank-details/9", headers=AUTH).status_code == 204

        degraded = client.delete("/api/third-parties-bank-details/10", headers=AUTH)
        assert degraded.status_code == 200
        assert degraded.json()["degraded"] is True

    def test_third_party_details_live(self, client, stub):
        stub.add("GET", "/api/third-party-profile", body={"userProfile": {
            "id": 1,
            "firstName": "Jane",
            "thirdParty": {
                "id": 42, "thirdPartyName": "Acme Ltd", "businessType": "limited",
                "approvalStatus": "A", "status": "I", "thirdPartyType": "S",
            },
        }})

        data = client.get("/api/third-party-details", headers=AUTH).json()["data"]

        assert data["thirdPartyName"] == "Acme Ltd"
        assert data["businessType"] == 3
        assert (data["approvalStatus"], data["status"], data["thirdPartyType"]) == (1, 0, 1)

    def test_third_party_details_fallback(self, client):
        data = client.get("/api/third-party-details", headers=AUTH).json()
        assert data["fallback"] is True
        assert data["data"]["id"] == "42"

    def test_update_third_party_details(self, client, stub):
        stub.add("PUT", "/api/third-party-profile", body={"message": "Updated"})
        body = {
            "thirdPartyName": "Acme Ltd", "businessType": "partnership", "registrationNumber": "PVT-1",
            "taxPIN": "P051", "country": "Kenya", "physicalAddress": "Nairobi", "email": "a@acme.test",
            "phone": "0700000000",
        }

        response = client.put("/api/third-party-details", json=body, headers=AUTH)

        assert response.status_code == 200
        sent = json.loads(stub.calls("PUT", "/api/third-party-profile")[0].content)
        assert sent["BusinessType"] == 2
        assert sent["TaxPIN"] == "P051"

    def test_update_third_party_details_rejects_business_type(self, client):
        body = {
            "thirdPartyName": "Acme Ltd", "businessType": 9, "registrationNumber": "PVT-1",
            "taxPIN": "P051", "country": "Kenya", "physicalAddress": "Nairobi", "email": "a@acme.test",
            "phone": "0700000000",
        }
        response = client.put("/api/third-party-details", json=body, headers=AUTH)
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "businessType"

    def test_profile_read_and_patch(self, client, stub):
        stub.add("GET", "/api/third-party-profile", body={"user_profile": {"id": 3, "firstName": "Jane", "lastName": "Wanjiru"}})
        stub.add("PATCH", "/api/third-party-profile", body={"user_profile": {"id": 3, "firstName": "Jane", "phone": "0711"}})

        profile = client.get("/api/third-party-profile", headers=AUTH).json()["data"]
        assert profile["fullName"] == "Jane Wanjiru"

        response = client.patch("/api/third-party-profile", json={"phone": "0711"}, headers=AUTH)
        assert response.json()["data"]["phone"] == "0711"
        assert json.loads(stub.calls("PATCH", "/api/third-party-profile")[0].content) == {"phone": "0711"}

    def test_profile_put_needs_contact_fields(self, client):
        response = client.put("/api/third-party-profile", json={"firstName": "Jane"}, headers=AUTH)
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "lastName"

    def test_profile_patch_needs_a_field(self, client):
        response = client.patch("/api/third-party-profile", json={}, headers=AUTH)
        assert response.status_code == 400

    def test_password_change(self, client, stub):
        stub.add("PUT", "/api/third-party-profile/password", body={"message": "Password changed"})

        response = client.put(
            "/api/third-party-profile/password",
            json={"currentPassword": "old-secret", "newPassword": "new-secret"},
            headers=AUTH,
        )

        assert response.json() == {"message": "Password changed"}
        sent = json.loads(stub.calls("PUT", "/api/third-party-profile/password")[0].content)
        assert sent == {
            "current_password": "old-secret",
            "new_password": "new-secret",
            "new_password_confirmation": "new-secret",
        }

    def test_password_change_is_never_simulated(self, client):
        response = client.put(
            "/api/third-party-profile/password",
            json={"currentPassword": "old-secret", "newPassword": "new-secret"},
            headers=AUTH,
        )
        assert response.status_code == 503
        assert response.json()["code"] == "UPSTREAM_UNAVAILABLE"

    def test_lookups_are_public(self, client, stub):
        stub.add("GET", "/api/v1/currencies", body={"data": [
            {"Id": 1, "Code": "kes", "Name": "Kenya Shilling", "Symbol": "Ksh"},
            {"Id": 2, "Code": "USD", "Name": "US Dollar", "Symbol": "$"},
        ]})

        currencies = client.get("/api/currencies")
        countries = client.get("/api/v1/countries")

        assert currencies.status_code == 200
        assert currencies.headers["Cache-Control"] == "public, max-age=60"
        assert [c["code"] for c in currencies.json()["data"]] == ["KES", "USD"]
        assert currencies.json()["data"][0]["isDefault"] is True
        assert "Authorization" not in stub.calls("GET", "/api/v1/currencies")[0].headers
        assert countries.headers["Cache-Control"] == "public, max-age=300"
        assert countries.json()["fallback"] is True
        assert countries.json()["data"][0]["name"] == "Kenya"

    def test_connection_check(self, client, stub):
        stub.add("GET", "/api/health", body={"status": "healthy"})
        response = client.get("/api/test-connection", headers=AUTH)
        assert response.json()["status"] == "backend_connected"

    def test_unexpected_error_is_500(self, portal_service):
        portal_service.auth_client.verify_token = AsyncMock(side_effect=RuntimeError("boom"))
        client = TestClient(portal_service.app, raise_server_exceptions=False)

        response = client.get("/api/tenders", headers=AUTH)

        assert response.status_code == 500
        assert response.json()["code"] == "INTERNAL_ERROR"
