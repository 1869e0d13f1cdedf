"""
Unit tests for the tender/invitation join.
"""

from service_portal.app.domain.merger import merge
from service_portal.app.domain.normalizer import normalize_batch


def _tenders(*ids):
    return normalize_batch("tender", [{"Id": i, "Title": f"Tender {i}"} for i in ids])


def _invitations(*pairs):
    return normalize_batch("invitation", [
        {"invitation_id": invitation_id, "tender_id": tender_id} for invitation_id, tender_id in pairs
    ])


class TestMerge:
    """Left join of tenders with invitations."""

    def test_every_tender_appears_once_in_order(self):
        merged = merge(_tenders(3, 1, 2), _invitations((10, 1)))
        assert [m.tender.id for m in merged] == ["3", "1", "2"]
        assert [m.invitation.invitation_id if m.invitation else None for m in merged] == [None, "10", None]

    def test_first_invitation_wins(self):
        merged = merge(_tenders(1), _invitations((10, 1), (11, 1)))
        assert merged[0].invitation.invitation_id == "10"

    def test_string_and_integer_ids_join(self):
        tenders = normalize_batch("tender", [{"id": "7"}])
        invitations = normalize_batch("invitation", [{"TenderId": 7, "InvitationID": 1}])
        assert merge(tenders, invitations)[0].invitation is not None

    def test_non_integer_ids_never_match(self):
        tenders = normalize_batch("tender", [{"id": "roads"}])
        invitations = normalize_batch("invitation", [{"tenderId": "roads", "invitationId": 1}])
        assert merge(tenders, invitations)[0].invitation is None

    def test_no_invitations(self):
        merged = merge(_tenders(1, 2), [])
        assert len(merged) == 2
        assert all(m.invitation is None for m in merged)

    def test_payload_carries_invitation_key(self):
        payload = merge(_tenders(1), [])[0].to_dict()
        assert payload["id"] == "1"
        assert payload["invitation"] is None
