"""
Joins tenders with the caller's invitations.
"""

from typing import Dict, List, Sequence

from .models import Tender, TenderInvitation, TenderWithInvitation
from .normalizer import canonical_key


def merge(tenders: Sequence[Tender], invitations: Sequence[TenderInvitation]) -> List[TenderWithInvitation]:
    """Left-join on the integer form of the tender id.

    Every tender appears exactly once, in input order. When several
    invitations reference one tender the first wins; ids that are not
    integers never match.
    """
    by_tender: Dict[int, TenderInvitation] = {}
    for invitation in invitations:
        key = canonical_key(invitation.tender_id)
        if key is not None and key not in by_tender:
            by_tender[key] = invitation

    merged = []
    for tender in tenders:
        key = canonical_key(tender.id)
        merged.append(TenderWithInvitation(tender=tender, invitation=by_tender.get(key) if key is not None else None))
    return merged
