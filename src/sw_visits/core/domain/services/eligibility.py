from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from members_core.core.domain.entities.member_entity import MemberEntity
from sw_visits.core.domain.exceptions import VisitRejectedError


def check_member_eligibility(member: MemberEntity, submitted_on: date, auth_expiry_plans: Iterable[str]) -> None:
    """Raises `VisitRejectedError` for the first gate the member fails."""
    if not member.is_authorized:
        raise VisitRejectedError(
            VisitRejectedError.NOT_AUTHORIZED,
            "Monthly questionnaires are only allowed for Authorized members.",
            calaimStatus=member.calaim_status or None,
        )
    if member.on_hold:
        raise VisitRejectedError(
            VisitRejectedError.ON_HOLD,
            "This member is on hold for social worker visits. "
            "Visits can resume once the hold is removed.",
            hold=member.hold_for_social_worker or None,
        )
    plans = list(auth_expiry_plans)
    if member.is_authorization_expired(submitted_on, plans):
        end = member.authorization_end_date.isoformat()
        raise VisitRejectedError(
            VisitRejectedError.AUTH_EXPIRED,
            f"This member's {member.calaim_mco or 'plan'} authorization ended on {end}. "
            "SW visits are suspended after the authorization end date.",
            authorizationEndDate=end,
        )
