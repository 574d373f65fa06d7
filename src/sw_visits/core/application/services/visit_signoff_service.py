from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime

import structlog
from django.db import transaction
from django.utils import timezone

from members_core.core.domain.services.event_dispatcher import EventDispatcher
from sw_visits.core.domain.events.events import VisitsSignedOffEvent
from sw_visits.core.domain.exceptions import VisitAccessDeniedError, VisitNotFoundError, VisitRejectedError
from sw_visits.core.domain.repositories.visit_repository import VisitRepository

logger = structlog.get_logger(__name__)


class VisitSignOffService:
    """RCFE sign-off of a social worker's own visits; already signed visits are left as they are."""

    def __init__(
        self,
        visit_repo: VisitRepository,
        dispatcher: EventDispatcher | None = None,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self.visit_repo = visit_repo
        self.dispatcher = dispatcher
        self.clock = clock

    @transaction.atomic
    def sign_off_visits(
        self, visit_ids: Sequence[str], actor_identity: str, signer_name: str, notes: str = ""
    ) -> list[str]:
        ids = list(dict.fromkeys(v.strip() for v in visit_ids if v and v.strip()))
        if not ids:
            raise VisitRejectedError(VisitRejectedError.VALIDATION_ERROR, "Select at least one visit to sign off.")
        if not (signer_name or "").strip():
            raise VisitRejectedError(VisitRejectedError.VALIDATION_ERROR, "The signer name is required.")

        visits = {v.visit_id: v for v in self.visit_repo.find_many_for_update(ids)}
        missing = [i for i in ids if i not in visits]
        if missing:
            raise VisitNotFoundError(f"Unknown visit ids: {', '.join(missing)}")
        foreign = [i for i in ids if visits[i].staff_identity != actor_identity]
        if foreign:
            raise VisitAccessDeniedError(f"Visits belong to another staff member: {', '.join(foreign)}")

        pending = [i for i in ids if not visits[i].is_signed_off]
        if pending:
            self.visit_repo.mark_signed_off(pending, self.clock(), signer_name.strip(), (notes or "").strip())
            if self.dispatcher is not None:
                event = VisitsSignedOffEvent(visit_ids=tuple(pending), signed_off_by=signer_name.strip())
                self.dispatcher.dispatch_on_commit(event)

        logger.info(
            "visits.signed_off",
            staff_identity=actor_identity,
            requested=len(ids),
            updated=len(pending),
        )
        return pending
