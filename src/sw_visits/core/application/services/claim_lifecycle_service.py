from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import structlog
from django.db import transaction
from django.utils import timezone

from members_core.core.application.cqrs import PagedResult
from members_core.core.domain.services.event_dispatcher import EventDispatcher
from sw_visits.adapters.observability.metrics import CLAIM_TRANSITIONS
from sw_visits.core.domain.entities.claim_entity import (
    CLAIM_STATUS_DRAFT,
    CLAIM_STATUS_SUBMITTED,
    CLAIM_STATUSES,
    REVIEW_TRANSITIONS,
    TRANSITIONS_REQUIRING_NOTES,
    ClaimEntity,
)
from sw_visits.core.domain.events.events import ClaimStatusChangedEvent
from sw_visits.core.domain.exceptions import (
    ClaimAccessDeniedError,
    ClaimNotFoundError,
    InvalidClaimTransitionError,
)
from sw_visits.core.domain.repositories.claim_repository import ClaimRepository
from sw_visits.core.domain.repositories.visit_repository import VisitRepository

logger = structlog.get_logger(__name__)


class ClaimLifecycleService:
    """Submission by the owner, then reviewer transitions; each one audited and pushed to the visits."""

    def __init__(
        self,
        claim_repo: ClaimRepository,
        visit_repo: VisitRepository,
        dispatcher: EventDispatcher | None = None,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self.claim_repo = claim_repo
        self.visit_repo = visit_repo
        self.dispatcher = dispatcher
        self.clock = clock

    # ───────────────────────── reads ─────────────────────────
    def get_claim(self, claim_id: str) -> ClaimEntity:
        claim = self.claim_repo.find_by_claim_id(claim_id)
        if claim is None:
            raise ClaimNotFoundError(f"Claim {claim_id} not found")
        return claim

    def list_claims(self, filtros: dict, page: int = 1, page_size: int = 50) -> PagedResult[ClaimEntity]:
        return self.claim_repo.list(filtros, max(page, 1), max(page_size, 1))

    def history(self, claim_id: str) -> list[dict]:
        return self.claim_repo.list_events(claim_id)

    # ───────────────────────── writes ─────────────────────────
    @transaction.atomic
    def submit_claim(self, claim_id: str, actor_identity: str) -> ClaimEntity:
        claim = self._locked(claim_id)
        if claim.staff_identity != actor_identity:
            raise ClaimAccessDeniedError(f"Claim {claim_id} belongs to another staff member")
        if claim.status != CLAIM_STATUS_DRAFT:
            raise InvalidClaimTransitionError(claim_id, claim.status, CLAIM_STATUS_SUBMITTED)
        if claim.visit_count < 1:
            raise InvalidClaimTransitionError(
                claim_id, claim.status, CLAIM_STATUS_SUBMITTED, "A claim without visits cannot be submitted"
            )
        return self._transition(claim, CLAIM_STATUS_SUBMITTED, actor_identity)

    @transaction.atomic
    def update_claim_status(self, claim_id: str, status: str, actor: str, notes: str = "") -> ClaimEntity:
        claim = self._locked(claim_id)
        if status not in CLAIM_STATUSES or status not in REVIEW_TRANSITIONS.get(claim.status, frozenset()):
            raise InvalidClaimTransitionError(claim_id, claim.status, status)
        if status in TRANSITIONS_REQUIRING_NOTES and not (notes or "").strip():
            raise InvalidClaimTransitionError(
                claim_id, claim.status, status, f"Notes are required to move a claim to '{status}'"
            )
        return self._transition(claim, status, actor, (notes or "").strip())

    # ───────────────────────── internals ─────────────────────────
    def _locked(self, claim_id: str) -> ClaimEntity:
        claim = self.claim_repo.find_by_claim_id(claim_id, for_update=True)
        if claim is None:
            raise ClaimNotFoundError(f"Claim {claim_id} not found")
        return claim

    def _transition(self, claim: ClaimEntity, to_status: str, actor: str, notes: str = "") -> ClaimEntity:
        from_status = claim.status
        claim.status = to_status
        if to_status == CLAIM_STATUS_SUBMITTED:
            claim.submitted_at = self.clock()
        elif to_status == CLAIM_STATUS_DRAFT:
            claim.submitted_at = None
        if notes:
            claim.reviewer_notes = notes

        saved = self.claim_repo.save(claim)
        self.claim_repo.add_event(saved.claim_id, from_status, to_status, actor, notes)
        self.visit_repo.set_claim_status(saved.visit_ids, to_status)

        CLAIM_TRANSITIONS.labels(to_status).inc()
        logger.info(
            "claim.status_changed",
            claim_id=saved.claim_id,
            from_status=from_status,
            to_status=to_status,
            actor=actor,
        )
        if self.dispatcher is not None:
            event = ClaimStatusChangedEvent(
                claim_id=saved.claim_id, from_status=from_status, to_status=to_status, actor=actor
            )
            self.dispatcher.dispatch_on_commit(event)
        return saved
