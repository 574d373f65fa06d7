from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date
from typing import Any

import structlog
from django.db import transaction
from django.utils import timezone
from pydantic import ValidationError

from members_core.core.application.services.members_cache_service import MembersCacheService
from members_core.core.application.services.staff_directory_service import StaffDirectoryService
from members_core.core.domain.entities.member_entity import MemberEntity
from members_core.core.domain.exceptions import CacheEmptyError
from members_core.core.domain.services.event_dispatcher import EventDispatcher
from sw_visits.adapters.observability.metrics import VISIT_SUBMISSIONS
from sw_visits.core.application.dtos.visit_dtos import VisitResultDTO, VisitSubmissionDTO
from sw_visits.core.application.services.claim_aggregator import ClaimAggregator
from sw_visits.core.domain.entities.visit_entity import VisitEntity, visit_month
from sw_visits.core.domain.events.events import FlaggedVisitEvent, VisitAcceptedEvent
from sw_visits.core.domain.exceptions import ClaimClosedError, VisitRejectedError
from sw_visits.core.domain.repositories.monthly_lock_repository import MonthlyVisitLockRepository
from sw_visits.core.domain.repositories.visit_repository import VisitRepository
from sw_visits.core.domain.services.eligibility import check_member_eligibility
from sw_visits.core.domain.services.staff_identity import resolve_staff_identity
from sw_visits.core.domain.services.visit_scoring import (
    DEFAULT_LOW_SCORE_THRESHOLD,
    VisitAssessment,
    assess_visit,
    next_actions,
)

logger = structlog.get_logger(__name__)


class VisitIngestionService:
    """
    received ➜ validated ➜ rejected(reason) | accepted(pending_signoff | flagged)

    Every gate runs before anything is written. Lock, visit row and claim
    draft then share one transaction, so a rejection at any point leaves no
    trace; the supervisor alert is only published after commit.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        members_cache: MembersCacheService,
        visit_repo: VisitRepository,
        lock_repo: MonthlyVisitLockRepository,
        aggregator: ClaimAggregator,
        alert_publisher: Callable[[FlaggedVisitEvent], Any] | None = None,
        staff_directory: StaffDirectoryService | None = None,
        dispatcher: EventDispatcher | None = None,
        low_score_threshold: int = DEFAULT_LOW_SCORE_THRESHOLD,
        auth_expiry_plans: Iterable[str] = ("kaiser",),
        today: Callable[[], date] = timezone.localdate,
    ) -> None:
        self.members_cache = members_cache
        self.visit_repo = visit_repo
        self.lock_repo = lock_repo
        self.aggregator = aggregator
        self.alert_publisher = alert_publisher
        self.staff_directory = staff_directory
        self.dispatcher = dispatcher
        self.low_score_threshold = low_score_threshold
        self.auth_expiry_plans = list(auth_expiry_plans)
        self.today = today

    # ───────────────────────── API ─────────────────────────
    def submit_visit(  # noqa: PLR0913
        self,
        payload: dict[str, Any],
        *,
        staff_uid: str = "",
        staff_email: str = "",
        staff_name: str = "",
        submitted_on: date | None = None,
    ) -> VisitResultDTO:
        try:
            result = self._submit(payload, staff_uid, staff_email, staff_name, submitted_on or self.today())
        except VisitRejectedError as exc:
            VISIT_SUBMISSIONS.labels(exc.reason).inc()
            logger.warning(
                "visit.rejected",
                reason=exc.reason,
                visit_id=(payload or {}).get("visitId"),
                member_id=(payload or {}).get("memberId"),
                detail=exc.message,
            )
            raise
        VISIT_SUBMISSIONS.labels("flagged" if result.flagged else "accepted").inc()
        return result

    # ───────────────────────── pipeline ─────────────────────────
    def _submit(
        self, payload: dict[str, Any], staff_uid: str, staff_email: str, staff_name: str, submitted_on: date
    ) -> VisitResultDTO:
        dto = self._parse(payload)
        identity = resolve_staff_identity(
            staff_uid or dto.social_worker_uid,
            staff_email or dto.social_worker_email,
            dto.social_worker_id,
        )
        if not identity:
            raise VisitRejectedError(
                VisitRejectedError.VALIDATION_ERROR, "A social worker id or e-mail is required."
            )

        member = self.members_cache.get_member(dto.member_id)
        if member is None:
            if self.members_cache.count() == 0:
                raise CacheEmptyError("The members cache has not been populated yet.")
            raise VisitRejectedError(VisitRejectedError.VALIDATION_ERROR, "Member not found.", memberId=dto.member_id)
        check_member_eligibility(member, submitted_on, self.auth_expiry_plans)

        assessment = assess_visit(dto, self.low_score_threshold)
        visit = self._build_visit(dto, member, identity, staff_email, staff_name, assessment)

        # a retry is keyed by the stored visit, never by the resubmitted date
        known = self.visit_repo.find_by_id(visit.visit_id)
        if known is not None and known.member_id != visit.member_id:
            raise VisitRejectedError(
                VisitRejectedError.VALIDATION_ERROR,
                "This visit id was already used for another member.",
            )
        month = known.visit_month if known is not None else visit_month(dto.visit_date)

        with transaction.atomic():
            lock = self.lock_repo.acquire(
                member_id=visit.member_id,
                month=month,
                visit_id=visit.visit_id,
                staff_identity=identity,
                staff_name=visit.staff_name,
            )
            if not lock.is_held_by(visit.visit_id):
                raise VisitRejectedError(
                    VisitRejectedError.DUPLICATE_MONTHLY_VISIT,
                    f"A questionnaire for this member was already submitted for {month} "
                    f"by {lock.staff_name or 'another social worker'}.",
                    existingVisitId=lock.visit_id,
                    month=month,
                )

            stored, created = self.visit_repo.create_if_absent(visit)
            if stored.member_id != visit.member_id:
                raise VisitRejectedError(
                    VisitRejectedError.VALIDATION_ERROR,
                    "This visit id was already used for another member.",
                )
            if stored.visit_month != month:
                # stored concurrently for another month; rolls back the lock taken above
                raise VisitRejectedError(
                    VisitRejectedError.VALIDATION_ERROR,
                    f"This visit id is already stored for {stored.visit_month}.",
                    existingVisitId=stored.visit_id,
                    month=stored.visit_month,
                )

            try:
                claim = self.aggregator.upsert_visit_into_claim(stored)
            except ClaimClosedError as exc:
                raise VisitRejectedError(
                    VisitRejectedError.CLAIM_CLOSED,
                    f"The claim for {stored.visit_date.isoformat()} is already {exc.status}; "
                    "visits can no longer be added to it.",
                    claimId=exc.claim_id,
                ) from exc

            if created:
                self._after_commit(stored, member, claim.claim_id)

        logger.info(
            "visit.accepted",
            visit_id=stored.visit_id,
            member_id=stored.member_id,
            staff_identity=identity,
            created=created,
            flagged=stored.flagged,
            total_score=stored.total_score,
            claim_id=claim.claim_id,
        )
        return VisitResultDTO(
            visit_id=stored.visit_id,
            flagged=stored.flagged,
            status=stored.status,
            total_score=stored.total_score,
            flag_reasons=stored.flag_reasons,
            urgency=stored.urgency,
            claim_id=claim.claim_id,
            claim_total=claim.total_amount,
            next_actions=next_actions(dto, assessment),
            created=created,
        )

    # ───────────────────────── helpers ─────────────────────────
    @staticmethod
    def _parse(payload: dict[str, Any]) -> VisitSubmissionDTO:
        try:
            return VisitSubmissionDTO.model_validate(payload or {})
        except ValidationError as exc:
            errors = [
                {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                for err in exc.errors()
            ]
            raise VisitRejectedError(
                VisitRejectedError.VALIDATION_ERROR, "The visit payload is invalid.", errors=errors
            ) from exc

    def _display_name(self, dto: VisitSubmissionDTO, email: str, staff_name: str) -> str:
        if staff_name.strip():
            return staff_name.strip()
        if dto.social_worker_name.strip():
            return dto.social_worker_name.strip()
        if self.staff_directory is not None and email:
            resolved = self.staff_directory.resolve_staff_display_name(email)
            if resolved:
                return resolved
        return email

    def _build_visit(  # noqa: PLR0913
        self,
        dto: VisitSubmissionDTO,
        member: MemberEntity,
        identity: str,
        staff_email: str,
        staff_name: str,
        assessment: VisitAssessment,
    ) -> VisitEntity:
        email = (staff_email or dto.social_worker_email).strip().lower()
        return VisitEntity(
            visit_id=dto.visit_id,
            member_id=dto.member_id,
            staff_identity=identity,
            visit_date=dto.visit_date,
            member_name=dto.member_name or member.full_name,
            staff_id=dto.social_worker_id,
            staff_email=email,
            staff_name=self._display_name(dto, email, staff_name),
            rcfe_id=dto.rcfe_id or member.rcfe_registered_id,
            rcfe_name=dto.rcfe_name or member.rcfe_name,
            rcfe_address=dto.rcfe_address or member.rcfe_address,
            questionnaire=dto.questionnaire(),
            total_score=assessment.total_score,
            flagged=assessment.flagged,
            flag_reasons=list(assessment.flag_reasons),
            urgency=assessment.urgency,
            geolocation=dto.geolocation.model_dump() if dto.geolocation else None,
            status=assessment.status,
        )

    def _after_commit(self, visit: VisitEntity, member: MemberEntity, claim_id: str) -> None:
        if self.dispatcher is not None:
            accepted = VisitAcceptedEvent(
                visit_id=visit.visit_id,
                member_id=visit.member_id,
                staff_identity=visit.staff_identity,
                claim_id=claim_id,
                flagged=visit.flagged,
            )
            self.dispatcher.dispatch_on_commit(accepted)

        if visit.flagged and self.alert_publisher is not None:
            flagged = FlaggedVisitEvent(
                visit_id=visit.visit_id,
                member_id=visit.member_id,
                member_name=visit.member_name,
                rcfe_name=visit.rcfe_name,
                rcfe_address=visit.rcfe_address,
                staff_name=visit.staff_name,
                staff_email=visit.staff_email,
                visit_date=visit.visit_date,
                total_score=visit.total_score,
                urgency=visit.urgency,
                flag_reasons=tuple(visit.flag_reasons),
                assignment_texts=tuple(t for t in member.assignment_fields if t and t.strip()),
            )
            transaction.on_commit(lambda: self.alert_publisher(flagged))
