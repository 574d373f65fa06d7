from __future__ import annotations

import structlog
from django.db import transaction

from sw_visits.adapters.observability.metrics import CLAIMS_UPSERTED
from sw_visits.core.domain.entities.claim_entity import CLAIM_STATUS_DRAFT, ClaimEntity, build_claim_id
from sw_visits.core.domain.entities.visit_entity import VisitEntity
from sw_visits.core.domain.exceptions import ClaimClosedError
from sw_visits.core.domain.repositories.claim_repository import ClaimRepository
from sw_visits.core.domain.repositories.monthly_lock_repository import MonthlyVisitLockRepository
from sw_visits.core.domain.repositories.visit_repository import VisitRepository

logger = structlog.get_logger(__name__)

DEFAULT_VISIT_FEE_RATE = 45
DEFAULT_GAS_FLAT_RATE = 20


class ClaimAggregator:
    """
    Folds each accepted visit into the daily claim draft of its staff member.

    The draft row is locked for the whole read-modify-write, so concurrent
    visits of the same staff member and day serialize on it and every id
    lands in `visit_ids`.
    """

    def __init__(
        self,
        claim_repo: ClaimRepository,
        visit_repo: VisitRepository,
        lock_repo: MonthlyVisitLockRepository,
        fee_rate: int = DEFAULT_VISIT_FEE_RATE,
        gas_rate: int = DEFAULT_GAS_FLAT_RATE,
    ) -> None:
        self.claim_repo = claim_repo
        self.visit_repo = visit_repo
        self.lock_repo = lock_repo
        self.fee_rate = fee_rate
        self.gas_rate = gas_rate

    @transaction.atomic
    def upsert_visit_into_claim(self, visit: VisitEntity) -> ClaimEntity:
        claim_id = build_claim_id(visit.staff_identity, visit.visit_date)
        claim = self.claim_repo.get_or_create_for_update(
            staff_identity=visit.staff_identity,
            claim_date=visit.visit_date,
            claim_id=claim_id,
            defaults={
                "staff_email": visit.staff_email,
                "staff_name": visit.staff_name,
                "status": CLAIM_STATUS_DRAFT,
                "visit_fee_rate": self.fee_rate,
            },
        )

        if claim.contains(visit.visit_id):
            # retry of an already folded visit
            self._link(visit, claim)
            return claim
        if not claim.is_draft:
            raise ClaimClosedError(claim.claim_id, claim.status)

        claim.fold_visit(visit, self.fee_rate, self.gas_rate)
        claim = self.claim_repo.save(claim)
        self._link(visit, claim)

        CLAIMS_UPSERTED.inc()
        logger.info(
            "claim.upserted",
            claim_id=claim.claim_id,
            visit_id=visit.visit_id,
            visit_count=claim.visit_count,
            total_amount=claim.total_amount,
        )
        return claim

    def _link(self, visit: VisitEntity, claim: ClaimEntity) -> None:
        self.visit_repo.link_claim(visit.visit_id, claim.claim_id, claim.status)
        self.lock_repo.link_claim(visit.member_id, visit.visit_month, claim.claim_id)
