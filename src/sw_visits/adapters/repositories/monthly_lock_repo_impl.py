from __future__ import annotations

import structlog

from plugins.django_interface.models import MonthlyVisitLock
from sw_visits.core.domain.entities.monthly_lock_entity import MonthlyVisitLockEntity
from sw_visits.core.domain.repositories.monthly_lock_repository import MonthlyVisitLockRepository

log = structlog.get_logger(__name__)


class MonthlyVisitLockRepoImpl(MonthlyVisitLockRepository):
    def acquire(
        self, member_id: str, month: str, visit_id: str, staff_identity: str, staff_name: str
    ) -> MonthlyVisitLockEntity:
        # get_or_create retries the lookup on IntegrityError, so the loser of
        # a concurrent insert receives the winner's row
        model, created = MonthlyVisitLock.objects.select_for_update().get_or_create(
            member_id=member_id,
            month=month,
            defaults={
                "visit_id": visit_id,
                "staff_identity": staff_identity,
                "staff_name": staff_name,
            },
        )
        log.debug(
            "monthly_lock.acquire",
            member_id=member_id,
            month=month,
            created=created,
            holder=model.visit_id,
        )
        return MonthlyVisitLockEntity.from_model(model)

    def find(self, member_id: str, month: str) -> MonthlyVisitLockEntity | None:
        model = MonthlyVisitLock.objects.filter(member_id=member_id, month=month).first()
        return MonthlyVisitLockEntity.from_model(model) if model else None

    def link_claim(self, member_id: str, month: str, claim_id: str) -> None:
        MonthlyVisitLock.objects.filter(member_id=member_id, month=month).update(claim_id=claim_id)
