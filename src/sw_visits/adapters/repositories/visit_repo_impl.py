from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

import structlog
from django.db import transaction

from plugins.django_interface.models import SWVisit
from sw_visits.core.domain.entities.visit_entity import VISIT_STATUS_SIGNED_OFF, VisitEntity
from sw_visits.core.domain.repositories.visit_repository import VisitRepository

log = structlog.get_logger(__name__)


class VisitRepoImpl(VisitRepository):
    """Persistence of accepted visits; only sign-off and claim columns are ever updated."""

    def find_by_id(self, visit_id: str) -> VisitEntity | None:
        model = SWVisit.objects.filter(visit_id=visit_id).first()
        return VisitEntity.from_model(model) if model else None

    @transaction.atomic
    def create_if_absent(self, visit: VisitEntity) -> tuple[VisitEntity, bool]:
        model, created = SWVisit.objects.get_or_create(
            visit_id=visit.visit_id,
            defaults=visit.to_model_defaults(),
        )
        if not created:
            log.info("visit.already_stored", visit_id=visit.visit_id)
        return VisitEntity.from_model(model), created

    def link_claim(self, visit_id: str, claim_id: str, claim_status: str) -> None:
        SWVisit.objects.filter(visit_id=visit_id).update(claim_id=claim_id, claim_status=claim_status)

    def set_claim_status(self, visit_ids: Sequence[str], claim_status: str) -> int:
        if not visit_ids:
            return 0
        return SWVisit.objects.filter(visit_id__in=list(visit_ids)).update(claim_status=claim_status)

    def find_many_for_update(self, visit_ids: Sequence[str]) -> list[VisitEntity]:
        qs = SWVisit.objects.select_for_update().filter(visit_id__in=list(visit_ids)).order_by("visit_id")
        return [VisitEntity.from_model(m) for m in qs]

    def mark_signed_off(
        self, visit_ids: Sequence[str], signed_off_at: datetime, signed_off_by: str, notes: str
    ) -> int:
        return (
            SWVisit.objects.filter(visit_id__in=list(visit_ids))
            .exclude(status=VISIT_STATUS_SIGNED_OFF)
            .update(
                status=VISIT_STATUS_SIGNED_OFF,
                signed_off_at=signed_off_at,
                signed_off_by=signed_off_by,
                signoff_notes=notes,
            )
        )

    def list_by_staff(self, staff_identity: str, month: str | None = None) -> list[VisitEntity]:
        qs = SWVisit.objects.filter(staff_identity=staff_identity)
        if month:
            qs = qs.filter(visit_month=month)
        return [VisitEntity.from_model(m) for m in qs.order_by("-visit_date", "visit_id")]
