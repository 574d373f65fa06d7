from __future__ import annotations

from datetime import date

import structlog
from django.db import transaction

from members_core.core.application.cqrs import PagedResult
from plugins.django_interface.models import SWClaim, SWClaimEvent
from sw_visits.core.domain.entities.claim_entity import ClaimEntity
from sw_visits.core.domain.repositories.claim_repository import ClaimRepository

log = structlog.get_logger(__name__)

_WRITABLE_FIELDS = (
    "staff_email",
    "staff_name",
    "visit_ids",
    "visit_count",
    "visit_fee_rate",
    "gas_amount",
    "total_member_visit_fees",
    "total_amount",
    "member_visits",
    "status",
    "submitted_at",
    "reviewer_notes",
)


class ClaimRepoImpl(ClaimRepository):
    def get_or_create_for_update(
        self, staff_identity: str, claim_date: date, claim_id: str, defaults: dict
    ) -> ClaimEntity:
        model, created = SWClaim.objects.select_for_update().get_or_create(
            staff_identity=staff_identity,
            claim_date=claim_date,
            defaults={
                "claim_id": claim_id,
                "claim_month": claim_date.strftime("%Y-%m"),
                **defaults,
            },
        )
        if created:
            log.info("claim.created", claim_id=claim_id, staff_identity=staff_identity)
        return ClaimEntity.from_model(model)

    def find_by_claim_id(self, claim_id: str, for_update: bool = False) -> ClaimEntity | None:
        qs = SWClaim.objects.select_for_update() if for_update else SWClaim.objects
        model = qs.filter(claim_id=claim_id).first()
        return ClaimEntity.from_model(model) if model else None

    @transaction.atomic
    def save(self, claim: ClaimEntity) -> ClaimEntity:
        SWClaim.objects.filter(claim_id=claim.claim_id).update(
            **{name: getattr(claim, name) for name in _WRITABLE_FIELDS}
        )
        return ClaimEntity.from_model(SWClaim.objects.get(claim_id=claim.claim_id))

    def add_event(self, claim_id: str, from_status: str, to_status: str, actor: str, notes: str = "") -> None:
        SWClaimEvent.objects.create(
            claim=SWClaim.objects.get(claim_id=claim_id),
            from_status=from_status,
            to_status=to_status,
            actor=actor,
            notes=notes,
        )

    def list_events(self, claim_id: str) -> list[dict]:
        qs = SWClaimEvent.objects.filter(claim__claim_id=claim_id).order_by("created_at")
        return [
            {
                "fromStatus": e.from_status,
                "toStatus": e.to_status,
                "actor": e.actor,
                "notes": e.notes,
                "createdAt": e.created_at.isoformat(),
            }
            for e in qs
        ]

    def list(self, filtros: dict, page: int, page_size: int) -> PagedResult[ClaimEntity]:
        qs = SWClaim.objects.all()
        if filtros.get("staff_identity"):
            qs = qs.filter(staff_identity=filtros["staff_identity"])
        if filtros.get("month"):
            qs = qs.filter(claim_month=filtros["month"])
        if filtros.get("status"):
            qs = qs.filter(status=filtros["status"])
        qs = qs.order_by("-claim_date", "claim_id")

        total = qs.count()
        offset = (page - 1) * page_size
        items = [ClaimEntity.from_model(m) for m in qs[offset : offset + page_size]]
        return PagedResult(items=items, total=total, page=page, page_size=page_size)
