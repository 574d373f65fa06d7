from __future__ import annotations

from members_core.core.application.cqrs import CommandHandler, PagedResult, QueryHandler
from sw_visits.core.application.commands.claim_commands import SubmitClaimCommand, UpdateClaimStatusCommand
from sw_visits.core.application.queries.claim_queries import GetClaimQuery, ListClaimsQuery
from sw_visits.core.application.services.claim_lifecycle_service import ClaimLifecycleService
from sw_visits.core.domain.entities.claim_entity import ClaimEntity
from sw_visits.core.domain.services.staff_identity import resolve_staff_identity


class SubmitClaimHandler(CommandHandler[SubmitClaimCommand]):
    def __init__(self, lifecycle: ClaimLifecycleService) -> None:
        self.lifecycle = lifecycle

    def handle(self, cmd: SubmitClaimCommand) -> ClaimEntity:
        actor = resolve_staff_identity(cmd.staff_uid, cmd.staff_email, None)
        return self.lifecycle.submit_claim(cmd.claim_id, actor)


class UpdateClaimStatusHandler(CommandHandler[UpdateClaimStatusCommand]):
    def __init__(self, lifecycle: ClaimLifecycleService) -> None:
        self.lifecycle = lifecycle

    def handle(self, cmd: UpdateClaimStatusCommand) -> ClaimEntity:
        return self.lifecycle.update_claim_status(cmd.claim_id, cmd.status, cmd.actor, cmd.notes)


class ListClaimsHandler(QueryHandler[dict, PagedResult[ClaimEntity]]):
    def __init__(self, lifecycle: ClaimLifecycleService) -> None:
        self.lifecycle = lifecycle

    def handle(self, query: ListClaimsQuery) -> PagedResult[ClaimEntity]:
        return self.lifecycle.list_claims(query.filtros or {}, query.page, query.page_size)


class GetClaimHandler(QueryHandler[dict, dict]):
    """Claim plus its audit trail."""

    def __init__(self, lifecycle: ClaimLifecycleService) -> None:
        self.lifecycle = lifecycle

    def handle(self, query: GetClaimQuery) -> dict:
        claim_id = str((query.filtros or {}).get("claim_id") or "")
        claim = self.lifecycle.get_claim(claim_id)
        return {**claim.to_dict(), "events": self.lifecycle.history(claim_id)}
