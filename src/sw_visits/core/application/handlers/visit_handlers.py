from __future__ import annotations

from members_core.core.application.cqrs import CommandHandler, QueryHandler
from sw_visits.core.application.commands.visit_commands import SignOffVisitsCommand, SubmitVisitCommand
from sw_visits.core.application.dtos.visit_dtos import VisitResultDTO
from sw_visits.core.application.queries.claim_queries import ListVisitsQuery
from sw_visits.core.application.services.visit_ingestion_service import VisitIngestionService
from sw_visits.core.application.services.visit_signoff_service import VisitSignOffService
from sw_visits.core.domain.entities.visit_entity import VisitEntity
from sw_visits.core.domain.repositories.visit_repository import VisitRepository
from sw_visits.core.domain.services.staff_identity import resolve_staff_identity


class SubmitVisitHandler(CommandHandler[SubmitVisitCommand]):
    def __init__(self, ingestion: VisitIngestionService) -> None:
        self.ingestion = ingestion

    def handle(self, cmd: SubmitVisitCommand) -> VisitResultDTO:
        return self.ingestion.submit_visit(
            cmd.payload,
            staff_uid=cmd.staff_uid,
            staff_email=cmd.staff_email,
            staff_name=cmd.staff_name,
            submitted_on=cmd.submitted_on,
        )


class SignOffVisitsHandler(CommandHandler[SignOffVisitsCommand]):
    def __init__(self, signoff: VisitSignOffService) -> None:
        self.signoff = signoff

    def handle(self, cmd: SignOffVisitsCommand) -> list[str]:
        return self.signoff.sign_off_visits(
            cmd.visit_ids,
            actor_identity=resolve_staff_identity(cmd.staff_uid, cmd.staff_email, None),
            signer_name=cmd.signer_name,
            notes=cmd.notes,
        )


class ListVisitsHandler(QueryHandler[dict, list[VisitEntity]]):
    def __init__(self, visit_repo: VisitRepository) -> None:
        self.visit_repo = visit_repo

    def handle(self, query: ListVisitsQuery) -> list[VisitEntity]:
        filtros = query.filtros or {}
        return self.visit_repo.list_by_staff(filtros["staff_identity"], filtros.get("month"))
