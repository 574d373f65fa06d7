from dataclasses import dataclass

from members_core.core.application.cqrs import PaginatedQueryDTO, QueryDTO


@dataclass(frozen=True)
class ListClaimsQuery(PaginatedQueryDTO[dict]):
    """filtros: `staff_identity` (required for non-admins), optional `month` / `status`."""


@dataclass(frozen=True)
class GetClaimQuery(QueryDTO[dict]):
    """filtros: `{"claim_id": ...}`"""


@dataclass(frozen=True)
class ListVisitsQuery(QueryDTO[dict]):
    """filtros: `staff_identity`, optional `month`."""
