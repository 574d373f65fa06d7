from dataclasses import dataclass

from members_core.core.application.cqrs import QueryDTO


@dataclass(frozen=True)
class ResolveAssignedMembersQuery(QueryDTO[dict]):
    """filtros: `{"staff_id": <uid, name, "Last, First" or e-mail>}`"""


@dataclass(frozen=True)
class GetMembersCacheStatusQuery(QueryDTO[dict]):
    pass


@dataclass(frozen=True)
class GetMemberQuery(QueryDTO[dict]):
    """filtros: `{"client_id": ...}`"""
