from __future__ import annotations

from typing import Any

from members_core.core.application.dtos.assignment_dto import AssignmentResultDTO
from members_core.core.application.queries.assignment_queries import (
    GetMemberQuery,
    GetMembersCacheStatusQuery,
    ResolveAssignedMembersQuery,
)
from members_core.core.application.services.assignment_resolver import AssignmentResolver
from members_core.core.application.services.members_cache_service import MembersCacheService
from members_core.core.domain.entities.member_entity import MemberEntity


class ResolveAssignedMembersHandler:
    def __init__(self, resolver: AssignmentResolver) -> None:
        self.resolver = resolver

    def handle(self, query: ResolveAssignedMembersQuery) -> AssignmentResultDTO:
        filtros = query.filtros or {}
        return self.resolver.resolve_assigned_members(str(filtros.get("staff_id") or ""))


class GetMembersCacheStatusHandler:
    def __init__(self, cache_service: MembersCacheService) -> None:
        self.cache_service = cache_service

    def handle(self, query: GetMembersCacheStatusQuery) -> dict[str, Any]:
        return {
            "status": self.cache_service.status(),
            "count": self.cache_service.count(),
            **self.cache_service.state().to_dict(),
        }


class GetMemberHandler:
    def __init__(self, cache_service: MembersCacheService) -> None:
        self.cache_service = cache_service

    def handle(self, query: GetMemberQuery) -> MemberEntity | None:
        return self.cache_service.get_member(str((query.filtros or {}).get("client_id") or ""))
