from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date

import structlog
from django.utils import timezone

from members_core.adapters.observability.metrics import ASSIGNMENT_LOOKUPS
from members_core.core.application.dtos.assignment_dto import (
    AssignmentResultDTO,
    RcfeGroupDTO,
    RcfeMemberDTO,
)
from members_core.core.application.services.members_cache_service import (
    CACHE_STATUS_EMPTY,
    MembersCacheService,
)
from members_core.core.application.services.staff_directory_service import StaffDirectoryService
from members_core.core.domain.entities.member_entity import MemberEntity
from members_core.core.domain.exceptions import CacheEmptyError
from members_core.core.domain.repositories.member_cache_repository import MemberCacheRepository
from members_core.core.domain.services.match_engine import (
    is_email,
    matches,
    rank_candidate_tokens,
)

logger = structlog.get_logger(__name__)

STRATEGY_SEARCH_KEYS = "search_keys"
STRATEGY_SCAN = "scan"
STRATEGY_NONE = "none"


class AssignmentResolver:
    """
    Staff identifier ➜ eligible assigned members, grouped by facility.

    Lookup is two-staged: an indexed search-key query first, then a bounded
    scan of raw assignment columns for rows cached before their keys matched
    the identifier the caller uses.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        cache_service: MembersCacheService,
        member_repo: MemberCacheRepository,
        staff_directory: StaffDirectoryService,
        scan_page_size: int = 5000,
        scan_max_rows: int = 25000,
        max_candidate_tokens: int = 6,
        auth_expiry_plans: Iterable[str] = ("kaiser",),
        today: Callable[[], date] = timezone.localdate,
    ) -> None:
        self.cache_service = cache_service
        self.member_repo = member_repo
        self.staff_directory = staff_directory
        self.scan_page_size = scan_page_size
        self.scan_max_rows = scan_max_rows
        self.max_candidate_tokens = max_candidate_tokens
        self.auth_expiry_plans = tuple(auth_expiry_plans)
        self.today = today

    # ───────────────────────── public ─────────────────────────
    def build_needles(self, staff_identifier: str) -> list[str]:
        ident = (staff_identifier or "").strip()
        needles = [ident] if ident else []
        if is_email(ident):
            display_name = self.staff_directory.resolve_staff_display_name(ident)
            if display_name and display_name not in needles:
                needles.append(display_name)
        return needles

    def resolve_assigned_members(self, staff_identifier: str) -> AssignmentResultDTO:
        needles = self.build_needles(staff_identifier)
        if not needles:
            raise ValueError("staffId is required")

        cache_status = self.cache_service.ensure_fresh()
        if cache_status == CACHE_STATUS_EMPTY:
            raise CacheEmptyError("Members cache is empty: the initial sync has not completed")

        log = logger.bind(staff_id=staff_identifier, needles=needles)
        matched, strategy = self.find_assigned(needles)
        ASSIGNMENT_LOOKUPS.labels(strategy).inc()

        authorized = [m for m in matched if m.is_authorized]
        today = self.today()
        on_hold = auth_expired = 0
        survivors: list[MemberEntity] = []
        for member in authorized:
            if member.on_hold:
                on_hold += 1
                continue
            if member.is_authorization_expired(today, self.auth_expiry_plans):
                auth_expired += 1
                continue
            survivors.append(member)

        groups = self.group_by_facility(survivors)
        log.info(
            "assignments.resolved",
            strategy=strategy,
            matched=len(matched),
            authorized=len(authorized),
            survivors=len(survivors),
            on_hold=on_hold,
            auth_expired=auth_expired,
            cache_status=cache_status,
        )
        return AssignmentResultDTO(
            staff_id=staff_identifier,
            rcfe_list=groups,
            total_members=len(survivors),
            total_rcfes=len(groups),
            members_suspended=on_hold + auth_expired,
            cache_status=cache_status,
            total_assigned_all=len(matched),
            excluded_counts={"on_hold": on_hold, "auth_expired": auth_expired},
            match_strategy=strategy,
            needles=needles,
        )

    # ───────────────────────── matching ─────────────────────────
    @staticmethod
    def row_matches(member: MemberEntity, needles: list[str]) -> bool:
        return any(matches(n, member.assignment_fields, id_field=member.sw_id) for n in needles)

    def find_assigned(self, needles: list[str]) -> tuple[list[MemberEntity], str]:
        hits = self._search_key_lookup(needles)
        if hits:
            return hits, STRATEGY_SEARCH_KEYS
        hits = self._bounded_scan(needles)
        if hits:
            return hits, STRATEGY_SCAN
        return [], STRATEGY_NONE

    def _search_key_lookup(self, needles: list[str]) -> list[MemberEntity]:
        found: dict[str, MemberEntity] = {}
        for token in rank_candidate_tokens(needles, limit=self.max_candidate_tokens):
            for member in self.member_repo.find_by_search_key(token):
                if member.client_id not in found and self.row_matches(member, needles):
                    found[member.client_id] = member
        return list(found.values())

    def _bounded_scan(self, needles: list[str]) -> list[MemberEntity]:
        """Stops at the first page holding a match, or at `scan_max_rows`."""
        offset = 0
        while offset < self.scan_max_rows:
            limit = min(self.scan_page_size, self.scan_max_rows - offset)
            page = self.member_repo.scan_page(offset, limit)
            if not page:
                break
            hits = [m for m in page if self.row_matches(m, needles)]
            if hits:
                logger.info("assignments.scan_hit", offset=offset, hits=len(hits))
                return hits
            if len(page) < limit:
                break
            offset += limit
        return []

    # ───────────────────────── grouping ─────────────────────────
    @staticmethod
    def group_by_facility(members: list[MemberEntity]) -> list[RcfeGroupDTO]:
        groups: dict[str, RcfeGroupDTO] = {}
        for member in members:
            key = member.facility_key
            group = groups.get(key)
            if group is None:
                group = groups[key] = RcfeGroupDTO(
                    id=member.rcfe_registered_id or key,
                    name=member.rcfe_name or "Unassigned facility",
                    address=member.rcfe_address,
                    city=member.rcfe_city,
                    county=member.rcfe_county or member.member_county,
                    administrator=member.rcfe_administrator,
                    administrator_email=member.rcfe_administrator_email,
                )
            group.members.append(
                RcfeMemberDTO(
                    id=member.client_id,
                    name=member.full_name,
                    status=member.calaim_status,
                    mco=member.calaim_mco,
                )
            )
        for group in groups.values():
            group.members.sort(key=lambda m: m.name.lower())
        return sorted(groups.values(), key=lambda g: g.name.lower())
