from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from members_core.core.application.cqrs import PagedResult
from sw_visits.core.domain.entities.claim_entity import ClaimEntity


class ClaimRepository(ABC):
    @abstractmethod
    def get_or_create_for_update(
        self, staff_identity: str, claim_date: date, claim_id: str, defaults: dict
    ) -> ClaimEntity:
        """Locks (creating if needed) the draft of a staff member's day."""
        ...

    @abstractmethod
    def find_by_claim_id(self, claim_id: str, for_update: bool = False) -> ClaimEntity | None:
        ...

    @abstractmethod
    def save(self, claim: ClaimEntity) -> ClaimEntity:
        ...

    @abstractmethod
    def add_event(self, claim_id: str, from_status: str, to_status: str, actor: str, notes: str = "") -> None:
        ...

    @abstractmethod
    def list_events(self, claim_id: str) -> list[dict]:
        ...

    @abstractmethod
    def list(self, filtros: dict, page: int, page_size: int) -> PagedResult[ClaimEntity]:
        ...
