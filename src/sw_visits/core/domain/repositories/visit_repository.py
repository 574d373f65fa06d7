from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime

from sw_visits.core.domain.entities.visit_entity import VisitEntity


class VisitRepository(ABC):
    @abstractmethod
    def find_by_id(self, visit_id: str) -> VisitEntity | None:
        ...

    @abstractmethod
    def create_if_absent(self, visit: VisitEntity) -> tuple[VisitEntity, bool]:
        """Inserts the visit unless its id already exists; never overwrites core fields."""
        ...

    @abstractmethod
    def link_claim(self, visit_id: str, claim_id: str, claim_status: str) -> None:
        ...

    @abstractmethod
    def set_claim_status(self, visit_ids: Sequence[str], claim_status: str) -> int:
        ...

    @abstractmethod
    def find_many_for_update(self, visit_ids: Sequence[str]) -> list[VisitEntity]:
        ...

    @abstractmethod
    def mark_signed_off(
        self, visit_ids: Sequence[str], signed_off_at: datetime, signed_off_by: str, notes: str
    ) -> int:
        ...

    @abstractmethod
    def list_by_staff(self, staff_identity: str, month: str | None = None) -> list[VisitEntity]:
        ...
