from __future__ import annotations

from abc import ABC, abstractmethod

from sw_visits.core.domain.entities.monthly_lock_entity import MonthlyVisitLockEntity


class MonthlyVisitLockRepository(ABC):
    @abstractmethod
    def acquire(
        self, member_id: str, month: str, visit_id: str, staff_identity: str, staff_name: str
    ) -> MonthlyVisitLockEntity:
        """
        Returns the lock row for (member, month), creating it for `visit_id`
        when absent. Must run inside a transaction; the row stays locked
        until it ends.
        """
        ...

    @abstractmethod
    def find(self, member_id: str, month: str) -> MonthlyVisitLockEntity | None:
        ...

    @abstractmethod
    def link_claim(self, member_id: str, month: str, claim_id: str) -> None:
        ...
