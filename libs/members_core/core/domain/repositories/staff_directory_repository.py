from abc import ABC, abstractmethod

from members_core.core.domain.entities.staff_entity import StaffDirectoryEntity


class StaffDirectoryRepository(ABC):
    @abstractmethod
    def find_by_email(self, email: str) -> StaffDirectoryEntity | None:
        ...

    @abstractmethod
    def list_active(self) -> list[StaffDirectoryEntity]:
        ...

    @abstractmethod
    def list_supervisors(self) -> list[StaffDirectoryEntity]:
        ...

    @abstractmethod
    def upsert(self, entry: StaffDirectoryEntity) -> StaffDirectoryEntity:
        """Create or update by lower-cased e-mail."""
        ...
