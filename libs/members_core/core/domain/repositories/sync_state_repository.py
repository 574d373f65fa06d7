from abc import ABC, abstractmethod

from members_core.core.domain.entities.sync_state_entity import MembersSyncStateEntity


class SyncStateRepository(ABC):
    @abstractmethod
    def get(self) -> MembersSyncStateEntity:
        """Current sync metadata; an empty entity if no sync ever ran."""
        ...

    @abstractmethod
    def save(self, state: MembersSyncStateEntity) -> MembersSyncStateEntity:
        ...
