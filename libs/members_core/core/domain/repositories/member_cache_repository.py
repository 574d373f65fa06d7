from abc import ABC, abstractmethod
from collections.abc import Iterator

from members_core.core.domain.entities.member_entity import MemberEntity


class MemberCacheRepository(ABC):
    @abstractmethod
    def upsert(self, member: MemberEntity) -> MemberEntity:
        """Create or overwrite the cached row with the same `client_id`."""
        ...

    @abstractmethod
    def upsert_many(self, members: list[MemberEntity]) -> int:
        """Upsert a page of rows atomically; returns how many were written."""
        ...

    @abstractmethod
    def find_by_client_id(self, client_id: str) -> MemberEntity | None:
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def find_by_search_key(self, token: str) -> list[MemberEntity]:
        """Rows whose precomputed search-key set contains `token`."""
        ...

    @abstractmethod
    def scan_page(self, offset: int, limit: int) -> list[MemberEntity]:
        """Stable-ordered window over every cached row."""
        ...

    @abstractmethod
    def iter_all(self, chunk_size: int = 1000) -> Iterator[MemberEntity]:
        ...
