from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog

from members_core.core.domain.entities.staff_entity import StaffDirectoryEntity
from members_core.core.domain.repositories.staff_directory_repository import StaffDirectoryRepository
from members_core.core.domain.services.match_engine import is_email

logger = structlog.get_logger(__name__)


class StaffDirectoryService:
    """E-mail ➜ display name lookups over the synced social worker directory."""

    def __init__(self, repo: StaffDirectoryRepository) -> None:
        self.repo = repo

    def resolve_staff_display_name(self, email: str | None) -> str | None:
        if not email or not is_email(email):
            return None
        entry = self.repo.find_by_email(email)
        if entry is None or not entry.name.strip():
            return None
        return entry.name.strip()

    def active_entries(self) -> list[StaffDirectoryEntity]:
        return self.repo.list_active()

    def supervisors(self) -> list[StaffDirectoryEntity]:
        return self.repo.list_supervisors()

    def upsert_entries(self, entries: Iterable[dict[str, Any]]) -> int:
        ok = errors = 0
        for raw in entries:
            email = str(raw.get("email") or "").strip().lower()
            name = str(raw.get("name") or "").strip()
            if not is_email(email) or not name:
                errors += 1
                logger.warning("staff_directory.invalid_entry", email=email or None)
                continue
            self.repo.upsert(
                StaffDirectoryEntity(
                    email=email,
                    name=name,
                    sw_id=str(raw.get("sw_id") or "").strip(),
                    phone=str(raw.get("phone") or "").strip(),
                    is_active=bool(raw.get("is_active", True)),
                    is_supervisor=bool(raw.get("is_supervisor", False)),
                )
            )
            ok += 1
        logger.info("staff_directory.upserted", ok=ok, errors=errors)
        return ok
