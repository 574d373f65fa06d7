from __future__ import annotations

from dataclasses import dataclass

import structlog

from members_core.core.application.services.staff_directory_service import StaffDirectoryService
from members_core.core.domain.services.match_engine import is_email, matches, tokenize

logger = structlog.get_logger(__name__)

# reversed matching (entry name inside the assignment text) needs a full name
MIN_REVERSE_NAME_TOKENS = 2


@dataclass(frozen=True, slots=True)
class StaffContact:
    email: str
    name: str = ""


class StaffNotificationResolver:
    """Turns a member's free-text assignment into notifiable staff e-mails."""

    def __init__(self, staff_directory: StaffDirectoryService) -> None:
        self.staff_directory = staff_directory

    def resolve_staff_display_name(self, email: str | None) -> str | None:
        return self.staff_directory.resolve_staff_display_name(email)

    def resolve_contacts(self, assignment_text: str | None) -> list[StaffContact]:
        text = (assignment_text or "").strip()
        if not text:
            return []

        if is_email(text):
            email = text.lower()
            return [StaffContact(email=email, name=self.resolve_staff_display_name(email) or "")]

        contacts: dict[str, StaffContact] = {}
        for entry in self.staff_directory.active_entries():
            if entry.email in contacts:
                continue
            hit = matches(text, entry.match_fields, id_field=entry.sw_id)
            if not hit and len(tokenize(entry.name)) >= MIN_REVERSE_NAME_TOKENS:
                hit = matches(entry.name, [text])
            if hit:
                contacts[entry.email] = StaffContact(email=entry.email, name=entry.name)

        if not contacts:
            logger.info("staff_contacts.none", assignment=text)
        return list(contacts.values())
