from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any

import structlog
from pydantic import ValidationError

from members_core.core.application.dtos.caspio_dtos import CaspioMemberRowDTO
from members_core.core.domain.entities.member_entity import MemberEntity
from members_core.core.domain.services.match_engine import derive_search_keys

logger = structlog.get_logger(__name__)

HOLD_TRUTHY = frozenset({"1", "true", "yes", "y", "x"})

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")
_US_DATETIME_FORMATS = ("%m/%d/%Y %I:%M:%S %p", "%m/%d/%Y %H:%M:%S", "%m/%d/%Y %H:%M", "%m/%d/%Y")


# ───────────────────────── parsing helpers ─────────────────────────
def parse_hold(value: Any) -> bool:
    """'Hold', 'ON HOLD - family request', 'Yes', 'x', True ... -> True"""
    text = str(value or "").strip().lower()
    if not text:
        return False
    return "hold" in text or text in HOLD_TRUTHY


def parse_flexible_date(value: Any) -> date | None:
    """ISO (`2024-01-31`, `2024-01-31T00:00:00`) or US (`1/31/2024`)."""
    text = str(value or "").strip()
    if not text:
        return None
    try:
        if m := _ISO_DATE.match(text):
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        if m := _US_DATE.match(text):
            return date(int(m.group(3)), int(m.group(1)), int(m.group(2)))
    except ValueError:
        return None
    return None


def parse_caspio_datetime(value: Any) -> datetime | None:
    """Caspio timestamps carry no offset; they are read as UTC."""
    text = str(value or "").strip()
    if not text:
        return None
    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        for fmt in _US_DATETIME_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_caspio_datetime(value: datetime) -> str:
    """Literal used inside `q.where` clauses."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


def _clean(value: str | None) -> str:
    return (value or "").strip()


# ───────────────────────── mapper ─────────────────────────
class CaspioMemberMapper:
    """Caspio member row ➜ MemberEntity with derived fields and search keys."""

    @classmethod
    def map_row(cls, row: dict[str, Any] | CaspioMemberRowDTO) -> MemberEntity | None:
        """Returns None when the row has no `Client_ID2` (cannot be keyed)."""
        try:
            dto = row if isinstance(row, CaspioMemberRowDTO) else CaspioMemberRowDTO.model_validate(row)
        except ValidationError as exc:
            logger.warning("member_mapper.invalid_row", error=str(exc))
            return None

        client_id = _clean(dto.client_id)
        if not client_id:
            return None

        hold_raw = (
            dto.hold_for_social_worker_visit
            if dto.hold_for_social_worker_visit is not None
            else dto.hold_for_social_worker
        )
        administrator = f"{_clean(dto.rcfe_user_first)} {_clean(dto.rcfe_user_last)}".strip()

        member = MemberEntity(
            client_id=client_id,
            first_name=_clean(dto.senior_first),
            last_name=_clean(dto.senior_last),
            social_worker_assigned=_clean(dto.social_worker_assigned),
            staff_assigned=_clean(dto.staff_assigned),
            kaiser_user_assignment=_clean(dto.kaiser_user_assignment),
            sw_id=_clean(dto.sw_id),
            calaim_status=_clean(dto.calaim_status),
            calaim_mco=_clean(dto.calaim_mco),
            hold_for_social_worker=_clean(hold_raw),
            on_hold=parse_hold(hold_raw),
            authorization_end_date=parse_flexible_date(dto.authorization_end_date),
            rcfe_registered_id=_clean(dto.rcfe_registered_id),
            rcfe_name=_clean(dto.rcfe_name),
            rcfe_address=_clean(dto.rcfe_address),
            rcfe_city=_clean(dto.rcfe_city),
            rcfe_zip=_clean(dto.rcfe_zip),
            rcfe_county=_clean(dto.rcfe_county),
            rcfe_administrator=administrator,
            rcfe_administrator_email=_clean(dto.rcfe_user_email),
            member_county=_clean(dto.member_county),
            member_city=_clean(dto.member_city),
            date_modified=parse_caspio_datetime(dto.date_modified),
            raw=dict(row) if isinstance(row, dict) else dto.model_dump(by_alias=True),
        )
        member.search_keys = derive_search_keys([*member.assignment_fields, member.sw_id])
        return member
