from dataclasses import dataclass, field
from datetime import date
from typing import Any

from members_core.core.application.cqrs import CommandDTO


@dataclass(frozen=True)
class SubmitVisitCommand(CommandDTO):
    """
    Raw questionnaire body plus the caller identity taken from the request.

    The authenticated identity wins over ids typed in the payload.
    """

    payload: dict[str, Any] = field(hash=False)
    staff_uid: str = ""
    staff_email: str = ""
    staff_name: str = ""
    submitted_on: date | None = None


@dataclass(frozen=True)
class SignOffVisitsCommand(CommandDTO):
    visit_ids: tuple[str, ...]
    staff_uid: str = ""
    staff_email: str = ""
    signer_name: str = ""
    notes: str = ""
