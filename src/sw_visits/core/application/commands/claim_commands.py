from dataclasses import dataclass

from members_core.core.application.cqrs import CommandDTO


@dataclass(frozen=True)
class SubmitClaimCommand(CommandDTO):
    claim_id: str
    staff_uid: str = ""
    staff_email: str = ""


@dataclass(frozen=True)
class UpdateClaimStatusCommand(CommandDTO):
    claim_id: str
    status: str
    actor: str
    notes: str = ""
