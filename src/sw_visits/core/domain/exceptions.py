class VisitError(Exception):
    """Base class for visit ingestion errors."""


class VisitRejectedError(VisitError):
    """
    Synchronous rejection of a visit submission. Nothing is persisted.

    `reason` is machine-readable, `message` tells the social worker what
    blocked the visit (status, hold, expiry date, duplicate...).
    """

    VALIDATION_ERROR = "validation_error"
    NOT_AUTHORIZED = "not_authorized"
    ON_HOLD = "on_hold"
    AUTH_EXPIRED = "auth_expired"
    DUPLICATE_MONTHLY_VISIT = "duplicate_monthly_visit"
    CLAIM_CLOSED = "claim_closed"

    CONFLICTS = frozenset({DUPLICATE_MONTHLY_VISIT, CLAIM_CLOSED})

    def __init__(self, reason: str, message: str, **details) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message
        self.details = details

    @property
    def is_conflict(self) -> bool:
        return self.reason in self.CONFLICTS

    def to_dict(self) -> dict:
        return {"error": self.reason, "message": self.message, **self.details}


class VisitNotFoundError(VisitError):
    pass


class VisitAccessDeniedError(VisitError):
    pass


class ClaimError(Exception):
    """Base class for claim errors."""


class ClaimNotFoundError(ClaimError):
    pass


class ClaimAccessDeniedError(ClaimError):
    pass


class InvalidClaimTransitionError(ClaimError):
    def __init__(self, claim_id: str, from_status: str, to_status: str, message: str | None = None) -> None:
        super().__init__(message or f"Claim {claim_id} cannot go from '{from_status}' to '{to_status}'")
        self.claim_id = claim_id
        self.from_status = from_status
        self.to_status = to_status


class ClaimClosedError(ClaimError):
    """A visit tried to join a claim that already left `draft`."""

    def __init__(self, claim_id: str, status: str) -> None:
        super().__init__(f"Claim {claim_id} is already '{status}' and no longer accepts visits")
        self.claim_id = claim_id
        self.status = status


# ───────────────────────── notifications ─────────────────────────
class NotificationError(Exception):
    """Base class for notifier failures."""


class PermanentNotificationError(NotificationError):
    """Should not be retried: invalid recipient, rejected API key, 4xx."""


class TemporaryNotificationError(NotificationError):
    """May succeed on retry: provider 5xx, network failure, timeout."""
