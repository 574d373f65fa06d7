import structlog

from sw_visits.adapters.notifiers.base import BaseNotifier

logger = structlog.get_logger()


class LogOnlyNotifier(BaseNotifier):
    """Used when no e-mail provider is configured (local runs, tests)."""

    def __init__(self) -> None:
        super().__init__("log", "email")
        self.sent: list[dict] = []

    def send(self, recipients: list[str], subject: str, html: str) -> None:
        self.sent.append({"recipients": list(recipients), "subject": subject, "html": html})
        logger.info("email.logged", recipients=recipients, subject=subject)
