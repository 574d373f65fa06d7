from __future__ import annotations

import structlog

from sw_visits.adapters.notifiers.base import BaseNotifier
from sw_visits.core.domain.exceptions import NotificationError

logger = structlog.get_logger()


class SendGridEmail(BaseNotifier):
    """HTML e-mail through the SendGrid v3 API; one message, every recipient in `to`."""

    def __init__(self, api_key: str, from_email: str):
        super().__init__("sendgrid", "email")
        self._api_key    = api_key
        self._from_email = from_email
        self._endpoint   = "https://api.sendgrid.com/v3/mail/send"

    # ──────────────────────────────────────────────────────────
    # API
    # ──────────────────────────────────────────────────────────
    def send(self, recipients: list[str], subject: str, html: str) -> None:
        if not recipients:
            return

        payload = {
            "from": {"email": self._from_email},
            "subject": subject,
            "content": [{"type": "text/html", "value": html}],
            "personalizations": [{"to": [{"email": r} for r in recipients]}],
        }
        try:
            self._request(
                "POST",
                self._endpoint,
                json=payload,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
            )
        except NotificationError as exc:
            logger.error("sendgrid.error", detail=str(exc), recipients=len(recipients))
            raise
        logger.info(
            "email.sent",
            provider=self.provider,
            from_=self._from_email,
            recipients=len(recipients),
            subject=subject,
        )
