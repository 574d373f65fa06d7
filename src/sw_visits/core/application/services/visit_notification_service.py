from __future__ import annotations

from collections.abc import Callable, Iterable

import structlog
from django.utils.html import escape, format_html, format_html_join

from sw_visits.adapters.notifiers.base import BaseNotifier
from sw_visits.adapters.observability.metrics import VISIT_ALERTS
from sw_visits.core.application.services.staff_notification_resolver import StaffNotificationResolver
from sw_visits.core.domain.events.events import FlaggedVisitEvent

logger = structlog.get_logger(__name__)

URGENCY_LABELS = {
    "immediate": "IMMEDIATE",
    "urgent": "URGENT",
    "standard": "Standard",
}


class VisitNotificationService:
    """
    Supervisor alert for flagged visits.

    Best-effort: any failure is logged and reported as `False`, the visit
    itself is already committed when this runs.
    """

    def __init__(
        self,
        resolver: StaffNotificationResolver,
        notifier_factory: Callable[[], BaseNotifier],
        supervisor_emails: Iterable[str] = (),
    ) -> None:
        self.resolver = resolver
        self.notifier_factory = notifier_factory
        self.supervisor_emails = [e.strip().lower() for e in supervisor_emails if e and e.strip()]

    def recipients_for(self, event: FlaggedVisitEvent) -> list[str]:
        recipients: set[str] = set(self.supervisor_emails)
        recipients.update(s.email.lower() for s in self.resolver.staff_directory.supervisors())
        for text in event.assignment_texts:
            recipients.update(c.email.lower() for c in self.resolver.resolve_contacts(text))
        return sorted(recipients)

    def notify_flagged(self, event: FlaggedVisitEvent) -> bool:
        try:
            recipients = self.recipients_for(event)
            if not recipients:
                logger.warning("visit_alert.no_recipients", visit_id=event.visit_id)
                VISIT_ALERTS.labels("no_recipients").inc()
                return False
            self.notifier_factory().send(
                recipients=recipients,
                subject=self.subject(event),
                html=self.render(event),
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("visit_alert.failed", visit_id=event.visit_id, error=str(exc))
            VISIT_ALERTS.labels("failed").inc()
            return False

        logger.info("visit_alert.sent", visit_id=event.visit_id, recipients=len(recipients))
        VISIT_ALERTS.labels("sent").inc()
        return True

    @staticmethod
    def subject(event: FlaggedVisitEvent) -> str:
        label = URGENCY_LABELS.get(event.urgency, event.urgency)
        return f"[{label}] SW visit flagged: {event.member_name or event.member_id} at {event.rcfe_name or 'RCFE'}"

    @staticmethod
    def render(event: FlaggedVisitEvent) -> str:
        reasons = format_html_join("", "<li>{}</li>", ((r,) for r in event.flag_reasons))
        return format_html(
            "<h2>Flagged social worker visit</h2>"
            "<p><strong>Member:</strong> {} ({})</p>"
            "<p><strong>RCFE:</strong> {}<br>{}</p>"
            "<p><strong>Social worker:</strong> {} {}</p>"
            "<p><strong>Visit date:</strong> {}</p>"
            "<p><strong>Score:</strong> {} &middot; <strong>Urgency:</strong> {}</p>"
            "<ul>{}</ul>",
            event.member_name,
            event.member_id,
            event.rcfe_name,
            event.rcfe_address,
            event.staff_name,
            escape(f"<{event.staff_email}>") if event.staff_email else "",
            event.visit_date.isoformat(),
            event.total_score,
            URGENCY_LABELS.get(event.urgency, event.urgency),
            reasons,
        )
