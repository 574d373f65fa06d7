from collections import defaultdict
from collections.abc import Callable

import structlog
from django.db import transaction

from members_core.core.domain.events.events import DomainEvent

logger = structlog.get_logger(__name__)

Subscriber = Callable[[DomainEvent], None]


def _name(handler: Subscriber) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


class EventDispatcher:
    """
    In-process pub/sub for domain events (cache synced, visit accepted,
    claim status changed...).

    A failing subscriber is logged and skipped; the publisher and the other
    subscribers never see the error.
    """

    def __init__(self) -> None:
        self._subs: defaultdict[type[DomainEvent], list[Subscriber]] = defaultdict(list)

    def subscribe(self, event_type: type[DomainEvent], handler: Subscriber) -> None:
        if handler in self._subs[event_type]:
            return
        self._subs[event_type].append(handler)
        logger.debug("event.subscribed", event_type=event_type.__name__, handler_name=_name(handler))

    def dispatch(self, event: DomainEvent) -> int:
        """Returns how many subscribers handled the event without raising."""
        event_name = type(event).__name__
        handlers = list(self._subs.get(type(event), ()))
        delivered = 0
        for h in handlers:
            try:
                h(event)
                delivered += 1
            except Exception as e:  # noqa: BLE001
                logger.error(
                    "event.handler_error",
                    event_name=event_name,
                    event_id=str(event.event_id),
                    handler_name=_name(h),
                    error=str(e),
                    exc_info=True,
                )
        logger.info("event.dispatched", event_name=event_name, listeners=len(handlers), delivered=delivered)
        return delivered

    def dispatch_on_commit(self, event: DomainEvent) -> None:
        """Publishes once the surrounding transaction commits; dropped on rollback."""
        transaction.on_commit(lambda: self.dispatch(event))
