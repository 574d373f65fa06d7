from __future__ import annotations

import math
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar

import structlog
from prometheus_client import Histogram

from members_core.core.domain.events.events import DomainEvent
from members_core.core.domain.services.event_dispatcher import EventDispatcher

C = TypeVar('C')  # command
Q = TypeVar('Q')  # query filters
R = TypeVar('R')  # query result
T = TypeVar('T')  # page item

logger = structlog.get_logger(__name__)

BUS_LATENCY = Histogram(
    "bus_dispatch_seconds",
    "Time spent in a command/query handler",
    ["kind", "message"],
)


# ───────────────────────────────────────────────
# Messages
# ───────────────────────────────────────────────
@dataclass(frozen=True)
class CommandDTO:
    """Marker for write commands."""


@dataclass(frozen=True)
class QueryDTO(Generic[Q]):
    filtros: Q


@dataclass(frozen=True)
class PaginatedQueryDTO(Generic[Q]):
    filtros: Q
    page: int = 1
    page_size: int = 50


@dataclass(frozen=True)
class PagedResult(Generic[T]):
    items: Sequence[T]
    total: int
    page: int
    page_size: int
    total_pages: int = field(init=False)

    def __post_init__(self):
        pages = math.ceil(self.total / self.page_size) if self.page_size > 0 else 0
        object.__setattr__(self, 'total_pages', pages)

    def to_dict(self, item: Callable[[T], Any] = lambda x: x) -> dict[str, Any]:
        return {
            "results": [item(i) for i in self.items],
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
        }


class CommandHandler(Protocol, Generic[C]):
    def handle(self, command: C) -> Any: ...


class QueryHandler(Protocol, Generic[Q, R]):
    def handle(self, query: QueryDTO[Q]) -> R: ...


# ───────────────────────────────────────────────
# Buses
# ───────────────────────────────────────────────
class _Bus:
    kind = "message"

    def __init__(self) -> None:
        self._handlers: dict[type, Any] = {}

    def register(self, message_type: type, handler: Any) -> None:
        if message_type in self._handlers:
            raise ValueError(f"{self.kind} {message_type.__name__} already has a handler")
        self._handlers[message_type] = handler
        logger.debug(f"{self.kind}_bus.registered", message=message_type.__name__)

    def dispatch(self, message: Any) -> Any:
        name = type(message).__name__
        handler = self._handlers.get(type(message))
        if handler is None:
            raise ValueError(f"No handler registered for {self.kind}: {name}")

        start = time.perf_counter()
        try:
            return handler.handle(message)
        finally:
            elapsed = time.perf_counter() - start
            BUS_LATENCY.labels(self.kind, name).observe(elapsed)
            logger.info(f"{self.kind}_bus.done", message=name, duration=f"{elapsed:.3f}s")


class CommandBus(_Bus):
    kind = "command"


class QueryBus(_Bus):
    kind = "query"


class CommandBusImpl(CommandBus):
    """Also publishes the DomainEvent(s) a handler returns."""

    def __init__(self, dispatcher: EventDispatcher):
        super().__init__()
        self.dispatcher = dispatcher

    def dispatch(self, command: Any) -> Any:
        result = super().dispatch(command)
        events = result if isinstance(result, list | tuple) else [result]
        for evt in events:
            if isinstance(evt, DomainEvent):
                self.dispatcher.dispatch(evt)
        return result


class QueryBusImpl(QueryBus):
    pass
