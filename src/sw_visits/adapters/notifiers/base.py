import time
from abc import ABC, abstractmethod
from http import HTTPStatus

import backoff
import httpx
import structlog
from prometheus_client import Counter, Histogram

from sw_visits.core.domain.exceptions import PermanentNotificationError, TemporaryNotificationError

logger = structlog.get_logger()

REQ_LATENCY = Histogram("notifier_request_seconds", "Provider call latency", ["provider", "channel"])
REQ_RESULT  = Counter  ("notifier_requests_total",  "Provider calls by result", ["provider", "channel", "result"])

RETRYABLE = (httpx.TransportError, TemporaryNotificationError)


def raise_for_provider_status(provider: str, resp: httpx.Response) -> None:
    """5xx and 429 may pass on retry; any other 4xx will not."""
    code = resp.status_code
    if code >= HTTPStatus.INTERNAL_SERVER_ERROR or code == HTTPStatus.TOO_MANY_REQUESTS:
        raise TemporaryNotificationError(f"{provider} answered {code}")
    if code >= HTTPStatus.BAD_REQUEST:
        raise PermanentNotificationError(f"{provider} answered {code}: {resp.text[:500]}")


def _log_retry(details) -> None:
    logger.warning("notifier.retry", tries=details["tries"], wait=details.get("wait"), error=str(details.get("exception")))


class BaseNotifier(ABC):
    """One provider for one channel; subclasses build the payload and call `_request`."""

    DEFAULT_TIMEOUT = 10

    def __init__(self, provider: str, channel: str) -> None:
        self.provider = provider
        self.channel  = channel

    @backoff.on_exception(backoff.expo, RETRYABLE, max_tries=3, jitter=None, on_backoff=_log_retry)
    def _request(self, method: str, url: str, **kw) -> httpx.Response:
        start = time.perf_counter()
        result = "error"
        try:
            resp = httpx.request(method, url, timeout=self.DEFAULT_TIMEOUT, **kw)
            raise_for_provider_status(self.provider, resp)
            result = "ok"
            return resp
        finally:
            REQ_RESULT.labels(self.provider, self.channel, result).inc()
            REQ_LATENCY.labels(self.provider, self.channel).observe(time.perf_counter() - start)

    @abstractmethod
    def send(self, recipients: list[str], subject: str, html: str) -> None:
        """Delivers one message; raises a NotificationError subclass on failure."""
        ...
