import contextvars
import uuid

import structlog

_current_request = contextvars.ContextVar("current_request", default=None)


def get_current_request():
    """Retrieve the request stored by RequestContextMiddleware."""
    return _current_request.get()


class RequestContextMiddleware:
    """
    Stores the request in a context var and binds `request_id`, method, path
    and the caller headers into structlog's context for every log line.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
        token = _current_request.set(request)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.path,
            staff=request.headers.get("X-Staff-Uid") or request.headers.get("X-Staff-Email") or None,
        )
        try:
            response = self.get_response(request)
            response["X-Request-Id"] = request_id
        finally:
            structlog.contextvars.clear_contextvars()
            _current_request.reset(token)
        return response
