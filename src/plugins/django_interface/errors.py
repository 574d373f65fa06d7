"""
Domain exceptions ➜ HTTP responses with a machine-readable `error` code.
"""
import structlog
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from members_core.core.domain.exceptions import CacheEmptyError, CacheUnavailableError, MembersCacheError
from sw_visits.core.domain.exceptions import (
    ClaimAccessDeniedError,
    ClaimNotFoundError,
    InvalidClaimTransitionError,
    VisitAccessDeniedError,
    VisitNotFoundError,
    VisitRejectedError,
)

logger = structlog.get_logger(__name__)

_REJECTION_STATUS = {
    VisitRejectedError.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    VisitRejectedError.NOT_AUTHORIZED: status.HTTP_403_FORBIDDEN,
    VisitRejectedError.ON_HOLD: status.HTTP_403_FORBIDDEN,
    VisitRejectedError.AUTH_EXPIRED: status.HTTP_403_FORBIDDEN,
    VisitRejectedError.DUPLICATE_MONTHLY_VISIT: status.HTTP_409_CONFLICT,
    VisitRejectedError.CLAIM_CLOSED: status.HTTP_409_CONFLICT,
}


def domain_error_response(exc: Exception) -> Response | None:  # noqa: PLR0911
    if isinstance(exc, VisitRejectedError):
        return Response(exc.to_dict(), status=_REJECTION_STATUS.get(exc.reason, status.HTTP_400_BAD_REQUEST))
    if isinstance(exc, CacheEmptyError | CacheUnavailableError):
        return Response({"error": exc.code, "message": str(exc)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    if isinstance(exc, MembersCacheError):
        logger.error("members_cache.error", code=exc.code, error=str(exc))
        return Response({"error": "cache_unavailable", "message": str(exc)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    if isinstance(exc, ClaimNotFoundError | VisitNotFoundError):
        return Response({"error": "not_found", "message": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, ClaimAccessDeniedError | VisitAccessDeniedError):
        return Response({"error": "forbidden", "message": str(exc)}, status=status.HTTP_403_FORBIDDEN)
    if isinstance(exc, InvalidClaimTransitionError):
        return Response(
            {
                "error": "invalid_transition",
                "message": str(exc),
                "fromStatus": exc.from_status,
                "toStatus": exc.to_status,
            },
            status=status.HTTP_409_CONFLICT,
        )
    return None


class DomainAPIView(APIView):
    """APIView whose domain errors become JSON error bodies instead of 500s."""

    def handle_exception(self, exc):
        response = domain_error_response(exc)
        if response is not None:
            return response
        return super().handle_exception(exc)
