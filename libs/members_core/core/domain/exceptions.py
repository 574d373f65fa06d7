class MembersCacheError(Exception):
    """Base class for members cache failures."""
    code = "members_cache_error"


class CacheEmptyError(MembersCacheError):
    """
    No member row was ever cached: the initial sync never completed.
    Different from a staff member with zero assignees.
    """
    code = "cache_empty"


class CacheUnavailableError(MembersCacheError):
    """A required sync fetched zero pages from the remote platform."""
    code = "cache_unavailable"


class CaspioAuthError(MembersCacheError):
    """Token exchange failed or credentials are not configured."""
    code = "caspio_auth_error"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CaspioRequestError(MembersCacheError):
    """A records page request failed after transport-level retries."""
    code = "caspio_request_error"

    def __init__(self, message: str, page: int | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.page = page
        self.status_code = status_code
