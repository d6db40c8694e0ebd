"""Error taxonomy for calls to the Minimal Mall backend."""

from typing import Optional


class MinimallError(Exception):
    """Base class for every failure surfaced by the API layer."""

    kind = "failed"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class UnauthenticatedError(MinimallError):
    """Missing, expired or rejected bearer token. The session has been cleared."""

    kind = "unauthenticated"

    def __init__(self, message: str = "Session expired. Please sign in again.", status_code: Optional[int] = 401) -> None:
        super().__init__(message, status_code)


class ForbiddenError(MinimallError):
    """Valid token, insufficient role."""

    kind = "forbidden"

    def __init__(self, message: str = "You do not have access to this resource", status_code: Optional[int] = 403) -> None:
        super().__init__(message, status_code)


class ValidationFailedError(MinimallError):
    """The backend rejected the request body."""

    kind = "validation"

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[dict[str, list[str]]] = None,
        status_code: Optional[int] = 422,
    ) -> None:
        super().__init__(message, status_code)
        self.field_errors = field_errors or {}


class RequestFailedError(MinimallError):
    """Any other non-2xx answer, or a 2xx answer with `success: false`."""

    kind = "failed"


class NotFoundError(RequestFailedError):
    kind = "not_found"


class NetworkError(MinimallError):
    """No response at all: DNS, connection refused, timeout."""

    kind = "network"

    def __init__(self, message: str = "Network unreachable. Check your connection and try again.") -> None:
        super().__init__(message, None)
