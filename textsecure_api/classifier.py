"""Map HTTP status codes onto the client error taxonomy."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Final

from .errors import (
    AlreadyRegistered,
    AuthError,
    InvalidCode,
    NetworkError,
    NotRegistered,
    RateLimited,
    ServerRejected,
    TextSecureResponseError,
)

NO_RESPONSE: Final = -1

_STATUS_ERRORS: Final = MappingProxyType(
    {
        413: (RateLimited, "Rate limit exceeded, please try again later."),
        403: (InvalidCode, "Invalid code, please try again."),
        417: (AlreadyRegistered, "Number already registered."),
        401: (
            AuthError,
            "Invalid authentication, most likely someone re-registered "
            "and invalidated our registration.",
        ),
        404: (NotRegistered, "Number is not registered with TextSecure."),
    }
)

_DEFAULT_MESSAGE: Final = "The server rejected our query, please file a bug report."


def normalize_status(status: int) -> int:
    """Collapse codes outside [100, 999] to the no-response sentinel."""
    if status < 100 or status > 999:
        return NO_RESPONSE
    return status


def is_success(status: int) -> bool:
    """Return True for statuses treated as success, with or without a body."""
    return 0 <= status < 400


def classify_status(status: int, response: Any = None) -> TextSecureResponseError:
    """Build the error for a failed exchange.

    Args:
        status: Raw status code reported by the transport.
        response: Response body received alongside the status, if any.

    Returns:
        The matching TextSecureResponseError subclass instance. The caller
        raises it.
    """
    status = normalize_status(status)
    response = response or None
    if status == NO_RESPONSE:
        return NetworkError(response=response)
    error_cls, message = _STATUS_ERRORS.get(status, (ServerRejected, _DEFAULT_MESSAGE))
    return error_cls(status, message, response=response)
