"""Client error types for TextSecure server interactions."""

from __future__ import annotations

from typing import Any

HTTP_ERROR_KIND = "HTTPError"


class TextSecureError(Exception):
    """Base error for TextSecure client failures."""


class TextSecureResponseError(TextSecureError):
    """Failed exchange with a status code and a human-readable message."""

    kind = HTTP_ERROR_KIND

    def __init__(self, status: int, message: str, *, response: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.response = response


class NetworkError(TextSecureResponseError):
    """No response from the server (status -1)."""

    def __init__(
        self,
        message: str = "Failed to connect to the server, please check your network connection.",
        *,
        response: Any = None,
    ) -> None:
        super().__init__(-1, message, response=response)


class AuthError(TextSecureResponseError):
    """Credentials rejected (401)."""


class RateLimited(TextSecureResponseError):
    """Rate limit exceeded (413)."""


class InvalidCode(TextSecureResponseError):
    """Verification code rejected (403)."""


class AlreadyRegistered(TextSecureResponseError):
    """Number already registered (417)."""


class NotRegistered(TextSecureResponseError):
    """Number is not registered (404)."""


class ServerRejected(TextSecureResponseError):
    """Any other non-success status."""


class ProtocolError(TextSecureError):
    """Server response did not have the expected shape."""


class AuthUnavailable(TextSecureError):
    """No stored registration to derive credentials from."""


class HandshakeError(TextSecureError):
    """WebSocket handshake failed."""
