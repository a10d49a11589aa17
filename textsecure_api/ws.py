"""WebSocket URL construction and connection helpers."""

from __future__ import annotations

import asyncio
import re
from urllib.parse import quote

import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import (
    InvalidHandshake,
    InvalidURI,
    WebSocketException,
)

from .credentials import CredentialPair
from .errors import HandshakeError, NetworkError

# Characters encodeURIComponent leaves untouched besides alphanumerics.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def _encode_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def _encode_login(user: str) -> str:
    if user.startswith("+"):
        return "%2B" + _encode_component(user[1:])
    return _encode_component(user)


def build_websocket_url(
    url_base: str,
    path: str,
    credentials: CredentialPair | None = None,
) -> str:
    """Build a ws/wss URL for a socket endpoint.

    Args:
        url_base: HTTP(S) base URL of the service.
        path: Endpoint path of the socket.
        credentials: Appended as login/password query parameters when given.
    """
    url = re.sub(r"^http", "ws", url_base) + path + "/?"
    if credentials is None:
        return url
    return (
        url
        + "login="
        + _encode_login(credentials.user)
        + "&password="
        + _encode_component(credentials.password)
    )


async def connect_websocket(
    url: str,
    *,
    ping_interval: int | None = 20,
    timeout: float = 15.0,
) -> ClientConnection:
    """Open a socket on a URL built by ``build_websocket_url``.

    Credentials travel in the query string, so the URL is used as given.
    Framing on the returned connection is left to the caller.

    Raises:
        NetworkError: If the server cannot be reached in ``timeout`` seconds.
        HandshakeError: If the server refuses the upgrade or the URL is invalid.
    """
    try:
        # Message frames are protobuf blobs of unbounded size.
        opening = websockets.connect(
            url, ping_interval=ping_interval, close_timeout=5, max_size=None
        )
        return await asyncio.wait_for(opening, timeout=timeout)
    except TimeoutError as err:
        raise NetworkError("Timed out opening the push socket.") from err
    except (InvalidHandshake, InvalidURI) as err:
        raise HandshakeError("Push socket upgrade was refused") from err
    except (OSError, WebSocketException) as err:
        raise NetworkError(
            "Could not reach the push socket, please check your network connection."
        ) from err
