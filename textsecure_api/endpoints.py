"""Server endpoint paths keyed by symbolic call name."""

from __future__ import annotations

from types import MappingProxyType
from typing import Final

URL_CALLS: Final = MappingProxyType(
    {
        "accounts": "/v1/accounts",
        "devices": "/v1/devices",
        "keys": "/v2/keys",
        "push": "/v1/websocket",
        "temp_push": "/v1/websocket/provisioning",
        "messages": "/v1/messages",
        "attachment": "/v1/attachments",
    }
)


def endpoint_path(call: str) -> str:
    """Return the path registered for a call name."""
    try:
        return URL_CALLS[call]
    except KeyError as err:
        raise ValueError(f"Unknown endpoint call: {call!r}") from err
