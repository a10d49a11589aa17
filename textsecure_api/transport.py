"""Single HTTP exchanges over an aiohttp session."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import aiohttp

from .errors import NetworkError

_LOGGER = logging.getLogger(__name__)


def decode_text(raw: bytes) -> str:
    """Decode a response body as UTF-8, replacing undecodable bytes."""
    return raw.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class TransportResponse:
    """Status and body of a completed exchange.

    ``body`` is bytes for binary exchanges and text otherwise.
    """

    status: int
    body: bytes | str


class HttpTransport:
    """Performs one HTTP exchange per call."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        timeout: float = 30.0,
    ) -> None:
        self._session = session
        self._timeout = timeout

    async def exchange(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        data: bytes | None = None,
        binary: bool = False,
    ) -> TransportResponse:
        """Send a request and read the whole response.

        Raises:
            NetworkError: If no response was received.
        """
        _LOGGER.debug("%s %s", method, url.split("?", 1)[0])
        try:
            async with self._session.request(
                method,
                url,
                headers=headers or {},
                data=data,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                raw = await resp.read()
                body: bytes | str = raw if binary else decode_text(raw)
                return TransportResponse(resp.status, body)
        except TimeoutError as err:
            raise NetworkError("Request to the server timed out.") from err
        except aiohttp.ClientError as err:
            raise NetworkError() from err
