"""Request descriptors and the builder that turns them into exchanges."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .classifier import classify_status, is_success
from .credentials import Auth, CredentialStore, NoAuth, resolve_auth
from .endpoints import endpoint_path
from .transport import HttpTransport

_LOGGER = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


class ResponseType(Enum):
    """How a response body should be decoded."""

    JSON = "json"
    TEXT = "text"
    BINARY = "binary"


@dataclass(frozen=True)
class Decoded:
    """Body parsed as JSON."""

    value: Any


@dataclass(frozen=True)
class Raw:
    """Body returned as-is: text that did not parse, or binary content."""

    value: str | bytes


@dataclass(frozen=True)
class Empty:
    """Successful exchange without a body."""


ResponseBody = Decoded | Raw | Empty


def decode_body(body: bytes | str, response_type: ResponseType) -> ResponseBody:
    """Decode a successful response body leniently.

    A JSON parse failure is not an error: the text is returned as ``Raw``.
    """
    if not body:
        return Empty()
    if response_type is ResponseType.BINARY or isinstance(body, bytes):
        return Raw(body)
    if response_type is ResponseType.JSON:
        try:
            return Decoded(json.loads(body))
        except ValueError:
            return Raw(body)
    return Raw(body)


@dataclass(frozen=True)
class RequestDescriptor:
    """Parameters for one call against a registered endpoint."""

    call: str
    method: str
    url_parameters: str = ""
    json_data: Any = None
    auth: Auth = field(default_factory=NoAuth)
    response_type: ResponseType = ResponseType.JSON


@dataclass(frozen=True)
class PreparedRequest:
    """Concrete URL, headers and body for one exchange."""

    method: str
    url: str
    headers: dict[str, str]
    data: bytes | None
    binary: bool


class RequestBuilder:
    """Composes URLs and headers and issues exchanges for descriptors."""

    def __init__(
        self,
        transport: HttpTransport,
        url_base: str,
        credentials: CredentialStore | None = None,
    ) -> None:
        self._transport = transport
        self._url_base = url_base
        self._credentials = credentials

    def prepare(self, descriptor: RequestDescriptor) -> PreparedRequest:
        """Build the exchange for a descriptor.

        Raises:
            AuthUnavailable: If derived credentials cannot be resolved.
        """
        url = self._url_base + endpoint_path(descriptor.call) + descriptor.url_parameters
        headers: dict[str, str] = {}
        pair = resolve_auth(descriptor.auth, self._credentials)
        if pair is not None:
            headers["Authorization"] = pair.authorization()
        data: bytes | None = None
        if descriptor.json_data is not None:
            data = json.dumps(descriptor.json_data).encode("utf-8")
            headers["Content-Type"] = JSON_CONTENT_TYPE
        return PreparedRequest(
            method=descriptor.method,
            url=url,
            headers=headers,
            data=data,
            binary=descriptor.response_type is ResponseType.BINARY,
        )

    async def send(self, descriptor: RequestDescriptor) -> ResponseBody:
        """Issue the exchange and decode the response.

        Raises:
            TextSecureResponseError: Classified failure for non-success statuses.
            AuthUnavailable: If derived credentials cannot be resolved.
        """
        prepared = self.prepare(descriptor)
        return await send_prepared(self._transport, prepared, descriptor.response_type)


async def send_prepared(
    transport: HttpTransport,
    prepared: PreparedRequest,
    response_type: ResponseType,
) -> ResponseBody:
    """Send a prepared request, raising the classified error on failure."""
    result = await transport.exchange(
        prepared.method,
        prepared.url,
        headers=prepared.headers,
        data=prepared.data,
        binary=prepared.binary,
    )
    if not is_success(result.status):
        error = classify_status(result.status, _error_body(result.body))
        _LOGGER.warning(
            "%s %s failed with status %s: %s",
            prepared.method,
            prepared.url.split("?", 1)[0],
            result.status,
            error,
        )
        raise error
    return decode_body(result.body, response_type)


def _error_body(body: bytes | str) -> Any:
    """Return the failing body, parsed as JSON when possible."""
    if not body or isinstance(body, bytes):
        return body or None
    try:
        return json.loads(body)
    except ValueError:
        return body
