"""Two-phase attachment transfer through a storage redirect.

The server never carries attachment bytes. Phase one asks it for a
single-use storage location; phase two moves the bytes to or from that
location without server credentials. A failure in either phase ends the
transfer; callers restart from phase one.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any

from .classifier import NO_RESPONSE, is_success, normalize_status
from .credentials import DerivedAuth
from .errors import (
    NetworkError,
    ProtocolError,
    ServerRejected,
    TextSecureError,
    TextSecureResponseError,
)
from .request import Decoded, RequestBuilder, RequestDescriptor
from .transport import HttpTransport

_LOGGER = logging.getLogger(__name__)

OCTET_STREAM = "application/octet-stream"

_STORAGE_REJECTED = "The attachment server rejected our request."


class TransferState(Enum):
    """Progress of one attachment transfer."""

    START = "start"
    AWAITING_LOCATION = "awaiting_location"
    AWAITING_TRANSFER = "awaiting_transfer"
    DONE = "done"
    FAILED = "failed"


def attachment_id_pattern(attachment_host: str) -> re.Pattern[str]:
    """Pattern capturing the numeric id from a storage location URL."""
    return re.compile(r"^https://" + re.escape(attachment_host) + r"/(\d+)\?")


def extract_attachment_id(location: str, attachment_host: str) -> str:
    """Return the attachment id in ``location`` as a string.

    Ids can exceed 64-bit range on the server side, so they are never
    converted to int.

    Raises:
        ProtocolError: If the location does not point at the storage host.
    """
    match = attachment_id_pattern(attachment_host).match(location)
    if match is None:
        raise ProtocolError("Could not find attachment id in upload location")
    return match.group(1)


def classify_storage_status(status: int, response: Any = None) -> TextSecureResponseError:
    """Classify a failed exchange against the storage host."""
    response = response or None
    if normalize_status(status) == NO_RESPONSE:
        return NetworkError(response=response)
    return ServerRejected(status, _STORAGE_REJECTED, response=response)


class AttachmentTransfer:
    """One download or upload, run at most once."""

    def __init__(
        self,
        requests: RequestBuilder,
        transport: HttpTransport,
        attachment_host: str,
    ) -> None:
        self._requests = requests
        self._transport = transport
        self._attachment_host = attachment_host
        self.state = TransferState.START

    def _advance(self, state: TransferState) -> None:
        _LOGGER.info("Attachment transfer %s -> %s", self.state.value, state.value)
        self.state = state

    def _begin(self) -> None:
        if self.state is not TransferState.START:
            raise TextSecureError(
                f"Attachment transfer already used (state: {self.state.value})"
            )
        self._advance(TransferState.AWAITING_LOCATION)

    async def _fetch_location(self, url_parameters: str) -> str:
        result = await self._requests.send(
            RequestDescriptor(
                call="attachment",
                method="GET",
                url_parameters=url_parameters,
                auth=DerivedAuth(),
            )
        )
        if isinstance(result, Decoded) and isinstance(result.value, dict):
            location = result.value.get("location")
            if isinstance(location, str) and location:
                return location
        raise ProtocolError("Attachment response did not include a location")

    async def _storage_exchange(
        self,
        method: str,
        location: str,
        *,
        data: bytes | None = None,
        binary: bool = False,
    ) -> bytes | str:
        result = await self._transport.exchange(
            method,
            location,
            headers={"Content-Type": OCTET_STREAM},
            data=data,
            binary=binary,
        )
        if not is_success(result.status):
            raise classify_storage_status(result.status, result.body)
        return result.body

    async def download(self, attachment_id: str | int) -> bytes:
        """Fetch attachment bytes by id.

        Raises:
            TextSecureResponseError: If either phase fails.
            ProtocolError: If the server response has no location.
        """
        self._begin()
        try:
            location = await self._fetch_location(f"/{attachment_id}")
            self._advance(TransferState.AWAITING_TRANSFER)
            body = await self._storage_exchange("GET", location, binary=True)
        except Exception:
            self._advance(TransferState.FAILED)
            raise
        self._advance(TransferState.DONE)
        _LOGGER.info("Downloaded attachment %s (%d bytes)", attachment_id, len(body))
        return body if isinstance(body, bytes) else body.encode("utf-8")

    async def upload(self, encrypted: bytes) -> str:
        """Store encrypted attachment bytes and return the new id.

        Raises:
            TextSecureResponseError: If either phase fails.
            ProtocolError: If no location was issued or the id cannot be
                recovered from it.
        """
        self._begin()
        try:
            location = await self._fetch_location("")
            self._advance(TransferState.AWAITING_TRANSFER)
            await self._storage_exchange("PUT", location, data=bytes(encrypted))
            attachment_id = extract_attachment_id(location, self._attachment_host)
        except Exception:
            self._advance(TransferState.FAILED)
            raise
        self._advance(TransferState.DONE)
        _LOGGER.info("Uploaded attachment %s (%d bytes)", attachment_id, len(encrypted))
        return attachment_id
