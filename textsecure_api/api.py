"""Operations against the TextSecure push server."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import aiohttp
from websockets.asyncio.client import ClientConnection

from .attachments import AttachmentTransfer
from .codec import (
    KeyBundle,
    RemoteKeys,
    b64encode,
    decode_remote_keys,
    encode_key_bundle,
    encode_message_batch,
)
from .config import STAGING, ServerConfig
from .credentials import (
    CredentialStore,
    DerivedAuth,
    ExplicitAuth,
    derive_credentials,
)
from .endpoints import endpoint_path
from .errors import AuthUnavailable, ProtocolError
from .request import Decoded, RequestBuilder, RequestDescriptor, ResponseBody
from .transport import HttpTransport
from .ws import build_websocket_url, connect_websocket

_LOGGER = logging.getLogger(__name__)


def _require_object(result: ResponseBody, what: str) -> dict[str, Any]:
    if isinstance(result, Decoded) and isinstance(result.value, dict):
        return result.value
    raise ProtocolError(f"Server returned no usable {what}")


class TextSecureServer:
    """Client for the TextSecure REST and WebSocket API.

    Usage:
        async with aiohttp.ClientSession() as session:
            server = TextSecureServer(session, credentials=store)
            await server.request_verification_sms("+15551234567")
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        config: ServerConfig = STAGING,
        credentials: CredentialStore | None = None,
    ) -> None:
        self._config = config
        self._credentials = credentials
        self._transport = HttpTransport(session, timeout=config.request_timeout)
        self._requests = RequestBuilder(self._transport, config.url_base, credentials)

    @property
    def config(self) -> ServerConfig:
        return self._config

    @property
    def relay(self) -> str:
        """Relay name of the configured deployment."""
        return self._config.relay

    async def _request_verification_code(self, number: str, transport: str) -> None:
        await self._requests.send(
            RequestDescriptor(
                call="accounts",
                method="GET",
                url_parameters=f"/{transport}/code/{number}",
            )
        )

    async def request_verification_sms(self, number: str) -> None:
        """Ask the server to send a verification code by SMS."""
        await self._request_verification_code(number, "sms")

    async def request_verification_voice(self, number: str) -> None:
        """Ask the server to deliver a verification code by voice call."""
        await self._request_verification_code(number, "voice")

    async def confirm_code(
        self,
        number: str,
        code: str,
        password: str,
        signaling_key: bytes,
        registration_id: int,
        *,
        single_device: bool,
    ) -> ResponseBody:
        """Complete registration with a verification code.

        A single-device registration confirms against the accounts endpoint;
        linking an additional device confirms against the devices endpoint.
        """
        if single_device:
            call, url_parameters = "accounts", f"/code/{code}"
        else:
            call, url_parameters = "devices", f"/{code}"
        return await self._requests.send(
            RequestDescriptor(
                call=call,
                method="PUT",
                url_parameters=url_parameters,
                auth=ExplicitAuth(number, password),
                json_data={
                    "signalingKey": b64encode(signaling_key),
                    "supportsSms": False,
                    "fetchesMessages": True,
                    "registrationId": registration_id,
                },
            )
        )

    async def register_keys(self, bundle: KeyBundle) -> None:
        """Upload identity, signed and one-time pre-keys for this device."""
        await self._requests.send(
            RequestDescriptor(
                call="keys",
                method="PUT",
                auth=DerivedAuth(),
                json_data=encode_key_bundle(bundle),
            )
        )

    async def get_my_keys(self) -> int:
        """Return the number of one-time pre-keys the server still holds."""
        result = await self._requests.send(
            RequestDescriptor(call="keys", method="GET", auth=DerivedAuth())
        )
        data = _require_object(result, "key count")
        try:
            return int(data["count"])
        except (KeyError, TypeError, ValueError) as err:
            raise ProtocolError("Key count response has no valid 'count'") from err

    async def get_keys_for_number(
        self, number: str, device_id: int | str = "*"
    ) -> RemoteKeys:
        """Fetch key material for a number's devices ("*" for all devices)."""
        result = await self._requests.send(
            RequestDescriptor(
                call="keys",
                method="GET",
                url_parameters=f"/{number}/{device_id}",
                auth=DerivedAuth(),
            )
        )
        return decode_remote_keys(_require_object(result, "keys"))

    async def send_messages(
        self, destination: str, messages: Sequence[Mapping[str, Any]]
    ) -> ResponseBody:
        """Deliver a batch of encrypted messages to one destination.

        The relay and timestamp of the first message apply to the whole batch.
        """
        return await self._requests.send(
            RequestDescriptor(
                call="messages",
                method="PUT",
                url_parameters=f"/{destination}",
                auth=DerivedAuth(),
                json_data=encode_message_batch(messages),
            )
        )

    def _attachment_transfer(self) -> AttachmentTransfer:
        return AttachmentTransfer(
            self._requests, self._transport, self._config.attachment_host
        )

    async def get_attachment(self, attachment_id: str | int) -> bytes:
        """Download attachment bytes by id."""
        return await self._attachment_transfer().download(attachment_id)

    async def put_attachment(self, encrypted: bytes) -> str:
        """Upload encrypted attachment bytes and return the attachment id."""
        return await self._attachment_transfer().upload(encrypted)

    def message_socket_url(self) -> str:
        """Authenticated URL of the message socket.

        Raises:
            AuthUnavailable: If no registration is stored.
        """
        if self._credentials is None:
            raise AuthUnavailable("No credential store configured")
        return build_websocket_url(
            self._config.url_base,
            endpoint_path("push"),
            derive_credentials(self._credentials),
        )

    def provisioning_socket_url(self) -> str:
        """Unauthenticated URL of the provisioning socket."""
        return build_websocket_url(self._config.url_base, endpoint_path("temp_push"))

    async def connect_message_socket(self, **kwargs: Any) -> ClientConnection:
        """Open the authenticated message socket."""
        _LOGGER.debug("Connecting message socket")
        return await connect_websocket(self.message_socket_url(), **kwargs)

    async def connect_provisioning_socket(self, **kwargs: Any) -> ClientConnection:
        """Open the provisioning socket."""
        _LOGGER.debug("Connecting provisioning socket")
        return await connect_websocket(self.provisioning_socket_url(), **kwargs)
