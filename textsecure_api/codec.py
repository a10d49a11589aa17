"""Wire encoding for key material and message batches.

Binary fields travel inside JSON as standard base64 text. Attachment bytes
are never encoded here; they go to storage verbatim.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Final

from .errors import ProtocolError

LAST_RESORT_KEY_ID: Final = 0x7FFFFFFF
LAST_RESORT_PUBLIC_KEY: Final = b"42"


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(text: str) -> bytes:
    """Decode base64 text from a server response.

    Raises:
        ProtocolError: If the value is not valid base64 text.
    """
    if not isinstance(text, str):
        raise ProtocolError(f"Expected base64 text, got {type(text).__name__}")
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as err:
        raise ProtocolError("Invalid base64 in server response") from err


@dataclass(frozen=True)
class PreKey:
    """One-time pre-key."""

    key_id: int
    public_key: bytes


@dataclass(frozen=True)
class SignedPreKey:
    """Signed pre-key with its signature."""

    key_id: int
    public_key: bytes
    signature: bytes


@dataclass(frozen=True)
class KeyBundle:
    """Key material uploaded for this device."""

    identity_key: bytes
    signed_pre_key: SignedPreKey
    pre_keys: Sequence[PreKey] = field(default_factory=tuple)


@dataclass(frozen=True)
class DeviceKeys:
    """Keys published by one device of a remote number."""

    device_id: int
    registration_id: int | None
    signed_pre_key: SignedPreKey
    pre_key: PreKey | None


@dataclass(frozen=True)
class RemoteKeys:
    """Identity key and per-device keys fetched for a number."""

    identity_key: bytes
    devices: list[DeviceKeys]


def encode_key_bundle(bundle: KeyBundle) -> dict[str, Any]:
    """Build the JSON body for a key upload, last-resort placeholder included."""
    return {
        "identityKey": b64encode(bundle.identity_key),
        "signedPreKey": {
            "keyId": bundle.signed_pre_key.key_id,
            "publicKey": b64encode(bundle.signed_pre_key.public_key),
            "signature": b64encode(bundle.signed_pre_key.signature),
        },
        "preKeys": [
            {"keyId": key.key_id, "publicKey": b64encode(key.public_key)}
            for key in bundle.pre_keys
        ],
        "lastResortKey": {
            "keyId": LAST_RESORT_KEY_ID,
            "publicKey": b64encode(LAST_RESORT_PUBLIC_KEY),
        },
    }


def _field(data: Mapping[str, Any], name: str) -> Any:
    try:
        return data[name]
    except (KeyError, TypeError) as err:
        raise ProtocolError(f"Key response is missing {name!r}") from err


def _decode_device(data: Mapping[str, Any]) -> DeviceKeys:
    signed = _field(data, "signedPreKey")
    pre_key = data.get("preKey")
    return DeviceKeys(
        device_id=_field(data, "deviceId"),
        registration_id=data.get("registrationId"),
        signed_pre_key=SignedPreKey(
            key_id=_field(signed, "keyId"),
            public_key=b64decode(_field(signed, "publicKey")),
            signature=b64decode(_field(signed, "signature")),
        ),
        pre_key=(
            PreKey(
                key_id=_field(pre_key, "keyId"),
                public_key=b64decode(_field(pre_key, "publicKey")),
            )
            if pre_key is not None
            else None
        ),
    )


def decode_remote_keys(data: Any) -> RemoteKeys:
    """Decode a key fetch response into raw key bytes.

    Raises:
        ProtocolError: If a required field is missing or not base64.
    """
    if not isinstance(data, Mapping):
        raise ProtocolError("Key response is not a JSON object")
    devices = _field(data, "devices")
    if not isinstance(devices, list):
        raise ProtocolError("Key response 'devices' is not a list")
    return RemoteKeys(
        identity_key=b64decode(_field(data, "identityKey")),
        devices=[_decode_device(device) for device in devices],
    )


def encode_message_batch(messages: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    """Build the JSON body for a message batch.

    Each message's ``body`` is base64 encoded. ``relay`` and ``timestamp``
    are taken from the first message only and apply to the whole batch.
    The caller's messages are left unchanged; encoding happens on copies.

    Raises:
        ValueError: If the batch is empty.
    """
    if not messages:
        raise ValueError("Message batch must not be empty")
    encoded = []
    for message in messages:
        item = dict(message)
        payload = item["body"]
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        item["body"] = b64encode(payload)
        encoded.append(item)
    first = messages[0]
    body: dict[str, Any] = {"messages": encoded}
    if first.get("relay") is not None:
        body["relay"] = first["relay"]
    if first.get("timestamp") is not None:
        body["timestamp"] = first["timestamp"]
    return body
