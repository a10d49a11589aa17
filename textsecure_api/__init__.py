"""Client access layer for the TextSecure push server API."""

__version__ = "0.1.0"

from .api import TextSecureServer
from .attachments import AttachmentTransfer, TransferState, extract_attachment_id
from .classifier import classify_status, is_success, normalize_status
from .codec import DeviceKeys, KeyBundle, PreKey, RemoteKeys, SignedPreKey
from .config import PRODUCTION, STAGING, ServerConfig, load_server_config
from .credentials import (
    CredentialPair,
    CredentialStore,
    DerivedAuth,
    ExplicitAuth,
    InMemoryCredentialStore,
    NoAuth,
)
from .endpoints import URL_CALLS
from .errors import (
    AlreadyRegistered,
    AuthError,
    AuthUnavailable,
    HandshakeError,
    InvalidCode,
    NetworkError,
    NotRegistered,
    ProtocolError,
    RateLimited,
    ServerRejected,
    TextSecureError,
    TextSecureResponseError,
)
from .request import Decoded, Empty, Raw, RequestDescriptor, ResponseType
from .ws import build_websocket_url, connect_websocket

__all__ = [
    "PRODUCTION",
    "STAGING",
    "URL_CALLS",
    "AlreadyRegistered",
    "AttachmentTransfer",
    "AuthError",
    "AuthUnavailable",
    "CredentialPair",
    "CredentialStore",
    "Decoded",
    "DerivedAuth",
    "DeviceKeys",
    "Empty",
    "ExplicitAuth",
    "HandshakeError",
    "InMemoryCredentialStore",
    "InvalidCode",
    "KeyBundle",
    "NetworkError",
    "NoAuth",
    "NotRegistered",
    "PreKey",
    "ProtocolError",
    "RateLimited",
    "Raw",
    "RemoteKeys",
    "RequestDescriptor",
    "ResponseType",
    "ServerConfig",
    "ServerRejected",
    "SignedPreKey",
    "TextSecureError",
    "TextSecureResponseError",
    "TextSecureServer",
    "TransferState",
    "__version__",
    "build_websocket_url",
    "classify_status",
    "connect_websocket",
    "extract_attachment_id",
    "is_success",
    "load_server_config",
    "normalize_status",
]
