"""Pytest configuration and fixtures for textsecure_api tests."""

from __future__ import annotations

import base64
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from textsecure_api import InMemoryCredentialStore, TextSecureServer
from textsecure_api.config import STAGING

URL_BASE = STAGING.url_base
ATTACHMENT_HOST = STAGING.attachment_host


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    return MagicMock(spec=aiohttp.ClientSession)


@pytest.fixture
def credential_store() -> InMemoryCredentialStore:
    """Credentials for a registered device."""
    return InMemoryCredentialStore(
        number="+15551234567", device_id=1, password="stored-password"
    )


@pytest.fixture
def server(
    mock_session: MagicMock, credential_store: InMemoryCredentialStore
) -> TextSecureServer:
    """Server client against staging with stored credentials."""
    return TextSecureServer(mock_session, credentials=credential_store)


def basic_auth(user: str, password: str) -> str:
    """Expected Authorization header value."""
    token = base64.b64encode(f"{user}:{password}".encode()).decode("ascii")
    return f"Basic {token}"


def create_mock_response(
    status: int = 200,
    text_data: str = "",
    read_data: bytes = b"",
) -> AsyncMock:
    """Create a configured mock response.

    The body is served as bytes from read(); text_data is UTF-8 encoded.

    Args:
        status: HTTP status code
        text_data: Text body, used when read_data is empty
        read_data: Raw body bytes

    Returns:
        Configured AsyncMock response
    """
    response = AsyncMock()
    response.status = status
    response.read.return_value = read_data or text_data.encode("utf-8")

    response.__aenter__.return_value = response
    response.__aexit__.return_value = None

    return response


def request_call(mock_session: MagicMock, index: int = 0) -> tuple[str, str, dict[str, Any]]:
    """Return (method, url, kwargs) of a recorded session.request call."""
    call = mock_session.request.call_args_list[index]
    method, url = call.args
    return method, url, call.kwargs
