"""Tests for the request builder and transport."""

from __future__ import annotations

from unittest.mock import MagicMock

import aiohttp
import pytest

from textsecure_api.credentials import (
    DerivedAuth,
    ExplicitAuth,
    InMemoryCredentialStore,
    NoAuth,
)
from textsecure_api.errors import (
    AuthError,
    AuthUnavailable,
    NetworkError,
    ServerRejected,
)
from textsecure_api.request import (
    Decoded,
    Empty,
    Raw,
    RequestBuilder,
    RequestDescriptor,
    ResponseType,
    decode_body,
)
from textsecure_api.transport import HttpTransport

from .conftest import URL_BASE, basic_auth, create_mock_response, request_call


def _builder(
    mock_session: MagicMock, store: InMemoryCredentialStore | None = None
) -> RequestBuilder:
    return RequestBuilder(HttpTransport(mock_session), URL_BASE, store)


class TestPrepare:
    """URL, header and body composition."""

    def test_url_composition(self, mock_session: MagicMock) -> None:
        prepared = _builder(mock_session).prepare(
            RequestDescriptor(
                call="accounts", method="GET", url_parameters="/sms/code/+15551234567"
            )
        )

        assert prepared.url == f"{URL_BASE}/v1/accounts/sms/code/+15551234567"
        assert prepared.headers == {}
        assert prepared.data is None

    def test_suffix_not_escaped(self, mock_session: MagicMock) -> None:
        prepared = _builder(mock_session).prepare(
            RequestDescriptor(call="keys", method="GET", url_parameters="/a b?x=1")
        )

        assert prepared.url.endswith("/v2/keys/a b?x=1")

    def test_unknown_call_rejected(self, mock_session: MagicMock) -> None:
        with pytest.raises(ValueError, match="Unknown endpoint"):
            _builder(mock_session).prepare(RequestDescriptor(call="nope", method="GET"))

    def test_explicit_auth_header(self, mock_session: MagicMock) -> None:
        prepared = _builder(mock_session).prepare(
            RequestDescriptor(
                call="accounts", method="PUT", auth=ExplicitAuth("+1555", "secret")
            )
        )

        assert prepared.headers["Authorization"] == basic_auth("+1555", "secret")

    def test_derived_auth_header(
        self, mock_session: MagicMock, credential_store: InMemoryCredentialStore
    ) -> None:
        prepared = _builder(mock_session, credential_store).prepare(
            RequestDescriptor(call="keys", method="GET", auth=DerivedAuth())
        )

        assert prepared.headers["Authorization"] == basic_auth(
            "+15551234567.1", "stored-password"
        )

    def test_derived_auth_without_registration(self, mock_session: MagicMock) -> None:
        builder = _builder(mock_session, InMemoryCredentialStore())

        with pytest.raises(AuthUnavailable):
            builder.prepare(RequestDescriptor(call="keys", method="GET", auth=DerivedAuth()))

    def test_derived_auth_without_store(self, mock_session: MagicMock) -> None:
        with pytest.raises(AuthUnavailable):
            _builder(mock_session).prepare(
                RequestDescriptor(call="keys", method="GET", auth=DerivedAuth())
            )

    def test_store_lookup_error_becomes_auth_unavailable(
        self, mock_session: MagicMock
    ) -> None:
        store = MagicMock()
        store.get_number.side_effect = KeyError("number")

        with pytest.raises(AuthUnavailable):
            _builder(mock_session, store).prepare(
                RequestDescriptor(call="keys", method="GET", auth=DerivedAuth())
            )

    def test_json_body_and_content_type(self, mock_session: MagicMock) -> None:
        prepared = _builder(mock_session).prepare(
            RequestDescriptor(call="messages", method="PUT", json_data={"a": 1})
        )

        assert prepared.data == b'{"a": 1}'
        assert prepared.headers["Content-Type"] == "application/json; charset=utf-8"

    def test_no_body_no_content_type(self, mock_session: MagicMock) -> None:
        prepared = _builder(mock_session).prepare(
            RequestDescriptor(call="messages", method="PUT", auth=NoAuth())
        )

        assert prepared.data is None
        assert "Content-Type" not in prepared.headers

    def test_same_descriptor_prepares_identically(
        self, mock_session: MagicMock, credential_store: InMemoryCredentialStore
    ) -> None:
        builder = _builder(mock_session, credential_store)
        descriptor = RequestDescriptor(
            call="messages",
            method="PUT",
            url_parameters="/+15550000000",
            auth=DerivedAuth(),
            json_data={"messages": []},
        )

        assert builder.prepare(descriptor) == builder.prepare(descriptor)

    def test_binary_flag(self, mock_session: MagicMock) -> None:
        prepared = _builder(mock_session).prepare(
            RequestDescriptor(
                call="attachment", method="GET", response_type=ResponseType.BINARY
            )
        )

        assert prepared.binary is True


class TestDecodeBody:
    def test_json(self) -> None:
        assert decode_body('{"count": 3}', ResponseType.JSON) == Decoded({"count": 3})

    def test_unparseable_json_is_raw(self) -> None:
        assert decode_body("OK", ResponseType.JSON) == Raw("OK")

    def test_empty(self) -> None:
        assert decode_body("", ResponseType.JSON) == Empty()
        assert decode_body(b"", ResponseType.BINARY) == Empty()

    def test_text(self) -> None:
        assert decode_body('{"a": 1}', ResponseType.TEXT) == Raw('{"a": 1}')

    def test_binary(self) -> None:
        assert decode_body(b"\x00\x01", ResponseType.BINARY) == Raw(b"\x00\x01")


class TestSend:
    async def test_success_returns_decoded(self, mock_session: MagicMock) -> None:
        mock_session.request.return_value = create_mock_response(
            status=200, text_data='{"ok": true}'
        )

        result = await _builder(mock_session).send(
            RequestDescriptor(call="accounts", method="GET")
        )

        assert result == Decoded({"ok": True})

    async def test_200_with_empty_body_is_success(self, mock_session: MagicMock) -> None:
        mock_session.request.return_value = create_mock_response(status=200)

        result = await _builder(mock_session).send(
            RequestDescriptor(call="accounts", method="GET")
        )

        assert result == Empty()

    async def test_204_with_garbage_body_is_success(
        self, mock_session: MagicMock
    ) -> None:
        mock_session.request.return_value = create_mock_response(
            status=204, text_data="<html>"
        )

        result = await _builder(mock_session).send(
            RequestDescriptor(call="accounts", method="GET")
        )

        assert result == Raw("<html>")

    async def test_failure_classified_with_body(self, mock_session: MagicMock) -> None:
        mock_session.request.return_value = create_mock_response(
            status=401, text_data='{"error": "bad"}'
        )

        with pytest.raises(AuthError) as exc_info:
            await _builder(mock_session).send(
                RequestDescriptor(call="keys", method="GET")
            )

        assert exc_info.value.status == 401
        assert exc_info.value.response == {"error": "bad"}

    async def test_failure_keeps_text_body(self, mock_session: MagicMock) -> None:
        mock_session.request.return_value = create_mock_response(
            status=502, text_data="Bad Gateway"
        )

        with pytest.raises(ServerRejected) as exc_info:
            await _builder(mock_session).send(
                RequestDescriptor(call="keys", method="GET")
            )

        assert exc_info.value.response == "Bad Gateway"

    async def test_out_of_range_status_is_network_error(
        self, mock_session: MagicMock
    ) -> None:
        mock_session.request.return_value = create_mock_response(status=1200)

        with pytest.raises(NetworkError) as exc_info:
            await _builder(mock_session).send(
                RequestDescriptor(call="keys", method="GET")
            )

        assert exc_info.value.status == -1

    async def test_auth_unavailable_sends_nothing(self, mock_session: MagicMock) -> None:
        with pytest.raises(AuthUnavailable):
            await _builder(mock_session, InMemoryCredentialStore()).send(
                RequestDescriptor(call="keys", method="GET", auth=DerivedAuth())
            )

        mock_session.request.assert_not_called()

    async def test_request_arguments(self, mock_session: MagicMock) -> None:
        mock_session.request.return_value = create_mock_response(status=200)

        await _builder(mock_session).send(
            RequestDescriptor(call="messages", method="PUT", json_data={"x": 1})
        )

        method, url, kwargs = request_call(mock_session)
        assert method == "PUT"
        assert url == f"{URL_BASE}/v1/messages"
        assert kwargs["data"] == b'{"x": 1}'
        assert kwargs["timeout"].total == 30.0


class TestHttpTransport:
    async def test_reads_binary(self, mock_session: MagicMock) -> None:
        response = create_mock_response(status=200, read_data=b"\x01\x02")
        mock_session.request.return_value = response

        result = await HttpTransport(mock_session).exchange(
            "GET", "https://example.com/blob", binary=True
        )

        assert result.status == 200
        assert result.body == b"\x01\x02"
        response.text.assert_not_called()

    async def test_custom_timeout(self, mock_session: MagicMock) -> None:
        mock_session.request.return_value = create_mock_response(status=200)

        await HttpTransport(mock_session, timeout=5).exchange("GET", "https://x/")

        assert mock_session.request.call_args.kwargs["timeout"].total == 5

    async def test_timeout_raises_network_error(self, mock_session: MagicMock) -> None:
        mock_session.request.side_effect = TimeoutError("Request timed out")

        with pytest.raises(NetworkError, match="timed out") as exc_info:
            await HttpTransport(mock_session).exchange("GET", "https://x/")

        assert exc_info.value.status == -1

    async def test_client_error_raises_network_error(
        self, mock_session: MagicMock
    ) -> None:
        mock_session.request.side_effect = aiohttp.ClientError("Connection refused")

        with pytest.raises(NetworkError, match="Failed to connect"):
            await HttpTransport(mock_session).exchange("GET", "https://x/")

    async def test_text_body_not_utf8_is_replaced(self, mock_session: MagicMock) -> None:
        mock_session.request.return_value = create_mock_response(
            status=200, read_data=b"ok \xff"
        )

        result = await HttpTransport(mock_session).exchange("GET", "https://x/")

        assert result.body == "ok \ufffd"


class TestUndecodableBodies:
    """Bodies that are not valid UTF-8 still follow the success/failure rules."""

    async def test_error_page_in_latin1_is_classified(
        self, mock_session: MagicMock
    ) -> None:
        mock_session.request.return_value = create_mock_response(
            status=500, read_data=b"Erreur \xe9\xff"
        )

        with pytest.raises(ServerRejected) as exc_info:
            await _builder(mock_session).send(
                RequestDescriptor(call="accounts", method="GET")
            )

        assert exc_info.value.status == 500
        assert exc_info.value.response == "Erreur \ufffd\ufffd"

    async def test_200_with_junk_bytes_is_raw_success(
        self, mock_session: MagicMock
    ) -> None:
        mock_session.request.return_value = create_mock_response(
            status=200, read_data=b"\xff\xfe"
        )

        result = await _builder(mock_session).send(
            RequestDescriptor(call="accounts", method="GET")
        )

        assert result == Raw("\ufffd\ufffd")
