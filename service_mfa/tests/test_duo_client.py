"""
Unit tests for Duo request signing, transport and client.
"""

from unittest.mock import MagicMock
from urllib.parse import parse_qs

import duo_client.client
import httpx
import pytest

from service_mfa.app.duo.client import DuoAdminClient, RequestBuilder, split_api_host
from service_mfa.app.duo.signer import (
    HmacRequestSigner, ProviderRequest, SigningError
)
from service_mfa.app.duo.transport import HttpxTransport, TransportError


IKEY = "DIWJ8X6AEYOR5OMC6TQ1"
SKEY = "Zh5eGmUq9zpfQnyUIu5OL9iWoMMv5ZNmk3zLJ4Ep"


class TestHmacRequestSigner:
    """Test cases for HmacRequestSigner."""

    @pytest.fixture
    def signer(self):
        """Create signer with a frozen clock."""
        return HmacRequestSigner(clock=lambda: 0)

    @pytest.fixture
    def request_(self):
        return ProviderRequest(
            "POST", "API-xxxxxxxx.duosecurity.com", "/auth/v2/preauth",
            params={"username": "alice smith"}
        )

    def test_sign_headers(self, signer, request_):
        """Test that the Authorization header matches the Duo SDK's v2 signature."""
        signed = signer.sign(request_, IKEY, SKEY)

        date = "Thu, 01 Jan 1970 00:00:00 GMT"
        expected = duo_client.client.sign(
            IKEY, SKEY, "POST", "api-xxxxxxxx.duosecurity.com", "/auth/v2/preauth", date, 2,
            duo_client.client.normalize_params({"username": "alice smith"})
        )

        assert signed.headers["Date"] == date
        assert signed.headers["Authorization"] == expected
        assert signed.headers["Authorization"].startswith("Basic ")
        assert signed.request is request_

    def test_sign_is_deterministic(self, signer, request_):
        """Test that identical inputs produce identical signatures."""
        assert signer.sign(request_, IKEY, SKEY) == signer.sign(request_, IKEY, SKEY)

    def test_sign_depends_on_secret(self, signer, request_):
        """Test that a different secret changes the signature."""
        first = signer.sign(request_, IKEY, SKEY).headers["Authorization"]
        second = signer.sign(request_, IKEY, SKEY[::-1]).headers["Authorization"]

        assert first != second

    @pytest.mark.parametrize("ikey, skey", [
        ("", SKEY),
        (IKEY, ""),
        ("   ", SKEY),
        (IKEY, "secret with spaces"),
        (None, SKEY),
    ])
    def test_bad_key_material(self, signer, request_, ikey, skey):
        """Test that unusable keys raise instead of producing unsigned requests."""
        with pytest.raises(SigningError):
            signer.sign(request_, ikey, skey)


class TestHttpxTransport:
    """Test cases for HttpxTransport."""

    @pytest.fixture
    def captured(self):
        return []

    def _transport(self, handler):
        client = httpx.Client(transport=httpx.MockTransport(handler))
        return HttpxTransport(HmacRequestSigner(clock=lambda: 0), client=client)

    def test_unauthenticated_get(self, captured):
        """Test that ping requests are plain GETs."""
        def handler(request):
            captured.append(request)
            return httpx.Response(200, text='{"stat": "OK", "response": "pong"}')

        body = self._transport(handler).send_unauthenticated_get("https://api.example.com/rest/v1/ping")

        assert body == '{"stat": "OK", "response": "pong"}'
        assert captured[0].method == "GET"
        assert "authorization" not in captured[0].headers

    def test_signed_post(self, captured):
        """Test that pre-auth requests are signed form POSTs."""
        def handler(request):
            captured.append(request)
            return httpx.Response(200, text="{}")

        self._transport(handler).send_signed_post(
            "https://api.example.com/auth/v2/preauth", {"username": "alice"}, IKEY, SKEY
        )

        request = captured[0]
        assert request.method == "POST"
        assert request.url.path == "/auth/v2/preauth"
        assert request.headers["authorization"].startswith("Basic ")
        assert request.headers["date"] == "Thu, 01 Jan 1970 00:00:00 GMT"
        assert parse_qs(request.content.decode()) == {"username": ["alice"]}

    def test_error_status_body_is_returned(self):
        """Test that Duo failure documents are returned, not raised."""
        def handler(request):
            return httpx.Response(500, json={"stat": "FAIL", "code": 50000, "message": "boom"})

        body = self._transport(handler).send_signed_post(
            "https://api.example.com/auth/v2/preauth", {"username": "alice"}, IKEY, SKEY
        )

        assert '"code":50000' in body.replace(" ", "")

    def test_connection_error(self):
        """Test that network failures become TransportError."""
        def handler(request):
            raise httpx.ConnectError("connection refused")

        transport = self._transport(handler)

        with pytest.raises(TransportError):
            transport.send_unauthenticated_get("https://api.example.com/rest/v1/ping")
        with pytest.raises(TransportError):
            transport.send_signed_post("https://api.example.com/auth/v2/preauth", {"username": "a"}, IKEY, SKEY)

    def test_signing_error_propagates(self):
        """Test that nothing is sent when signing fails."""
        handler = MagicMock()

        with pytest.raises(SigningError):
            self._transport(handler).send_signed_post(
                "https://api.example.com/auth/v2/preauth", {"username": "alice"}, "", SKEY
            )
        handler.assert_not_called()

    def test_close(self):
        """Test that closing the transport closes its HTTP client."""
        transport = self._transport(MagicMock())

        assert not transport.is_closed
        transport.close()
        assert transport.is_closed


class TestDuoAdminClient:
    """Test cases for RequestBuilder and DuoAdminClient."""

    @pytest.mark.parametrize("api_host, expected", [
        ("api-x.duosecurity.com", ("https", "api-x.duosecurity.com")),
        ("https://api-x.duosecurity.com", ("https", "api-x.duosecurity.com")),
        ("http://localhost:8080", ("http", "localhost:8080")),
    ])
    def test_split_api_host(self, api_host, expected):
        """Test scheme handling for configured hosts."""
        assert split_api_host(api_host) == expected

    def test_build_requests(self):
        """Test the ping and pre-auth request shapes."""
        builder = RequestBuilder("api-x.duosecurity.com")

        ping = builder.build_ping_request()
        preauth = builder.build_preauth_request("alice")

        assert ping.method == "GET"
        assert ping.url == "https://api-x.duosecurity.com/rest/v1/ping"
        assert preauth.method == "POST"
        assert preauth.url == "https://api-x.duosecurity.com/auth/v2/preauth"
        assert preauth.params == {"username": "alice"}

    def test_auth_api_version(self):
        """Test that the API version selects the pre-auth path."""
        builder = RequestBuilder("api-x.duosecurity.com", auth_api_version=1)

        assert builder.build_preauth_request("alice").path == "/auth/v1/preauth"

    def test_client_calls_transport(self):
        """Test that the client forwards requests with its keys, once each."""
        transport = MagicMock()
        transport.send_unauthenticated_get.return_value = "pong-body"
        transport.send_signed_post.return_value = "preauth-body"
        client = DuoAdminClient(transport, IKEY, SKEY, api_host="api-x.duosecurity.com")

        assert client.ping() == "pong-body"
        assert client.preauth("alice") == "preauth-body"

        transport.send_unauthenticated_get.assert_called_once_with("https://api-x.duosecurity.com/rest/v1/ping")
        transport.send_signed_post.assert_called_once_with(
            "https://api-x.duosecurity.com/auth/v2/preauth", {"username": "alice"}, IKEY, SKEY
        )

    def test_client_does_not_retry(self):
        """Test that transport errors propagate after a single attempt."""
        transport = MagicMock()
        transport.send_signed_post.side_effect = TransportError("timeout")
        client = DuoAdminClient(transport, IKEY, SKEY, api_host="api-x.duosecurity.com")

        with pytest.raises(TransportError):
            client.preauth("alice")
        assert transport.send_signed_post.call_count == 1

    def test_client_requires_host(self):
        """Test that a client needs either a builder or a host."""
        with pytest.raises(ValueError):
            DuoAdminClient(MagicMock(), IKEY, SKEY)

    def test_client_close(self):
        """Test that closing the client closes its transport."""
        transport = MagicMock()
        client = DuoAdminClient(transport, IKEY, SKEY, api_host="api-x.duosecurity.com")

        client.close()

        transport.close.assert_called_once_with()
