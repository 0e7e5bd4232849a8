"""
Duo admin API client.
"""

from typing import Optional, Tuple
from urllib.parse import urlsplit

from shared.logging import get_logger
from .signer import ProviderRequest
from .transport import Transport


PING_PATH = "/rest/v1/ping"
PREAUTH_PATH_TEMPLATE = "/auth/v{version}/preauth"
DEFAULT_AUTH_API_VERSION = 2


def split_api_host(api_host: str) -> Tuple[str, str]:
    """Return ``(scheme, host)``; hosts configured without a scheme use https."""
    if not api_host.startswith(("http://", "https://")):
        return "https", api_host.rstrip("/")
    parts = urlsplit(api_host)
    return parts.scheme, parts.netloc


class RequestBuilder:
    """Builds the request shapes for one Duo Auth API version."""

    def __init__(self, api_host: str, auth_api_version: int = DEFAULT_AUTH_API_VERSION):
        self.scheme, self.host = split_api_host(api_host)
        self.auth_api_version = auth_api_version

    def build_ping_request(self) -> ProviderRequest:
        return ProviderRequest("GET", self.host, PING_PATH, scheme=self.scheme)

    def build_preauth_request(self, username: str) -> ProviderRequest:
        return ProviderRequest(
            "POST",
            self.host,
            PREAUTH_PATH_TEMPLATE.format(version=self.auth_api_version),
            scheme=self.scheme,
            params={"username": username},
        )


class DuoAdminClient:
    """Executes ping and pre-authentication calls against Duo.

    Each call is a single attempt; errors raised by the transport propagate
    to the caller.
    """

    def __init__(self, transport: Transport, integration_key: str, secret_key: str,
                 request_builder: Optional[RequestBuilder] = None, api_host: Optional[str] = None):
        if request_builder is None:
            if api_host is None:
                raise ValueError("Either request_builder or api_host is required")
            request_builder = RequestBuilder(api_host)
        self.transport = transport
        self.request_builder = request_builder
        self._integration_key = integration_key
        self._secret_key = secret_key
        self.logger = get_logger("mfa.duo.client")

    @property
    def api_host(self) -> str:
        return self.request_builder.host

    def ping(self) -> str:
        request = self.request_builder.build_ping_request()
        self.logger.debug("Contacting Duo", url=request.url)
        return self.transport.send_unauthenticated_get(request.url)

    def preauth(self, username: str) -> str:
        request = self.request_builder.build_preauth_request(username)
        self.logger.debug("Contacting Duo to inquire about username", username=username, url=request.url)
        return self.transport.send_signed_post(
            request.url,
            request.params,
            self._integration_key,
            self._secret_key
        )

    def close(self) -> None:
        self.transport.close()
