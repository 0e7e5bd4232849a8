"""
HTTP transport for the Duo admin API.
"""

from typing import Dict, Optional, Protocol
from urllib.parse import urlsplit

import httpx

from shared.errors import ExternalServiceError
from shared.logging import get_logger
from .signer import ProviderRequest, RequestSigner


class TransportError(ExternalServiceError):
    """Network or IO failure while reaching the provider."""

    def __init__(self, message: str = "Provider unreachable", details: Optional[Dict[str, str]] = None):
        super().__init__("duo", message, details)


class Transport(Protocol):
    def send_unauthenticated_get(self, url: str) -> str:
        ...

    def send_signed_post(self, endpoint: str, params: Dict[str, str],
                         integration_key: str, secret_key: str) -> str:
        ...

    def close(self) -> None:
        ...


class HttpxTransport:
    """Synchronous httpx transport.

    Response bodies are returned whatever the HTTP status, since Duo reports
    failures as JSON documents on 4xx/5xx responses. Only failures to obtain
    a response at all become ``TransportError``.
    """

    def __init__(self, signer: RequestSigner, timeout: float = 10.0,
                 client: Optional[httpx.Client] = None):
        self.signer = signer
        self.logger = get_logger("mfa.duo.transport")
        self._client = client or httpx.Client(timeout=timeout)

    def send_unauthenticated_get(self, url: str) -> str:
        try:
            response = self._client.get(url)
        except httpx.HTTPError as e:
            raise TransportError(f"GET {url} failed: {e}", details={"url": url})

        self.logger.debug("Provider responded", method="GET", url=url, status_code=response.status_code)
        return response.text

    def send_signed_post(self, endpoint: str, params: Dict[str, str],
                         integration_key: str, secret_key: str) -> str:
        parts = urlsplit(endpoint)
        request = ProviderRequest(
            method="POST",
            host=parts.netloc,
            path=parts.path,
            scheme=parts.scheme or "https",
            params=dict(params),
        )
        signed = self.signer.sign(request, integration_key, secret_key)

        try:
            response = self._client.post(request.url, data=request.params, headers=signed.headers)
        except httpx.HTTPError as e:
            raise TransportError(f"POST {request.url} failed: {e}", details={"url": request.url})

        self.logger.debug("Provider responded", method="POST", url=request.url, status_code=response.status_code)
        return response.text

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    def close(self) -> None:
        self._client.close()
