"""
Request signing for the Duo admin API.
"""

import email.utils
import hashlib
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Protocol

import duo_client.client

from shared.errors import ValidationError


SIGNATURE_VERSION = 2


class SigningError(ValidationError):
    """Raised when a request cannot be signed with the configured keys."""

    def __init__(self, message: str = "Request signing failed"):
        super().__init__(message, details={"stage": "signing"})
        self.code = "SIGNING_ERROR"


@dataclass(frozen=True)
class ProviderRequest:
    """An outbound request before it is signed."""
    method: str
    host: str
    path: str
    scheme: str = "https"
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}{self.path}"


@dataclass(frozen=True)
class SignedRequest:
    """A request together with the headers that authenticate it."""
    request: ProviderRequest
    headers: Dict[str, str]


class RequestSigner(Protocol):
    def sign(self, request: ProviderRequest, integration_key: str, secret_key: str) -> SignedRequest:
        ...


class HmacRequestSigner:
    """Signs requests with Duo's v2 request signature through the Duo SDK.

    ``duo_client`` builds the canonical request (date, method, host, path and
    parameters) and the HTTP Basic ``integration_key:hmac`` credentials. Two
    calls with the same inputs and the same clock reading produce the same
    headers.
    """

    def __init__(self, clock: Callable[[], float] = time.time, digestmod=hashlib.sha1):
        self.clock = clock
        self.digestmod = digestmod

    def sign(self, request: ProviderRequest, integration_key: str, secret_key: str) -> SignedRequest:
        self._check_key("integration key", integration_key)
        self._check_key("secret key", secret_key)

        date = email.utils.formatdate(self.clock(), usegmt=True)
        authorization = duo_client.client.sign(
            integration_key,
            secret_key,
            request.method.upper(),
            request.host.lower(),
            request.path,
            date,
            SIGNATURE_VERSION,
            duo_client.client.normalize_params(request.params),
            digestmod=self.digestmod
        )

        return SignedRequest(
            request=request,
            headers={
                "Date": date,
                "Authorization": authorization,
            }
        )

    @staticmethod
    def _check_key(name: str, value: str) -> None:
        if not isinstance(value, str) or not value.strip():
            raise SigningError(f"Duo {name} is not configured")
        if any(ch.isspace() for ch in value) or not value.isascii():
            raise SigningError(f"Duo {name} is malformed")
