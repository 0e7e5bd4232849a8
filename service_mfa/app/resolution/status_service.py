"""
Account status resolution service.
"""

from typing import Optional

from shared.config import BaseConfig
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..caching.account_cache import AccountStatusCache
from ..classification.classifier import Classification, ErrorKind, ResponseClassifier
from ..duo.client import DuoAdminClient, RequestBuilder
from ..duo.signer import HmacRequestSigner, SigningError
from ..duo.transport import HttpxTransport, TransportError
from ..models import AccountStatus, UserAccount


class StatusResolutionService:
    """Resolves usernames to MFA account statuses.

    ``ping`` and ``resolve`` never raise. Results, including failures, are
    cached so an outage does not translate into one provider call per login.
    Concurrent misses for the same username each call the provider.
    """

    def __init__(self, client: DuoAdminClient, classifier: ResponseClassifier,
                 cache: AccountStatusCache, metrics: Optional[MetricsCollector] = None):
        self.client = client
        self.classifier = classifier
        self.cache = cache
        self.metrics = metrics
        self.logger = get_logger("mfa.resolution")

    @classmethod
    def from_config(cls, config: BaseConfig,
                    metrics: Optional[MetricsCollector] = None) -> "StatusResolutionService":
        """Wire signer, transport, client, classifier and cache from configuration."""
        transport = HttpxTransport(HmacRequestSigner(), timeout=config.duo_request_timeout)
        client = DuoAdminClient(
            transport,
            config.duo_integration_key,
            config.duo_secret_key,
            request_builder=RequestBuilder(config.duo_api_host, config.duo_auth_api_version)
        )
        cache = AccountStatusCache(
            max_size=config.mfa_cache_max_size,
            ttl=config.mfa_cache_ttl_seconds
        )
        return cls(client, ResponseClassifier(), cache, metrics=metrics)

    def ping(self) -> bool:
        """Check that Duo answers its liveness endpoint."""
        try:
            raw = self.client.ping()
            available = self.classifier.is_pong(raw)
        except Exception as e:
            self.logger.warning("Pinging Duo has failed", error=str(e), exc_info=True)
            available = False

        if self.metrics:
            self.metrics.record_ping(available)
        return available

    def resolve(self, username: str) -> UserAccount:
        """Return the cached status for ``username`` or ask Duo for it."""
        if not username:
            self.logger.warning("Refusing to resolve an empty username")
            return UserAccount(username="", status=AccountStatus.UNAVAILABLE, message="Username is required")

        cached = self.cache.get(username)
        if cached is not None:
            self.logger.debug("Found cached duo user account", username=username, status=cached.status.value)
            self._record(cached, "cache")
            return cached

        classification = self._classify(username)
        account = classification.account

        if classification.error_kind is not None and self.metrics:
            self.metrics.record_provider_error(classification.error_kind.value)

        self.cache.put(username, account)
        self.logger.debug(
            "Fetched and cached duo user account",
            username=username,
            status=account.status.value,
            error_kind=classification.error_kind.value if classification.error_kind else None
        )
        self._record(account, "provider")
        return account

    def invalidate(self, username: str) -> bool:
        removed = self.cache.invalidate(username)
        if removed:
            self.logger.info("Cached duo user account invalidated", username=username)
        return removed

    def close(self) -> None:
        """Release the provider connection pool."""
        self.client.close()

    def _classify(self, username: str) -> Classification:
        try:
            if self.metrics:
                with self.metrics.time_operation("mfa_provider_request_duration_seconds", operation="preauth"):
                    raw = self.client.preauth(username)
            else:
                raw = self.client.preauth(username)
        except SigningError as e:
            self.logger.warning("Signing Duo request has failed", username=username, error=e.message)
            return self.classifier.unavailable(username, ErrorKind.SIGNING_ERROR, e.message)
        except TransportError as e:
            self.logger.warning("Reaching Duo has failed", username=username, error=e.message)
            return self.classifier.unavailable(username, ErrorKind.TRANSPORT_ERROR, e.message)
        except Exception as e:
            self.logger.error("Unexpected failure while calling Duo", username=username, error=str(e), exc_info=True)
            return self.classifier.unavailable(username, ErrorKind.UNEXPECTED_ERROR, str(e))

        try:
            return self.classifier.classify_preauth(username, raw)
        except Exception as e:
            self.logger.error("Classifying Duo response has failed", username=username, error=str(e), exc_info=True)
            return self.classifier.unavailable(username, ErrorKind.UNEXPECTED_ERROR, str(e))

    def _record(self, account: UserAccount, source: str) -> None:
        if self.metrics:
            self.metrics.record_status_resolution(account.status.value, source)
