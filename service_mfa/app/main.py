"""
MFA service for the access layer.
"""

import threading
from typing import Dict, Optional

from cachetools import TTLCache
from fastapi import FastAPI

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import ValidationError
from shared.logging import set_user_context
from .models import AccountStatusResponse, PingResponse
from .resolution.status_service import StatusResolutionService


class MfaService(BaseService):
    """MFA service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None,
                 resolver: Optional[StatusResolutionService] = None):
        super().__init__("mfa", 8013, config)
        self.resolver = resolver or StatusResolutionService.from_config(self.config, metrics=self.metrics)
        self._health_ping = TTLCache(maxsize=1, ttl=self.config.duo_health_ping_ttl_seconds)
        self._health_lock = threading.Lock()
        self._setup_mfa_routes()

        @self.app.on_event("shutdown")
        def shutdown_event():
            self.resolver.close()
            self.logger.info("MFA service stopped")

    def _check_dependencies(self) -> Dict[str, str]:
        # Duo being down degrades MFA decisions to UNAVAILABLE, it does not make this service unhealthy.
        return {"duo": "ok" if self._duo_available() else "unavailable"}

    def _duo_available(self) -> bool:
        with self._health_lock:
            available = self._health_ping.get("duo")
            if available is None:
                available = self.resolver.ping()
                self._health_ping["duo"] = available
            return available

    def _setup_mfa_routes(self):
        """Set up MFA-specific routes."""

        @self.app.get("/")
        def root():
            """Root endpoint."""
            return {
                "service": "mfa",
                "message": "Access Layer - MFA Service",
                "version": "1.0.0"
            }

        @self.app.get("/mfa/ping", response_model=PingResponse)
        def ping():
            """Provider liveness probe."""
            return PingResponse(available=self.resolver.ping())

        @self.app.get("/mfa/users/{username}/status", response_model=AccountStatusResponse)
        def get_account_status(username: str):
            """Resolve the MFA status of a user."""
            username = self._require_username(username)
            set_user_context(username)
            account = self.resolver.resolve(username)
            return AccountStatusResponse.from_account(account)

        @self.app.delete("/mfa/users/{username}/status")
        def invalidate_account_status(username: str):
            """Drop the cached MFA status of a user."""
            username = self._require_username(username)
            return {
                "username": username,
                "invalidated": self.resolver.invalidate(username)
            }

        @self.app.get("/mfa/cache/stats")
        def cache_stats():
            """Account status cache statistics."""
            return self.resolver.cache.stats()

    @staticmethod
    def _require_username(username: str) -> str:
        if not username.strip():
            raise ValidationError("Username is required", details={"field": "username"})
        return username


def create_app(config: Optional[ServiceConfig] = None,
               resolver: Optional[StatusResolutionService] = None) -> FastAPI:
    """Create MFA service application."""
    service = MfaService(config, resolver)
    return service.app


if __name__ == "__main__":
    service = MfaService()
    service.run()
