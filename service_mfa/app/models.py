"""
Account status data models for the MFA Service.
"""

from typing import Optional
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field


class AccountStatus(str, Enum):
    """MFA status of a user account as seen by the provider."""
    AUTH = "AUTH"
    ALLOW = "ALLOW"
    DENY = "DENY"
    ENROLL = "ENROLL"
    UNAVAILABLE = "UNAVAILABLE"


@dataclass(frozen=True)
class UserAccount:
    """Result of resolving a username against the provider."""
    username: str
    status: AccountStatus = AccountStatus.AUTH
    message: str = ""
    enroll_portal_url: Optional[str] = None


class AccountStatusResponse(BaseModel):
    """Response model for account status lookups."""
    username: str = Field(..., description="Username the status was resolved for")
    status: AccountStatus = Field(..., description="Resolved MFA status")
    message: str = Field("", description="Provider status message")
    enroll_portal_url: Optional[str] = Field(None, description="Enrollment portal, set only for ENROLL")

    @classmethod
    def from_account(cls, account: UserAccount) -> "AccountStatusResponse":
        return cls(
            username=account.username,
            status=account.status,
            message=account.message,
            enroll_portal_url=account.enroll_portal_url,
        )


class PingResponse(BaseModel):
    """Response model for the provider liveness probe."""
    available: bool
