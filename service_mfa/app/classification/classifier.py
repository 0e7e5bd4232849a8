"""
Classification of Duo admin API responses.
"""

import json
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union
from urllib.parse import unquote_plus

from shared.logging import get_logger
from ..models import AccountStatus, UserAccount


RESULT_CODE_ERROR_THRESHOLD = 49999

RESULT_KEY_RESPONSE = "response"
RESULT_KEY_STAT = "stat"
RESULT_KEY_RESULT = "result"
RESULT_KEY_ENROLL_PORTAL_URL = "enroll_portal_url"
RESULT_KEY_STATUS_MESSAGE = "status_msg"
RESULT_KEY_CODE = "code"
RESULT_KEY_MESSAGE = "message"
RESULT_KEY_MESSAGE_DETAIL = "message_detail"

# Results Duo may report for a pre-authentication; UNAVAILABLE is ours only.
PREAUTH_RESULTS = {
    status.value: status
    for status in (AccountStatus.AUTH, AccountStatus.ALLOW, AccountStatus.DENY, AccountStatus.ENROLL)
}


class ErrorKind(str, Enum):
    """Kinds of failure met while resolving an account status."""
    TRANSPORT_ERROR = "transport_error"
    SIGNING_ERROR = "signing_error"
    MALFORMED_RESPONSE = "malformed_response"
    SERVER_ERROR = "server_error"
    CONFIG_WARNING = "config_warning"
    UNEXPECTED_ERROR = "unexpected_error"

    @property
    def forces_unavailable(self) -> bool:
        return self is not ErrorKind.CONFIG_WARNING


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying one pre-authentication attempt."""
    account: UserAccount
    error_kind: Optional[ErrorKind] = None
    detail: str = ""

    @property
    def provider_available(self) -> bool:
        return self.error_kind is None or not self.error_kind.forces_unavailable


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None or isinstance(value, (dict, list)):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_code(value: Any) -> int:
    """Read a failure code leniently: numbers truncate, anything unreadable is 0."""
    if isinstance(value, str):
        value = value.strip()
    elif not isinstance(value, (int, float)):
        return 0
    try:
        return int(value) if isinstance(value, int) else int(float(value))
    except (ValueError, OverflowError):
        return 0


class ResponseClassifier:
    """Maps Duo responses onto ``AccountStatus``.

    Pre-authentication starts from ``AUTH`` with an empty message:

    - no ``stat`` field: malformed, the account becomes UNAVAILABLE;
    - ``stat`` OK: ``response.result`` names the status, ``status_msg`` the
      message and, for ENROLL, ``enroll_portal_url`` the portal;
    - otherwise ``code`` above 49999 is a provider failure (UNAVAILABLE),
      anything lower is a request/configuration problem on a healthy
      provider and leaves the status at AUTH.
    """

    def __init__(self, parser: Callable[[str], Any] = json.loads):
        self.parser = parser
        self.logger = get_logger("mfa.classifier")

    def parse(self, raw: Union[str, bytes]) -> Any:
        """URL-decode a raw response body and parse it."""
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return self.parser(unquote_plus(raw, encoding="utf-8"))

    def is_pong(self, raw: Union[str, bytes, None]) -> bool:
        """True only for ``{"stat": "OK", "response": "pong"}``, compared case-insensitively."""
        if raw is None:
            return False
        try:
            result = self.parse(raw)
        except Exception as e:
            self.logger.warning("Could not parse Duo ping response", error=str(e))
            return False

        if (isinstance(result, dict)
                and _as_text(result.get(RESULT_KEY_RESPONSE)).casefold() == "pong"
                and _as_text(result.get(RESULT_KEY_STAT)).casefold() == "ok"):
            return True

        self.logger.warning("Could not reach/ping Duo", response=result)
        return False

    def classify_preauth(self, username: str, raw: Union[str, bytes]) -> Classification:
        account = UserAccount(username=username)

        try:
            result = self.parse(raw)
        except Exception as e:
            self.logger.warning("Duo admin response could not be parsed", username=username, error=str(e))
            return self.unavailable(account, ErrorKind.MALFORMED_RESPONSE, f"Unparseable response: {e}")

        self.logger.debug("Received Duo admin response", username=username, response=result)

        if not isinstance(result, dict) or RESULT_KEY_STAT not in result:
            self.logger.warning("Duo admin response was received in unknown format", username=username, response=result)
            return self.unavailable(account, ErrorKind.MALFORMED_RESPONSE, "Invalid response format received from Duo")

        if _as_text(result[RESULT_KEY_STAT]).upper() == "OK":
            return self._classify_success(account, result.get(RESULT_KEY_RESPONSE))
        return self._classify_failure(account, result)

    def unavailable(self, account: Union[UserAccount, str], kind: ErrorKind, detail: str = "") -> Classification:
        """Classification for an attempt that leaves the provider unusable."""
        if isinstance(account, str):
            account = UserAccount(username=account)
        return Classification(
            account=replace(account, status=AccountStatus.UNAVAILABLE),
            error_kind=kind,
            detail=detail
        )

    def _classify_success(self, account: UserAccount, response: Any) -> Classification:
        if not isinstance(response, dict):
            return self._malformed(account, "Pre-authentication response body is missing")

        auth_result = _as_text(response.get(RESULT_KEY_RESULT)).upper()
        status = PREAUTH_RESULTS.get(auth_result)
        if status is None:
            return self._malformed(account, f"Unknown pre-authentication result [{auth_result}]")

        if response.get(RESULT_KEY_STATUS_MESSAGE) is None:
            return self._malformed(account, "Pre-authentication response has no status message")

        enroll_portal_url = None
        if status == AccountStatus.ENROLL:
            enroll_portal_url = response.get(RESULT_KEY_ENROLL_PORTAL_URL)
            if enroll_portal_url is None:
                return self._malformed(account, "Enrollment response has no enrollment portal")
            enroll_portal_url = _as_text(enroll_portal_url)

        return Classification(
            account=replace(
                account,
                status=status,
                message=_as_text(response[RESULT_KEY_STATUS_MESSAGE]),
                enroll_portal_url=enroll_portal_url
            )
        )

    def _classify_failure(self, account: UserAccount, result: Dict[str, Any]) -> Classification:
        if result.get(RESULT_KEY_CODE) is None:
            return self._malformed(account, "Failure response has no code")

        code = _as_code(result[RESULT_KEY_CODE])

        message = _as_text(result.get(RESULT_KEY_MESSAGE))
        message_detail = _as_text(result.get(RESULT_KEY_MESSAGE_DETAIL))

        if code > RESULT_CODE_ERROR_THRESHOLD:
            self.logger.warning(
                "Duo returned a failure response with a code indicating a server error, "
                "Duo will be considered unavailable",
                username=account.username,
                code=code,
                message=message
            )
            return self.unavailable(account, ErrorKind.SERVER_ERROR, f"Duo returned code {code}: {message}")

        self.logger.warning(
            "Duo returned an invalid response when determining user account. This may be a "
            "configuration error in the admin request and Duo will still be considered available",
            username=account.username,
            code=code,
            message=message,
            message_detail=message_detail
        )
        return Classification(
            account=account,
            error_kind=ErrorKind.CONFIG_WARNING,
            detail=f"Duo returned code {code}: {message} {message_detail}".rstrip()
        )

    def _malformed(self, account: UserAccount, detail: str) -> Classification:
        self.logger.warning("Duo admin response is malformed", username=account.username, detail=detail)
        return self.unavailable(account, ErrorKind.MALFORMED_RESPONSE, detail)
