"""
Sign-in error kinds and classification.

Every failure the flow surfaces is an AuthError: a kind, a message fit for the user, a
technical detail string for logs, and whether offering "try again" makes sense.
"""
import time
from enum import Enum
from typing import Any

import httpx


class AuthErrorKind(str, Enum):
    POPUP_BLOCKED = "popup_blocked"
    NETWORK_ERROR = "network_error"
    RATE_LIMITED = "rate_limited"
    USER_CANCELLED = "user_cancelled"
    THIRD_PARTY_COOKIES = "third_party_cookies"
    BROWSER_COMPATIBILITY = "browser_compatibility"
    OAUTH_ERROR = "oauth_error"
    SECURITY_STATE_MISMATCH = "security_state_mismatch"
    CONFIGURATION_MISSING = "configuration_missing"


NEVER_RETRYABLE = frozenset({AuthErrorKind.SECURITY_STATE_MISMATCH, AuthErrorKind.CONFIGURATION_MISSING})

USER_MESSAGES = {
    AuthErrorKind.POPUP_BLOCKED: "Your browser blocked the LinkedIn sign-in window. Allow popups for this site and try again.",
    AuthErrorKind.NETWORK_ERROR: "Could not reach LinkedIn. Check your connection and try again.",
    AuthErrorKind.RATE_LIMITED: "Too many sign-in attempts. Wait a few minutes and try again.",
    AuthErrorKind.USER_CANCELLED: "LinkedIn sign-in was cancelled.",
    AuthErrorKind.THIRD_PARTY_COOKIES: "Your browser is blocking cookies LinkedIn sign-in needs.",
    AuthErrorKind.BROWSER_COMPATIBILITY: "This browser does not support LinkedIn sign-in. Try a recent browser.",
    AuthErrorKind.OAUTH_ERROR: "LinkedIn could not complete the sign-in.",
    AuthErrorKind.SECURITY_STATE_MISMATCH: "The sign-in response failed a security check and was discarded.",
    AuthErrorKind.CONFIGURATION_MISSING: "LinkedIn sign-in is not configured on this site.",
}

CANCELLED_PROVIDER_ERRORS = frozenset({"access_denied", "user_cancelled_login", "user_cancelled_authorize"})


class AuthError(Exception):
    """A classified sign-in failure."""

    def __init__(
        self,
        kind: AuthErrorKind,
        technical_details: str = "",
        *,
        message: str | None = None,
        retryable: bool | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.kind = AuthErrorKind(kind)
        self.message = message or USER_MESSAGES[self.kind]
        self.technical_details = technical_details
        if self.kind in NEVER_RETRYABLE:
            retryable = False
        self.retryable = True if retryable is None else retryable
        self.timestamp = time.time()
        self.context = dict(context or {})
        super().__init__(f"{self.kind.value}: {technical_details or self.message}")

    @property
    def is_security_violation(self) -> bool:
        return self.kind is AuthErrorKind.SECURITY_STATE_MISMATCH

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "message": self.message,
            "technical_details": self.technical_details,
            "retryable": self.retryable,
            "timestamp": self.timestamp,
            "context": self.context,
        }


def from_provider_error(error: str, description: str | None = None) -> AuthError:
    """error/error_description from LinkedIn's redirect back to the callback route."""
    details = f"OAuth error: {error}" + (f" ({description})" if description else "")
    if error in CANCELLED_PROVIDER_ERRORS:
        return AuthError(AuthErrorKind.USER_CANCELLED, details, context={"provider_error": error})
    return AuthError(AuthErrorKind.OAUTH_ERROR, details, context={"provider_error": error})


def from_status(status_code: int, detail: str = "") -> AuthError:
    """Non-2xx answer from signin_api."""
    details = f"HTTP {status_code}" + (f": {detail}" if detail else "")
    if status_code == 429:
        return AuthError(AuthErrorKind.RATE_LIMITED, details, context={"status": status_code})
    if status_code in (400, 403):
        return AuthError(AuthErrorKind.OAUTH_ERROR, details, retryable=False, context={"status": status_code})
    return AuthError(AuthErrorKind.OAUTH_ERROR, details, context={"status": status_code})


def from_exception(exc: BaseException) -> AuthError:
    """Best-effort classification of an unexpected exception."""
    if isinstance(exc, AuthError):
        return exc
    text = str(exc)
    if isinstance(exc, httpx.TransportError):
        return AuthError(AuthErrorKind.NETWORK_ERROR, text or type(exc).__name__)
    lowered = text.lower()
    if "cookie" in lowered or "samesite" in lowered:
        return AuthError(AuthErrorKind.THIRD_PARTY_COOKIES, text)
    if isinstance(exc, NotImplementedError) or "not supported" in lowered:
        return AuthError(AuthErrorKind.BROWSER_COMPATIBILITY, text, retryable=False)
    return AuthError(AuthErrorKind.NETWORK_ERROR, text or type(exc).__name__)
