"""
Messages and events of the sign-in flow.

Two closed sets of variants:

- cross-window messages, posted from the callback popup to the window that opened it
  (AuthSuccessMessage, AuthErrorMessage), serialized as plain dicts tagged by "type";
- application events, published on an EventBus for toasts/banners (AuthErrorEvent,
  AuthRetryAttemptEvent, AuthSuccessEvent, AuthNoticeEvent, AuthPromptEvent).
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Iterable, TypeVar, Union

from signin_client.errors import AuthError, AuthErrorKind, from_provider_error
from signin_client.models import LinkedInUser, validate_user_data

logger = logging.getLogger(__name__)

LINKEDIN_AUTH_SUCCESS = "LINKEDIN_AUTH_SUCCESS"
LINKEDIN_AUTH_ERROR = "LINKEDIN_AUTH_ERROR"


@dataclass(frozen=True)
class AuthSuccessMessage:
    user: LinkedInUser
    type: ClassVar[str] = LINKEDIN_AUTH_SUCCESS

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, "userData": self.user.to_dict()}


@dataclass(frozen=True)
class AuthErrorMessage:
    error: str
    error_description: str | None = None
    security: bool = False
    type: ClassVar[str] = LINKEDIN_AUTH_ERROR

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "error": self.error,
            "errorDescription": self.error_description,
            "security": self.security,
        }

    def to_error(self) -> AuthError:
        if self.security:
            return AuthError(AuthErrorKind.SECURITY_STATE_MISMATCH, self.error_description or self.error)
        try:
            kind = AuthErrorKind(self.error)
        except ValueError:
            return from_provider_error(self.error, self.error_description)
        return AuthError(kind, self.error_description or "")


AuthMessage = Union[AuthSuccessMessage, AuthErrorMessage]


def parse_message(data: Any) -> AuthMessage | None:
    """Decode a posted message (dict, or its JSON string). Anything unrecognized is None."""
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except ValueError:
            return None
    if not isinstance(data, dict):
        return None
    kind = data.get("type")
    if kind == LINKEDIN_AUTH_SUCCESS:
        user = validate_user_data(data.get("userData"))
        return AuthSuccessMessage(user) if user is not None else None
    if kind == LINKEDIN_AUTH_ERROR:
        error = data.get("error")
        if not isinstance(error, str) or not error:
            return None
        description = data.get("errorDescription")
        return AuthErrorMessage(
            error=error,
            error_description=description if isinstance(description, str) else None,
            security=data.get("security") is True,
        )
    return None


def origin_allowed(origin: str, allowed: Iterable[str]) -> bool:
    """Exact match against an allow-list of origins ("scheme://host[:port]")."""
    return origin in set(allowed)


# --- application events ---


@dataclass(frozen=True)
class AuthErrorEvent:
    error: AuthError
    name: ClassVar[str] = "auth-error"


@dataclass(frozen=True)
class AuthRetryAttemptEvent:
    attempt: int
    previous_error: AuthErrorKind | None = None
    name: ClassVar[str] = "auth-retry-attempt"


@dataclass(frozen=True)
class AuthSuccessEvent:
    user: LinkedInUser
    name: ClassVar[str] = "linkedin-auth-success"


@dataclass(frozen=True)
class AuthNoticeEvent:
    """A transient status notice; message None means the notice was dismissed."""
    message: str | None
    name: ClassVar[str] = "auth-notice"


@dataclass(frozen=True)
class AuthPromptEvent:
    trigger: str
    name: ClassVar[str] = "auth-prompt"


AuthEvent = Union[AuthErrorEvent, AuthRetryAttemptEvent, AuthSuccessEvent, AuthNoticeEvent, AuthPromptEvent]

E = TypeVar("E")


class EventBus:
    """Synchronous publish/subscribe keyed by event class."""

    def __init__(self):
        self._handlers: dict[type, list[Callable[[Any], None]]] = {}

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        """Register handler; returns a function that unregisters it."""
        handlers = self._handlers.setdefault(event_type, [])
        handlers.append(handler)

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, event: AuthEvent) -> None:
        """Deliver to every handler of the event's class. A failing handler does not stop the rest."""
        for handler in list(self._handlers.get(type(event), ())):
            try:
                handler(event)
            except Exception:
                logger.exception("Handler for %s failed", event.name)
