"""
Auth session facade: the one object the rest of the UI talks to for sign-in state.
"""
import logging
from dataclasses import dataclass
from typing import Any, Iterable

from signin_client.analytics import AUTHENTICATION_ERROR, USER_SIGNED_OUT, Analytics
from signin_client.config import MAX_RETRY_ATTEMPTS
from signin_client.errors import AuthError
from signin_client.events import (
    AuthErrorEvent,
    AuthErrorMessage,
    AuthRetryAttemptEvent,
    AuthSuccessEvent,
    AuthSuccessMessage,
    EventBus,
    origin_allowed,
    parse_message,
)
from signin_client.initiator import OAuthInitiator
from signin_client.models import LinkedInUser
from signin_client.storage import AuthStateStore
from signin_client.strategy import Strategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    is_authenticated: bool
    user: LinkedInUser | None
    loading: bool


class AuthSession:
    def __init__(
        self,
        store: AuthStateStore,
        initiator: OAuthInitiator,
        bus: EventBus,
        analytics: Analytics | None = None,
        allowed_origins: Iterable[str] = (),
        max_retries: int = MAX_RETRY_ATTEMPTS,
    ):
        self.store = store
        self.initiator = initiator
        self.bus = bus
        self.analytics = analytics
        self.allowed_origins = tuple(allowed_origins) or (initiator.page.origin,)
        self.last_error: AuthError | None = None
        self.retry_attempts = 0
        self.max_retries = max_retries
        self._user: LinkedInUser | None = None
        self._loading = True

    @property
    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(self._user is not None, self._user, self._loading)

    @property
    def user(self) -> LinkedInUser | None:
        return self._user

    def load(self) -> SessionSnapshot:
        """Read the stored user record; an invalid one is purged by the store."""
        self._user = self.store.load_user()
        self._loading = False
        if self._user is not None:
            self._identify(self._user)
        return self.snapshot

    def sign_in(self, current_path: str) -> Strategy | None:
        try:
            return self.initiator.begin(current_path)
        except AuthError as e:
            if self.analytics is not None:
                self.analytics.track(AUTHENTICATION_ERROR, {"error_type": e.kind.value, "stage": "initiate"})
            self.report_error(e)
            return None

    def retry(self, current_path: str) -> Strategy | None:
        """
        Start again after a failed attempt. Returns None without starting when the last error is
        not retryable, when the retry budget is spent (the last error is surfaced again), or while
        a live attempt is still in progress.
        """
        previous = self.last_error
        if previous is not None and not previous.retryable:
            logger.info("Not retrying: %s is not retryable", previous.kind.value)
            return None
        if self.retry_attempts >= self.max_retries:
            logger.info("Not retrying: %d attempts used", self.retry_attempts)
            if previous is not None:
                self.report_error(previous)
            return None
        if self.store.is_stale():
            self.initiator.stop_watching()
            self.store.clear_transaction()
        if self.store.is_in_progress():
            logger.info("Not retrying: an attempt is still in progress")
            return None

        self.retry_attempts += 1
        self.bus.publish(AuthRetryAttemptEvent(self.retry_attempts, previous.kind if previous else None))
        logger.info("Sign-in retry attempt %d", self.retry_attempts)
        return self.sign_in(current_path)

    def sign_out(self) -> None:
        self.initiator.stop_watching()
        self.store.clear_user()
        self.store.clear_transaction()
        was_signed_in = self._user is not None
        self._user = None
        self.last_error = None
        self.retry_attempts = 0
        if was_signed_in and self.analytics is not None:
            self.analytics.track(USER_SIGNED_OUT)

    def receive_message(self, origin: str, data: Any) -> bool:
        """
        Handle a message posted to this window. Returns True when it was a sign-in message from
        an allowed origin and was acted on.
        """
        if not origin_allowed(origin, self.allowed_origins):
            logger.debug("Ignoring message from origin %s", origin)
            return False
        message = parse_message(data)
        if message is None:
            return False

        self.initiator.stop_watching()
        self.store.clear_transaction()
        if isinstance(message, AuthSuccessMessage):
            self._complete(message.user)
        elif isinstance(message, AuthErrorMessage):
            self.report_error(message.to_error())
        return True

    def report_error(self, error: AuthError) -> None:
        """Single error surface: kept in last_error and published for toasts/banners."""
        logger.warning("Sign-in error (%s): %s", error.kind.value, error.technical_details)
        self.last_error = error
        self.bus.publish(AuthErrorEvent(error))

    def _complete(self, user: LinkedInUser) -> None:
        self.store.save_user(user)
        self._user = user
        self._loading = False
        self.last_error = None
        self.retry_attempts = 0
        self._identify(user)
        self.bus.publish(AuthSuccessEvent(user))

    def _identify(self, user: LinkedInUser) -> None:
        if self.analytics is None:
            return
        self.analytics.identify(user.id)
        props = {"$name": user.name, "linkedin_id": user.id}
        if user.email:
            props["$email"] = user.email
        if user.headline:
            props["headline"] = user.headline
        self.analytics.set_user_properties(props)
