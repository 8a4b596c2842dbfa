"""
Callback route handler (/auth/linkedin/callback).

LinkedIn redirects here with ?code=...&state=... or ?error=.... The handler checks the CSRF state,
exchanges the code through signin_api, validates the profile and hands the result back: by
message to the opener when running in the popup, or by storage + navigation in the redirect flow.

States: start -> exchange -> success, or start/exchange -> error | security_error.
"""
import logging
import secrets
from dataclasses import dataclass
from enum import Enum
from urllib.parse import parse_qs

from signin_client.analytics import AUTHENTICATION_ERROR, USER_AUTHENTICATED, Analytics
from signin_client.api_client import SignInApiClient
from signin_client.browser import NavigationRefused, Page, WindowHandle
from signin_client.config import HOME_PATH, POPUP_ERROR_CLOSE_SECONDS
from signin_client.errors import AuthError, AuthErrorKind, from_exception, from_provider_error
from signin_client.events import (
    AuthErrorEvent,
    AuthErrorMessage,
    AuthSuccessEvent,
    AuthSuccessMessage,
    EventBus,
)
from signin_client.models import LinkedInUser, validate_user_data
from signin_client.scheduler import Scheduler
from signin_client.storage import AuthStateStore

logger = logging.getLogger(__name__)


class CallbackState(str, Enum):
    START = "start"
    EXCHANGE = "exchange"
    SUCCESS = "success"
    ERROR = "error"
    SECURITY_ERROR = "security_error"


@dataclass(frozen=True)
class CallbackOutcome:
    state: CallbackState
    user: LinkedInUser | None = None
    error: AuthError | None = None
    delivered_to_opener: bool = False


def _first(params: dict[str, list[str]], name: str) -> str | None:
    values = params.get(name)
    return values[0] if values else None


def _states_match(received: str, saved: str) -> bool:
    return secrets.compare_digest(received.encode("utf-8"), saved.encode("utf-8"))


class CallbackHandler:
    def __init__(
        self,
        page: Page,
        store: AuthStateStore,
        api: SignInApiClient,
        bus: EventBus,
        scheduler: Scheduler,
        analytics: Analytics | None = None,
    ):
        self.page = page
        self.store = store
        self.api = api
        self.bus = bus
        self.scheduler = scheduler
        self.analytics = analytics
        self.state = CallbackState.START
        self._outcome: CallbackOutcome | None = None

    @property
    def outcome(self) -> CallbackOutcome | None:
        return self._outcome

    def handle(self, query: str | None = None) -> CallbackOutcome:
        """Run the callback once for query (default: the page's own query string)."""
        if self._outcome is not None:
            return self._outcome
        self._outcome = self._run(self.page.query if query is None else query)
        return self._outcome

    def _run(self, query: str) -> CallbackOutcome:
        params = parse_qs(query.lstrip("?"), keep_blank_values=False)
        code = _first(params, "code")
        state = _first(params, "state")
        error = _first(params, "error")

        if error:
            return self._fail(from_provider_error(error, _first(params, "error_description")))

        saved = self.store.pop_state()
        if not state or not saved or not _states_match(state, saved):
            reason = "missing state parameter" if not state else (
                "no saved state" if not saved else "state mismatch"
            )
            return self._fail(
                AuthError(AuthErrorKind.SECURITY_STATE_MISMATCH, f"CSRF check failed: {reason}"),
                security=True,
            )

        if not code:
            return self._fail(AuthError(AuthErrorKind.OAUTH_ERROR, "No authorization code received (invalid data)"))

        self.state = CallbackState.EXCHANGE
        try:
            access_token = self.api.exchange_code(code)
            profile = self.api.fetch_profile(access_token)
        except Exception as e:
            return self._fail(from_exception(e))

        user = validate_user_data(profile)
        if user is None:
            return self._fail(AuthError(AuthErrorKind.OAUTH_ERROR, "Profile failed validation (invalid data)"))
        return self._succeed(user)

    def _open_opener(self) -> WindowHandle | None:
        opener = self.page.opener
        if opener is None or opener.closed:
            return None
        return opener

    def _finish(self) -> None:
        self.store.clear_state()
        self.store.clear_in_progress()
        self.store.clear_navigation_flag()

    def _fail(self, error: AuthError, security: bool = False) -> CallbackOutcome:
        self.state = CallbackState.SECURITY_ERROR if security else CallbackState.ERROR
        self._finish()
        logger.warning("LinkedIn callback failed (%s): %s", error.kind.value, error.technical_details)
        self.bus.publish(AuthErrorEvent(error))
        if self.analytics is not None:
            self.analytics.track(
                AUTHENTICATION_ERROR,
                {"error_type": error.kind.value, "security": security, "retryable": error.retryable},
            )

        opener = self._open_opener()
        if opener is not None:
            message = AuthErrorMessage(
                error=error.kind.value,
                error_description=error.technical_details or error.message,
                security=security,
            )
            opener.post_message(message.to_payload(), self.page.origin)
            self.scheduler.call_later(POPUP_ERROR_CLOSE_SECONDS, self.page.close)
        return CallbackOutcome(self.state, error=error, delivered_to_opener=opener is not None)

    def _succeed(self, user: LinkedInUser) -> CallbackOutcome:
        self.state = CallbackState.SUCCESS
        self._finish()
        opener = self._open_opener()
        if self.analytics is not None:
            self.analytics.identify(user.id)
            self.analytics.track(USER_AUTHENTICATED, {"strategy": "popup" if opener else "redirect"})

        if opener is not None:
            opener.post_message(AuthSuccessMessage(user).to_payload(), self.page.origin)
            self.page.close()
            return CallbackOutcome(self.state, user=user, delivered_to_opener=True)

        self.store.save_user(user)
        self.bus.publish(AuthSuccessEvent(user))
        target = self.store.pop_return_url() or HOME_PATH
        logger.info("Signed in; returning to %s", target)
        try:
            self.page.navigate(target)
        except NavigationRefused as e:
            logger.warning("Could not navigate to %s after sign-in: %s", target, e)
        self.page.reload()
        return CallbackOutcome(self.state, user=user)
