"""
Starts a LinkedIn sign-in: CSRF state + in-progress marker, then a popup or a full-page redirect
to LinkedIn's authorization endpoint.
"""
import logging

from signin_client.analytics import OAUTH_INITIATED, Analytics
from signin_client.authorize_url import build_authorize_url, generate_state, redirect_uri_for
from signin_client.browser import NavigationRefused, Page, WindowHandle
from signin_client.config import (
    AUTHORIZATION_ENDPOINT,
    DEFAULT_SCOPE,
    LINKEDIN_CLIENT_ID,
    POPUP_NAME,
    POPUP_POLL_SECONDS,
)
from signin_client.errors import AuthError, AuthErrorKind
from signin_client.scheduler import Scheduler, Task
from signin_client.storage import AuthStateStore
from signin_client.strategy import Strategy, popup_features, select_strategy

logger = logging.getLogger(__name__)


class OAuthInitiator:
    def __init__(
        self,
        page: Page,
        store: AuthStateStore,
        scheduler: Scheduler,
        analytics: Analytics | None = None,
        *,
        client_id: str = LINKEDIN_CLIENT_ID,
        authorization_endpoint: str = AUTHORIZATION_ENDPOINT,
        scope: str = DEFAULT_SCOPE,
    ):
        self.page = page
        self.store = store
        self.scheduler = scheduler
        self.analytics = analytics
        self.client_id = client_id
        self.authorization_endpoint = authorization_endpoint
        self.scope = scope
        self.popup: WindowHandle | None = None
        self._poll_task: Task | None = None

    def begin(self, current_path: str) -> Strategy | None:
        """
        Start an attempt from current_path. Returns the strategy used, or None when a live attempt
        already exists (the call is then a no-op).

        Raises AuthError(configuration_missing) without a client id, and AuthError(popup_blocked)
        when neither a popup nor a redirect could be started.
        """
        if self.store.is_in_progress():
            logger.info("Sign-in already in progress; ignoring begin()")
            return None
        if not self.client_id:
            raise AuthError(
                AuthErrorKind.CONFIGURATION_MISSING,
                "LINKEDIN_CLIENT_ID is not configured",
                retryable=False,
            )

        state = generate_state()
        self.store.save_state(state)
        self.store.mark_in_progress()
        url = build_authorize_url(
            endpoint=self.authorization_endpoint,
            client_id=self.client_id,
            redirect_uri=redirect_uri_for(self.page.origin),
            scope=self.scope,
            state=state,
        )

        env = self.page.environment()
        strategy = select_strategy(env)
        if strategy is Strategy.POPUP:
            handle = self.page.open_window(url, POPUP_NAME, popup_features(env))
            if handle is None:
                logger.info("Popup refused; falling back to redirect")
                strategy = Strategy.REDIRECT
            else:
                self._watch(handle)

        if strategy is Strategy.REDIRECT:
            self.store.save_return_url(current_path)
            try:
                self.page.navigate(url)
            except NavigationRefused as e:
                self.store.clear_transaction()
                raise AuthError(
                    AuthErrorKind.POPUP_BLOCKED,
                    f"Popup and redirect both refused: {e}",
                    retryable=True,
                    context={"strategy": strategy.value},
                )

        if self.analytics is not None:
            self.analytics.track(OAUTH_INITIATED, {"strategy": strategy.value, "path": current_path})
        return strategy

    def _watch(self, handle: WindowHandle) -> None:
        self.stop_watching()
        self.popup = handle
        self._poll_task = self.scheduler.call_later(POPUP_POLL_SECONDS, self._poll)

    def _poll(self) -> None:
        popup = self.popup
        if popup is None:
            return
        if popup.closed:
            # closed by the user or by the callback page; the result, if any, came by message
            logger.info("Sign-in popup closed")
            self.store.clear_in_progress()
            self.store.clear_state()
            self.popup = None
            self._poll_task = None
            return
        self._poll_task = self.scheduler.call_later(POPUP_POLL_SECONDS, self._poll)

    def stop_watching(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
        self._poll_task = None
        self.popup = None
