"""
Wires the sign-in components for one page and routes browser lifecycle events to them.

    client = SignInClient.from_window(js.window)
    client.bind()
    client.on_page_load()
"""
import logging
from typing import Any

from signin_client.analytics import Analytics
from signin_client.api_client import SignInApiClient
from signin_client.browser import Page
from signin_client.callback import CallbackHandler, CallbackOutcome
from signin_client.config import CALLBACK_PATH, LINKEDIN_CLIENT_ID
from signin_client.dom import BrowserPage, WebStorage
from signin_client.engagement import EngagementTracker
from signin_client.events import AuthSuccessEvent, EventBus
from signin_client.guard import NavigationGuard
from signin_client.initiator import OAuthInitiator
from signin_client.scheduler import LoopScheduler, Scheduler
from signin_client.session import AuthSession
from signin_client.storage import AuthStateStore, FallbackStore, KeyValueStore
from signin_client.strategy import Strategy

logger = logging.getLogger(__name__)


class SignInClient:
    def __init__(
        self,
        page: Page,
        persistent: KeyValueStore,
        ephemeral: KeyValueStore,
        scheduler: Scheduler,
        *,
        api: SignInApiClient | None = None,
        analytics: Analytics | None = None,
        bus: EventBus | None = None,
        client_id: str = LINKEDIN_CLIENT_ID,
        allowed_origins: tuple[str, ...] = (),
    ):
        self.page = page
        self.scheduler = scheduler
        self.bus = bus or EventBus()
        self.api = api or SignInApiClient()
        self.analytics = analytics
        self.store = AuthStateStore(persistent, ephemeral, clock=scheduler.now)
        self.initiator = OAuthInitiator(page, self.store, scheduler, analytics, client_id=client_id)
        self.guard = NavigationGuard(self.store, self.bus, scheduler)
        self.session = AuthSession(self.store, self.initiator, self.bus, analytics, allowed_origins)
        self.engagement = EngagementTracker(
            persistent, self.bus, scheduler, lambda: self.session.snapshot.is_authenticated, analytics
        )
        self.callback: CallbackHandler | None = None
        self.bus.subscribe(AuthSuccessEvent, self._on_signed_in)

    @classmethod
    def from_window(cls, window: Any, **kwargs) -> "SignInClient":
        """Build over a real browser window; storage that cannot be opened degrades to memory."""
        return cls(
            BrowserPage(window),
            FallbackStore(_web_storage(window, "localStorage")),
            FallbackStore(_web_storage(window, "sessionStorage")),
            kwargs.pop("scheduler", None) or LoopScheduler(),
            analytics=kwargs.pop("analytics", None) or Analytics(),
            **kwargs,
        )

    def bind(self) -> None:
        """Register window listeners (BrowserPage only)."""
        page = self.page
        if not isinstance(page, BrowserPage):
            raise TypeError("bind() needs a BrowserPage")
        page.listen("message", lambda event: self.on_message(event.origin, event.data))
        page.listen("pagehide", lambda event: self.on_unload())
        page.listen(
            "visibilitychange",
            lambda event: self.on_visibility_change(page.window.document.visibilityState == "visible"),
        )

    def on_page_load(self, path: str | None = None) -> CallbackOutcome | None:
        """Reconcile leftover markers, load the session, and run the callback on its route."""
        path = self.page.path if path is None else path
        self.guard.on_load(path)
        self.session.load()
        if path == CALLBACK_PATH:
            self.callback = CallbackHandler(
                self.page, self.store, self.api, self.bus, self.scheduler, self.analytics
            )
            return self.callback.handle()
        self.engagement.record_page_view()
        return None

    def sign_in(self) -> Strategy | None:
        self.engagement.prompt_visible = False
        return self.session.sign_in(self.page.path)

    def retry(self) -> Strategy | None:
        return self.session.retry(self.page.path)

    def sign_out(self) -> None:
        self.session.sign_out()

    def on_unload(self) -> None:
        self.guard.on_unload()

    def on_visibility_change(self, visible: bool) -> bool:
        return self.guard.on_visibility_change(visible, self.page.path)

    def on_message(self, origin: str, data: Any) -> bool:
        return self.session.receive_message(origin, data)

    def _on_signed_in(self, event: AuthSuccessEvent) -> None:
        self.engagement.cancel()
        self.engagement.prompt_visible = False


def _web_storage(window: Any, name: str) -> WebStorage | None:
    try:
        return WebStorage(getattr(window, name))
    except Exception as e:
        logger.warning("%s unavailable: %s", name, e)
        return None
