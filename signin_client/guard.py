"""
Detects sign-in attempts abandoned by leaving the page, and reaps expired markers.
"""
import logging

from signin_client.config import CALLBACK_PATH, NOTICE_DISMISS_SECONDS
from signin_client.events import AuthNoticeEvent, EventBus
from signin_client.scheduler import Scheduler, Task
from signin_client.storage import AuthStateStore

logger = logging.getLogger(__name__)

INTERRUPTED_NOTICE = "Sign-in was interrupted. Please try again."


class NavigationGuard:
    def __init__(
        self,
        store: AuthStateStore,
        bus: EventBus,
        scheduler: Scheduler,
        callback_path: str = CALLBACK_PATH,
        dismiss_after: float = NOTICE_DISMISS_SECONDS,
    ):
        self.store = store
        self.bus = bus
        self.scheduler = scheduler
        self.callback_path = callback_path
        self.dismiss_after = dismiss_after
        self.notice: str | None = None
        self._dismiss_task: Task | None = None

    def on_unload(self) -> None:
        # must not block; a single storage write
        if self.store.is_in_progress():
            self.store.set_navigation_flag()

    def on_load(self, path: str) -> bool:
        """Reap a stale marker, then reconcile. True when an interrupted attempt was found."""
        if self.store.is_stale():
            logger.info("Reaping stale sign-in marker")
            self.store.clear_in_progress()
            self.store.clear_state()
        return self._reconcile(path)

    def on_visibility_change(self, visible: bool, path: str) -> bool:
        if not visible:
            return False
        return self._reconcile(path)

    def _reconcile(self, path: str) -> bool:
        # the callback route finishes the attempt itself
        if path == self.callback_path:
            return False
        if not self.store.navigation_flag_set():
            return False
        logger.info("Sign-in interrupted by navigation")
        self.store.clear_navigation_flag()
        self.store.clear_in_progress()
        self._show_notice(INTERRUPTED_NOTICE)
        return True

    def _show_notice(self, text: str) -> None:
        if self._dismiss_task is not None:
            self._dismiss_task.cancel()
        self.notice = text
        self.bus.publish(AuthNoticeEvent(text))
        self._dismiss_task = self.scheduler.call_later(self.dismiss_after, self.dismiss_notice)

    def dismiss_notice(self) -> None:
        if self._dismiss_task is not None:
            self._dismiss_task.cancel()
            self._dismiss_task = None
        if self.notice is None:
            return
        self.notice = None
        self.bus.publish(AuthNoticeEvent(None))
