"""
Engagement-based sign-in prompt.

A persistent `user_engagement` record counts page views and time on site. Unauthenticated visitors
are invited to sign in from the third page view, or after 30 seconds on a page, unless they
dismissed the invitation within the last 30 days.
"""
import json
import logging
import math
from dataclasses import asdict, dataclass, fields
from typing import Callable

from signin_client.analytics import AUTH_MODAL_DISMISSED, AUTH_MODAL_SHOWN, Analytics
from signin_client.events import AuthPromptEvent, EventBus
from signin_client.scheduler import Scheduler, Task
from signin_client.storage import KeyValueStore

logger = logging.getLogger(__name__)

ENGAGEMENT_KEY = "user_engagement"
SESSION_WINDOW_SECONDS = 30 * 60
PROMPT_PAGE_VIEWS = 3
PROMPT_DELAY_SECONDS = 30.0
DISMISS_SUPPRESS_SECONDS = 30 * 24 * 60 * 60

TRIGGER_PAGE_VIEWS = "page_views"
TRIGGER_TIME_BASED = "time_based"


@dataclass
class EngagementData:
    pageViews: int = 0
    timeOnSite: float = 0.0
    lastVisit: float = 0.0
    modalDismissed: bool = False
    lastDismissTime: float = 0.0


def _well_formed(data: EngagementData) -> bool:
    """Flags are real booleans; counters and times are finite numbers."""
    for f in fields(data):
        value = getattr(data, f.name)
        if f.type is bool:
            if not isinstance(value, bool):
                return False
        elif isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            return False
    return True


class EngagementTracker:
    def __init__(
        self,
        storage: KeyValueStore,
        bus: EventBus,
        scheduler: Scheduler,
        is_authenticated: Callable[[], bool],
        analytics: Analytics | None = None,
    ):
        self.storage = storage
        self.bus = bus
        self.scheduler = scheduler
        self.is_authenticated = is_authenticated
        self.analytics = analytics
        self.prompt_visible = False
        self._timer: Task | None = None

    def load(self) -> EngagementData:
        raw = self.storage.get_item(ENGAGEMENT_KEY)
        if raw is None:
            return EngagementData(lastVisit=self.scheduler.now())
        try:
            saved = json.loads(raw)
            known = EngagementData.__dataclass_fields__
            data = EngagementData(**{k: v for k, v in saved.items() if k in known})
        except (ValueError, TypeError, AttributeError):
            data = None
        if data is None or not _well_formed(data):
            logger.debug("Discarding unreadable engagement record")
            return EngagementData(lastVisit=self.scheduler.now())
        return data

    def _save(self, data: EngagementData) -> None:
        self.storage.set_item(ENGAGEMENT_KEY, json.dumps(asdict(data)))

    def record_page_view(self) -> EngagementData:
        """Count a page view (time on site accrues within one 30-minute session) and re-arm the timer."""
        data = self.load()
        now = self.scheduler.now()
        elapsed = now - data.lastVisit
        if 0 <= elapsed < SESSION_WINDOW_SECONDS:
            data.timeOnSite += elapsed
        data.pageViews += 1
        data.lastVisit = now
        self._save(data)

        if data.pageViews >= PROMPT_PAGE_VIEWS and self.should_prompt():
            self.show(TRIGGER_PAGE_VIEWS, {"page_views": data.pageViews})
        self._arm_timer()
        return data

    def should_prompt(self) -> bool:
        if self.is_authenticated():
            return False
        data = self.load()
        if data.modalDismissed and self.scheduler.now() - data.lastDismissTime < DISMISS_SUPPRESS_SECONDS:
            return False
        return True

    def show(self, trigger: str, properties: dict | None = None) -> None:
        if self.prompt_visible:
            return
        self.prompt_visible = True
        self.bus.publish(AuthPromptEvent(trigger))
        if self.analytics is not None:
            self.analytics.track(AUTH_MODAL_SHOWN, {"trigger": trigger, **(properties or {})})

    def dismiss(self) -> None:
        self.prompt_visible = False
        self.cancel()
        data = self.load()
        data.modalDismissed = True
        data.lastDismissTime = self.scheduler.now()
        self._save(data)
        if self.analytics is not None:
            self.analytics.track(AUTH_MODAL_DISMISSED, {"page_views": data.pageViews, "time_on_site": data.timeOnSite})

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _arm_timer(self) -> None:
        self.cancel()
        if self.is_authenticated():
            return
        self._timer = self.scheduler.call_later(PROMPT_DELAY_SECONDS, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        if self.should_prompt():
            self.show(TRIGGER_TIME_BASED, {"time_on_site": self.load().timeOnSite})
