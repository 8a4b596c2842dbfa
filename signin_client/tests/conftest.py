"""
Pytest configuration for signin_client: in-memory browser fakes, virtual time, recording analytics.
"""
import os

os.environ["LINKEDIN_CLIENT_ID"] = "test-client-id"
os.environ["MIXPANEL_TOKEN"] = ""
os.environ.pop("SIGNIN_API_BASE_URL", None)

import pytest  # noqa: E402

from signin_client.analytics import Analytics  # noqa: E402
from signin_client.browser import NavigationRefused  # noqa: E402
from signin_client.events import (  # noqa: E402
    AuthErrorEvent,
    AuthNoticeEvent,
    AuthPromptEvent,
    AuthRetryAttemptEvent,
    AuthSuccessEvent,
    EventBus,
)
from signin_client.scheduler import ManualScheduler  # noqa: E402
from signin_client.storage import AuthStateStore, MemoryStore  # noqa: E402
from signin_client.strategy import Environment  # noqa: E402

ORIGIN = "https://site.example"
START_TIME = 1_700_000_000.0
DESKTOP = Environment(1280, 800, "Mozilla/5.0 (X11; Linux x86_64) Firefox/128.0")
PHONE = Environment(390, 844, "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)")


class FakeWindow:
    """A popup or opener window."""

    def __init__(self):
        self.closed = False
        self.messages = []

    def post_message(self, message, target_origin):
        self.messages.append((message, target_origin))

    def close(self):
        self.closed = True


class FakePage:
    def __init__(self, path="/", query="", opener=None, env=DESKTOP):
        self.origin = ORIGIN
        self.path = path
        self.query = query
        self.opener = opener
        self.env = env
        self.refuse_popup = False
        self.refuse_navigation = False
        self.opened = []
        self.navigations = []
        self.reloads = 0
        self.closed = False

    def environment(self):
        return self.env

    def open_window(self, url, name, features):
        if self.refuse_popup:
            return None
        popup = FakeWindow()
        self.opened.append((url, name, features, popup))
        return popup

    def navigate(self, url):
        if self.refuse_navigation:
            raise NavigationRefused("navigation blocked")
        self.navigations.append(url)

    def reload(self):
        self.reloads += 1

    def close(self):
        self.closed = True


class RecordingAnalytics(Analytics):
    """Analytics that records calls instead of sending them."""

    def __init__(self):
        super().__init__(token="", enabled=False)
        self.tracked = []
        self.people = []

    def track(self, event, properties=None):
        self.tracked.append((event, dict(properties or {})))
        return True

    def set_user_properties(self, properties):
        self.people.append(dict(properties))
        return True

    def events(self):
        return [name for name, _ in self.tracked]


class FakeApi:
    """SignInApiClient stand-in: token and profile answers (or exceptions) set per test."""

    def __init__(self, token="tok1", profile=None):
        self.token = token
        self.profile = profile if profile is not None else {"id": "u1", "name": "Ana"}
        self.calls = []

    def exchange_code(self, code):
        self.calls.append(("exchange_code", code))
        if isinstance(self.token, Exception):
            raise self.token
        return self.token

    def fetch_profile(self, access_token):
        self.calls.append(("fetch_profile", access_token))
        if isinstance(self.profile, Exception):
            raise self.profile
        return self.profile


@pytest.fixture
def scheduler():
    return ManualScheduler(start=START_TIME)


@pytest.fixture
def local_storage():
    return MemoryStore()


@pytest.fixture
def session_storage():
    return MemoryStore()


@pytest.fixture
def store(local_storage, session_storage, scheduler):
    return AuthStateStore(local_storage, session_storage, clock=scheduler.now)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def published(bus):
    """Every application event published on the bus, in order."""
    seen = []
    for event_type in (AuthErrorEvent, AuthRetryAttemptEvent, AuthSuccessEvent, AuthNoticeEvent, AuthPromptEvent):
        bus.subscribe(event_type, seen.append)
    return seen


@pytest.fixture
def page():
    return FakePage()


@pytest.fixture
def analytics():
    return RecordingAnalytics()


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def make_page():
    return FakePage


@pytest.fixture
def make_window():
    return FakeWindow


@pytest.fixture
def make_api():
    return FakeApi
