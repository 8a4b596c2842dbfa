"""Tests for the auth session facade."""
import json

import pytest

from signin_client.errors import AuthErrorKind
from signin_client.events import AuthErrorEvent, AuthRetryAttemptEvent, AuthSuccessEvent
from signin_client.initiator import OAuthInitiator
from signin_client.session import AuthSession, SessionSnapshot
from signin_client.storage import IN_PROGRESS_KEY, STATE_KEY, USER_KEY
from signin_client.strategy import Strategy

SUCCESS = {"type": "LINKEDIN_AUTH_SUCCESS", "userData": {"id": "u1", "name": "Ana", "email": "ana@example.com"}}


@pytest.fixture
def make_session(page, store, scheduler, bus, analytics):
    def build(client_id="cid", **kwargs):
        initiator = OAuthInitiator(page, store, scheduler, analytics, client_id=client_id)
        return AuthSession(store, initiator, bus, analytics, **kwargs)

    return build


@pytest.fixture
def session(make_session):
    return make_session()


def test_starts_loading_then_unauthenticated(session):
    assert session.snapshot == SessionSnapshot(False, None, True)
    assert session.load() == SessionSnapshot(False, None, False)


def test_load_restores_valid_user_and_identifies(session, local_storage, analytics):
    local_storage.set_item(USER_KEY, json.dumps({"id": "u1", "name": "Ana", "email": "ana@example.com"}))
    snapshot = session.load()
    assert snapshot.is_authenticated
    assert snapshot.user.id == "u1"
    assert analytics.distinct_id == "u1"
    assert analytics.people == [{"$name": "Ana", "linkedin_id": "u1", "$email": "ana@example.com"}]


def test_load_purges_incomplete_user(session, local_storage):
    local_storage.set_item(USER_KEY, json.dumps({"name": "Ana"}))
    assert not session.load().is_authenticated
    assert USER_KEY not in local_storage


def test_sign_in_reports_configuration_error(make_session, published, analytics):
    session = make_session(client_id="")
    assert session.sign_in("/") is None
    assert session.last_error.kind is AuthErrorKind.CONFIGURATION_MISSING
    assert isinstance(published[0], AuthErrorEvent)
    assert analytics.tracked[-1] == ("Authentication Error", {"error_type": "configuration_missing", "stage": "initiate"})


def test_success_message_from_popup(session, page, local_storage, session_storage, published):
    session.load()
    session.sign_in("/")
    assert session.receive_message("https://site.example", SUCCESS) is True

    assert session.snapshot.is_authenticated
    assert json.loads(local_storage.get_item(USER_KEY)) == SUCCESS["userData"]
    assert len(session_storage) == 0
    assert isinstance(published[-1], AuthSuccessEvent)
    assert session.initiator.popup is None


def test_message_as_json_string(session):
    assert session.receive_message("https://site.example", json.dumps(SUCCESS)) is True
    assert session.user.name == "Ana"


def test_message_from_other_origin_is_ignored(session, local_storage):
    assert session.receive_message("https://evil.example", SUCCESS) is False
    assert USER_KEY not in local_storage
    assert not session.snapshot.is_authenticated


def test_extra_allowed_origin(make_session):
    session = make_session(allowed_origins=("https://site.example", "https://www.site.example"))
    assert session.receive_message("https://www.site.example", SUCCESS) is True


def test_unrelated_messages_are_ignored(session):
    assert session.receive_message("https://site.example", {"type": "webpackOk"}) is False
    assert session.receive_message("https://site.example", "not json") is False
    invalid_user = {"type": "LINKEDIN_AUTH_SUCCESS", "userData": {"id": "u1"}}
    assert session.receive_message("https://site.example", invalid_user) is False


def test_error_message_surfaces_error_and_clears_markers(session, session_storage, published):
    session.sign_in("/")
    message = {"type": "LINKEDIN_AUTH_ERROR", "error": "user_cancelled", "errorDescription": "closed", "security": False}
    assert session.receive_message("https://site.example", message) is True
    assert session.last_error.kind is AuthErrorKind.USER_CANCELLED
    assert STATE_KEY not in session_storage
    assert IN_PROGRESS_KEY not in session_storage
    assert isinstance(published[-1], AuthErrorEvent)


def test_security_error_message_is_not_retryable(session):
    message = {"type": "LINKEDIN_AUTH_ERROR", "error": "security_state_mismatch", "security": True}
    session.receive_message("https://site.example", message)
    assert session.last_error.kind is AuthErrorKind.SECURITY_STATE_MISMATCH
    assert not session.last_error.retryable


NETWORK_ERROR = {"type": "LINKEDIN_AUTH_ERROR", "error": "network_error"}


def test_retry_after_failed_attempt_starts_again(session, page, published):
    session.sign_in("/")
    session.receive_message("https://site.example", NETWORK_ERROR)

    assert session.retry("/") is Strategy.POPUP
    assert len(page.opened) == 2
    retry_events = [e for e in published if isinstance(e, AuthRetryAttemptEvent)]
    assert retry_events == [AuthRetryAttemptEvent(1, AuthErrorKind.NETWORK_ERROR)]


def test_retry_does_not_override_live_attempt(session, page, store, published):
    session.sign_in("/")
    assert session.retry("/") is None
    assert len(page.opened) == 1
    assert store.is_in_progress()
    assert session.retry_attempts == 0
    assert not any(isinstance(e, AuthRetryAttemptEvent) for e in published)


def test_retry_clears_stale_attempt(session, page, scheduler):
    session.sign_in("/")
    scheduler.advance(301)
    assert session.retry("/") is Strategy.POPUP
    assert len(page.opened) == 2


def test_security_error_is_never_retried(session, page):
    session.sign_in("/")
    message = {"type": "LINKEDIN_AUTH_ERROR", "error": "security_state_mismatch", "security": True}
    session.receive_message("https://site.example", message)
    assert session.retry("/") is None
    assert len(page.opened) == 1
    assert session.retry_attempts == 0


def test_configuration_error_is_never_retried(make_session, published):
    session = make_session(client_id="")
    session.sign_in("/")
    assert session.retry("/") is None
    assert not any(isinstance(e, AuthRetryAttemptEvent) for e in published)


def test_retry_budget_is_limited(make_session, page, published):
    session = make_session(max_retries=2)
    session.sign_in("/")
    for _ in range(2):
        session.receive_message("https://site.example", NETWORK_ERROR)
        assert session.retry("/") is Strategy.POPUP
    session.receive_message("https://site.example", NETWORK_ERROR)
    published.clear()

    assert session.retry("/") is None
    assert len(page.opened) == 3
    assert session.retry_attempts == 2
    assert [type(e) for e in published] == [AuthErrorEvent]
    assert published[0].error.kind is AuthErrorKind.NETWORK_ERROR


def test_default_retry_budget_is_three(session):
    assert session.max_retries == 3


def test_successful_sign_in_resets_retry_budget(make_session):
    session = make_session(max_retries=1)
    session.sign_in("/")
    session.receive_message("https://site.example", NETWORK_ERROR)
    session.retry("/")
    session.receive_message("https://site.example", SUCCESS)
    assert session.retry_attempts == 0
    assert session.last_error is None


def test_sign_out_clears_everything(session, local_storage, session_storage, analytics):
    session.receive_message("https://site.example", SUCCESS)
    session.sign_in("/")
    session.sign_out()
    assert session.snapshot == SessionSnapshot(False, None, False)
    assert USER_KEY not in local_storage
    assert len(session_storage) == 0
    assert session.last_error is None
    assert analytics.events()[-1] == "User Signed Out"
