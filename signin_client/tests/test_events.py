"""Tests for cross-window messages and the event bus."""
import json

from signin_client.errors import AuthError, AuthErrorKind
from signin_client.events import (
    AuthErrorEvent,
    AuthErrorMessage,
    AuthNoticeEvent,
    AuthSuccessEvent,
    AuthSuccessMessage,
    EventBus,
    origin_allowed,
    parse_message,
)
from signin_client.models import LinkedInUser


def test_success_payload():
    payload = AuthSuccessMessage(LinkedInUser(id="u1", name="Ana")).to_payload()
    assert payload == {"type": "LINKEDIN_AUTH_SUCCESS", "userData": {"id": "u1", "name": "Ana"}}
    assert parse_message(payload) == AuthSuccessMessage(LinkedInUser(id="u1", name="Ana"))


def test_error_payload_from_json_string():
    payload = AuthErrorMessage("security_state_mismatch", "state mismatch", security=True).to_payload()
    message = parse_message(json.dumps(payload))
    assert message == AuthErrorMessage("security_state_mismatch", "state mismatch", security=True)
    assert message.to_error().kind is AuthErrorKind.SECURITY_STATE_MISMATCH


def test_error_message_with_provider_code():
    message = parse_message({"type": "LINKEDIN_AUTH_ERROR", "error": "access_denied"})
    assert message.to_error().kind is AuthErrorKind.USER_CANCELLED


def test_unknown_shapes_are_none():
    assert parse_message(None) is None
    assert parse_message("{") is None
    assert parse_message([1, 2]) is None
    assert parse_message({"type": "OTHER"}) is None
    assert parse_message({"type": "LINKEDIN_AUTH_ERROR"}) is None
    assert parse_message({"type": "LINKEDIN_AUTH_SUCCESS", "userData": {"name": "Ana"}}) is None


def test_origin_allowed_is_exact():
    allowed = ["https://site.example"]
    assert origin_allowed("https://site.example", allowed)
    assert not origin_allowed("https://site.example.evil.com", allowed)
    assert not origin_allowed("http://site.example", allowed)
    assert not origin_allowed("https://site.example/", allowed)


def test_event_names():
    assert AuthErrorEvent.name == "auth-error"
    assert AuthSuccessEvent.name == "linkedin-auth-success"
    assert AuthNoticeEvent.name == "auth-notice"


def test_bus_delivers_by_type_and_unsubscribes():
    bus = EventBus()
    notices, errors = [], []
    unsubscribe = bus.subscribe(AuthNoticeEvent, notices.append)
    bus.subscribe(AuthErrorEvent, errors.append)

    bus.publish(AuthNoticeEvent("hello"))
    unsubscribe()
    unsubscribe()
    bus.publish(AuthNoticeEvent("again"))

    assert notices == [AuthNoticeEvent("hello")]
    assert errors == []


def test_failing_handler_does_not_stop_others():
    bus = EventBus()
    seen = []

    def broken(event):
        raise RuntimeError("toast crashed")

    bus.subscribe(AuthErrorEvent, broken)
    bus.subscribe(AuthErrorEvent, seen.append)
    event = AuthErrorEvent(AuthError(AuthErrorKind.NETWORK_ERROR))
    bus.publish(event)
    assert seen == [event]
