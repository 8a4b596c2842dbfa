"""Tests for the engagement-based sign-in prompt."""
import json

import pytest

from signin_client.engagement import ENGAGEMENT_KEY, EngagementTracker
from signin_client.events import AuthPromptEvent


@pytest.fixture
def signed_in():
    return {"value": False}


@pytest.fixture
def tracker(local_storage, bus, scheduler, analytics, signed_in):
    return EngagementTracker(local_storage, bus, scheduler, lambda: signed_in["value"], analytics)


def test_counts_views_and_time_within_session(tracker, scheduler, local_storage):
    tracker.record_page_view()
    scheduler.advance(20)
    data = tracker.record_page_view()
    assert data.pageViews == 2
    assert data.timeOnSite == 20
    assert json.loads(local_storage.get_item(ENGAGEMENT_KEY))["pageViews"] == 2


def test_time_not_added_across_sessions(tracker, scheduler):
    tracker.record_page_view()
    tracker.cancel()
    scheduler.advance(31 * 60)
    assert tracker.record_page_view().timeOnSite == 0


def test_third_page_view_prompts(tracker, published, analytics):
    tracker.record_page_view()
    tracker.record_page_view()
    assert published == []
    tracker.record_page_view()
    assert published == [AuthPromptEvent("page_views")]
    assert analytics.tracked == [("Auth Modal Shown", {"trigger": "page_views", "page_views": 3})]


def test_prompt_after_thirty_seconds(tracker, scheduler, published):
    tracker.record_page_view()
    scheduler.advance(29)
    assert published == []
    scheduler.advance(1)
    assert published == [AuthPromptEvent("time_based")]


def test_no_prompt_when_signed_in(tracker, scheduler, published, signed_in):
    signed_in["value"] = True
    for _ in range(4):
        tracker.record_page_view()
    scheduler.advance(60)
    assert published == []


def test_dismiss_suppresses_for_thirty_days(tracker, scheduler, published, analytics):
    for _ in range(3):
        tracker.record_page_view()
    tracker.dismiss()
    assert analytics.events()[-1] == "Auth Modal Dismissed"
    assert scheduler.pending == 0

    published.clear()
    tracker.record_page_view()
    scheduler.advance(60)
    assert published == []

    scheduler.advance(30 * 24 * 60 * 60)
    tracker.record_page_view()
    assert published == [AuthPromptEvent("page_views")]


def test_prompt_shown_once_per_page(tracker, scheduler, published):
    for _ in range(3):
        tracker.record_page_view()
    scheduler.advance(30)
    assert published == [AuthPromptEvent("page_views")]


def test_unreadable_record_starts_fresh(tracker, local_storage):
    local_storage.set_item(ENGAGEMENT_KEY, "[1, 2]")
    assert tracker.record_page_view().pageViews == 1


@pytest.mark.parametrize(
    "record",
    [
        {"pageViews": "3", "lastVisit": "yesterday"},
        {"pageViews": 2, "modalDismissed": "no"},
        {"pageViews": True},
        {"pageViews": 2, "timeOnSite": None},
    ],
)
def test_mistyped_record_starts_fresh(tracker, local_storage, scheduler, record):
    local_storage.set_item(ENGAGEMENT_KEY, json.dumps(record))
    data = tracker.record_page_view()
    assert data.pageViews == 1
    assert data.lastVisit == scheduler.now()
    assert json.loads(local_storage.get_item(ENGAGEMENT_KEY))["pageViews"] == 1
