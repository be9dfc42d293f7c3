from __future__ import annotations

import pytest

from pymoose.state.lifecycle import LifecycleTracker


def test_begin_then_succeed_clears_busy_flag() -> None:
    tracker = LifecycleTracker()
    ticket = tracker.begin("fetch_tickets")

    assert tracker.is_busy("fetch_tickets")
    assert tracker.is_loading("fetch_tickets")
    assert tracker.succeed(ticket) is True
    assert not tracker.is_busy("fetch_tickets")


def test_loading_and_loading_more_are_mutually_exclusive() -> None:
    tracker = LifecycleTracker()
    more = tracker.begin("fetch_tickets", load_more=True)
    assert tracker.is_loading_more("fetch_tickets")
    assert not tracker.is_loading("fetch_tickets")

    fresh = tracker.begin("fetch_tickets")
    assert tracker.is_loading("fetch_tickets")
    assert not tracker.is_loading_more("fetch_tickets")

    tracker.succeed(fresh)
    tracker.succeed(more)
    assert not tracker.is_loading("fetch_tickets")
    assert not tracker.is_loading_more("fetch_tickets")


def test_fail_records_error_and_begin_of_same_kind_clears_it() -> None:
    tracker = LifecycleTracker()
    tracker.fail(tracker.begin("update_ticket"), "Ticket not found")

    assert tracker.error == "Ticket not found"
    assert tracker.error_for("update_ticket") == "Ticket not found"

    tracker.begin("delete_ticket")
    assert tracker.error == "Ticket not found"

    tracker.begin("update_ticket")
    assert tracker.error_for("update_ticket") is None


def test_error_reports_most_recent_failure() -> None:
    tracker = LifecycleTracker()
    tracker.fail(tracker.begin("a"), "first")
    tracker.fail(tracker.begin("b"), "second")
    assert tracker.error == "second"

    tracker.fail(tracker.begin("a"), "third")
    assert tracker.error == "third"

    tracker.clear_error("a")
    assert tracker.error == "second"
    tracker.clear_error()
    assert tracker.error is None


def test_older_ticket_is_reported_stale() -> None:
    tracker = LifecycleTracker()
    first = tracker.begin("fetch_ticket")
    second = tracker.begin("fetch_ticket")

    assert tracker.succeed(second) is True
    assert tracker.succeed(first) is False


def test_stale_failure_is_dropped_by_default() -> None:
    tracker = LifecycleTracker()
    first = tracker.begin("fetch_ticket")
    second = tracker.begin("fetch_ticket")
    tracker.succeed(second)

    assert tracker.fail(first, "timeout") is False
    assert tracker.error is None


def test_stale_failure_kept_when_requested() -> None:
    tracker = LifecycleTracker()
    first = tracker.begin("create_ticket")
    tracker.begin("create_ticket")

    tracker.fail(first, "plate rejected", drop_if_stale=False)
    assert tracker.error == "plate rejected"


def test_double_finish_raises() -> None:
    tracker = LifecycleTracker()
    ticket = tracker.begin("fetch_ticket")
    tracker.succeed(ticket)

    with pytest.raises(RuntimeError):
        tracker.fail(ticket, "late")


def test_reset_marks_in_flight_tickets_as_predating_it() -> None:
    tracker = LifecycleTracker()
    before = tracker.begin("fetch_tickets")
    tracker.reset()
    after = tracker.begin("fetch_tickets")

    assert tracker.predates_reset(before)
    assert not tracker.predates_reset(after)

    tracker.fail(before, "boom", drop_if_stale=False)
    assert tracker.error is None
