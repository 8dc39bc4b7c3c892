"""
Tests for AgendaTimeline - the per-worker view tying resolver, layout and
drag session together.
"""

from datetime import date

import pytest

from agenda.availability import AgendaTimeline, FetchTracker
from agenda.errors import FetchError
from tests.fixtures import MemoryStore, booking, personal_task

WINDOW_START = date(2024, 3, 1)


def _timeline(store) -> AgendaTimeline:
    # 1400px over 14 days -> 100px per day
    return AgendaTimeline(store, window_days=14, width_px=1400)


class TestFetchTracker:
    def test_only_latest_ticket_is_current(self):
        tracker = FetchTracker()
        first = tracker.start()
        second = tracker.start()
        assert not tracker.is_current(first)
        assert tracker.is_current(second)


class TestLoad:
    def test_load_lays_out_agenda(self):
        store = MemoryStore(
            personal_tasks=[personal_task("p1", "2024-03-03", "2024-03-05")],
            bookings=[booking("b1", "2024-03-04", "2024-03-06")],
        )
        timeline = _timeline(store)
        layout = timeline.load("w-1", WINDOW_START)

        assert layout.track_count == 2
        assert timeline.error is None
        assert timeline.loading is False
        assert [bar.id for bar in timeline.bars()] == ["p1", "b1"]

    def test_fetch_error_keeps_previous_layout(self):
        store = MemoryStore(personal_tasks=[personal_task("p1", "2024-03-03", "2024-03-05")])
        timeline = _timeline(store)
        good = timeline.load("w-1", WINDOW_START)

        store.fail_fetch = True
        assert timeline.load("w-1", date(2024, 3, 15)) is good
        assert timeline.window_start == WINDOW_START
        assert "unavailable" in timeline.error
        assert timeline.loading is False

    def test_malformed_row_is_skipped(self):
        store = MemoryStore(
            personal_tasks=[
                personal_task("ok", "2024-03-04", "2024-03-05"),
                personal_task("inverted", "2024-03-06", "2024-03-05"),
                personal_task("garbage", "soon", None, is_recurring=True, recurring_days=[1]),
            ]
        )
        timeline = _timeline(store)
        layout = timeline.load("w-1", WINDOW_START)

        assert layout is not None
        assert [bar.id for bar in timeline.bars()] == ["ok"]
        assert timeline.error is None
        assert timeline.loading is False

    def test_unexpected_error_clears_loading(self, monkeypatch):
        store = MemoryStore()
        timeline = _timeline(store)

        def explode(*args):
            raise RuntimeError("resolver bug")

        monkeypatch.setattr(timeline.resolver, "resolve", explode)
        with pytest.raises(RuntimeError):
            timeline.load("w-1", WINDOW_START)
        assert timeline.loading is False
        assert timeline.layout is None

    def test_stale_response_is_dropped(self):
        store = MemoryStore(
            personal_tasks=[
                personal_task("old", "2024-03-02", "2024-03-02"),
                personal_task("new", "2024-03-20", "2024-03-20"),
            ]
        )
        timeline = _timeline(store)
        original_fetch = store.fetch_personal_tasks
        raced = []

        def racing_fetch(user_id, start, end):
            rows = original_fetch(user_id, start, end)
            if not raced:
                # A newer navigation lands while this request is in flight.
                raced.append(True)
                timeline.load("w-1", date(2024, 3, 15))
            return rows

        store.fetch_personal_tasks = racing_fetch
        timeline.load("w-1", WINDOW_START)

        assert timeline.window_start == date(2024, 3, 15)
        assert [o.id for o in timeline.occurrences] == ["new"]

    def test_stale_failure_does_not_set_error(self):
        store = MemoryStore()
        timeline = _timeline(store)
        original_fetch = store.fetch_bookings
        raced = []

        def failing_then_racing(worker_id, start, end):
            if not raced:
                raced.append(True)
                timeline.load("w-1", date(2024, 3, 15))
                raise FetchError("timeout")
            return original_fetch(worker_id, start, end)

        store.fetch_bookings = failing_then_racing
        timeline.load("w-1", WINDOW_START)

        assert timeline.error is None
        assert timeline.window_start == date(2024, 3, 15)


class TestBars:
    def test_bar_fields(self):
        store = MemoryStore(
            personal_tasks=[personal_task("p1", "2024-03-03", "2024-03-05", can_support=True)],
            bookings=[booking("b1", "2024-03-10", "2024-03-11")],
        )
        timeline = _timeline(store)
        timeline.load("w-1", WINDOW_START)
        p1, b1 = timeline.bars()

        assert p1.editable and p1.can_support
        assert not b1.editable
        assert p1.left_pct == pytest.approx(200 / 14)
        assert p1.current_start == date(2024, 3, 3)
        assert not p1.is_dragging

    def test_live_preview_moves_bar(self):
        store = MemoryStore(personal_tasks=[personal_task("p1", "2024-03-03", "2024-03-05")])
        timeline = _timeline(store)
        timeline.load("w-1", WINDOW_START)

        assert timeline.begin_drag("p1", "move", 0)
        timeline.drag_to(200)
        (bar,) = timeline.bars()

        assert bar.is_dragging
        assert bar.current_start == date(2024, 3, 5)
        assert bar.left_pct == pytest.approx(400 / 14)


class TestGesturesAndDelete:
    def test_commit_updates_store_and_reloads(self):
        store = MemoryStore(personal_tasks=[personal_task("p1", "2024-03-03", "2024-03-05")])
        timeline = _timeline(store)
        timeline.load("w-1", WINDOW_START)

        timeline.begin_drag("p1", "resize-end", 0)
        timeline.drag_to(300)
        outcome = timeline.release()

        assert outcome.committed
        assert store.personal_tasks[0]["end_date"] == "2024-03-08"
        (bar,) = timeline.bars()
        assert bar.current_end == date(2024, 3, 8)
        assert store.call_names().count("fetch_personal_tasks") == 2

    def test_failed_commit_keeps_server_state(self):
        store = MemoryStore(personal_tasks=[personal_task("p1", "2024-03-03", "2024-03-05")])
        timeline = _timeline(store)
        timeline.load("w-1", WINDOW_START)
        store.fail_commit = True

        timeline.begin_drag("p1", "move", 0)
        timeline.drag_to(500)
        outcome = timeline.release()

        assert outcome.error
        (bar,) = timeline.bars()
        assert bar.current_start == date(2024, 3, 3)
        assert store.personal_tasks[0]["start_date"] == "2024-03-03"

    def test_bar_not_editable_while_commit_in_flight(self):
        store = MemoryStore(personal_tasks=[personal_task("p1", "2024-03-03", "2024-03-05")])
        timeline = _timeline(store)
        timeline.load("w-1", WINDOW_START)
        original_update = store.update_personal_task
        seen = {}

        def update_and_render(task_id, fields):
            (bar,) = timeline.bars()
            seen["editable"] = bar.editable
            seen["regrab"] = timeline.begin_drag("p1", "move", 0)
            return original_update(task_id, fields)

        store.update_personal_task = update_and_render
        timeline.begin_drag("p1", "move", 0)
        timeline.drag_to(100)
        assert timeline.release().committed

        assert seen == {"editable": False, "regrab": False}
        (bar,) = timeline.bars()
        assert bar.editable

    def test_cannot_drag_unknown_or_booking(self):
        store = MemoryStore(bookings=[booking("b1", "2024-03-03", "2024-03-05")])
        timeline = _timeline(store)
        timeline.load("w-1", WINDOW_START)
        assert timeline.begin_drag("missing", "move", 0) is False
        assert timeline.begin_drag("b1", "move", 0) is False

    def test_cancel_drag(self):
        store = MemoryStore(personal_tasks=[personal_task("p1", "2024-03-03", "2024-03-05")])
        timeline = _timeline(store)
        timeline.load("w-1", WINDOW_START)
        timeline.begin_drag("p1", "move", 0)
        timeline.drag_to(500)
        timeline.cancel_drag()

        assert timeline.release() is None
        assert "update_personal_task" not in store.call_names()

    def test_delete_personal_task(self):
        store = MemoryStore(personal_tasks=[personal_task("p1", "2024-03-03", "2024-03-05")])
        timeline = _timeline(store)
        timeline.load("w-1", WINDOW_START)

        assert timeline.delete("p1") is True
        assert timeline.bars() == []

    def test_delete_recurring_occurrence_removes_series(self):
        store = MemoryStore(
            personal_tasks=[personal_task("rt", "2024-01-01", "2024-12-31", is_recurring=True, recurring_days=[1])]
        )
        timeline = _timeline(store)
        timeline.load("w-1", WINDOW_START)

        assert timeline.delete("rt-2024-03-04") is True
        assert ("delete_personal_task", "rt") in store.calls

    def test_bookings_cannot_be_deleted_here(self):
        store = MemoryStore(bookings=[booking("b1", "2024-03-03", "2024-03-05")])
        timeline = _timeline(store)
        timeline.load("w-1", WINDOW_START)
        assert timeline.delete("b1") is False
        assert len(store.bookings) == 1

    def test_failed_delete_reports_error(self):
        store = MemoryStore(personal_tasks=[personal_task("p1", "2024-03-03", "2024-03-05")])
        timeline = _timeline(store)
        timeline.load("w-1", WINDOW_START)
        store.fail_commit = True

        assert timeline.delete("p1") is False
        assert "rejected" in timeline.error
        assert len(timeline.bars()) == 1
