"""
Tests for the Conflict Detector.

Tests validate:
- Closed-interval overlap and its one-day-grace phrasing
- "Can support now" eligibility, including the recurring-task asymmetry
- Store-backed assignment conflict reports (overlap, personal block,
  overload warning, escalation)
"""

from datetime import date

import pytest

from agenda.availability import ConflictDetector, can_support_now, evaluate_eligibility, overlaps
from agenda.availability.conflicts import ranges_collide, ranges_overlap
from agenda.errors import FetchError, ValidationError
from agenda.intervals import interval_from_booking, interval_from_personal_task
from tests.fixtures import MemoryStore, booking, personal_task

D = date


# =============================================================================
# Overlap predicate
# =============================================================================


class TestOverlapPredicate:
    def test_same_single_day_overlaps(self):
        assert ranges_overlap(D(2024, 3, 5), D(2024, 3, 5), D(2024, 3, 5), D(2024, 3, 5))

    def test_adjacent_ranges_do_not_overlap(self):
        assert not ranges_overlap(D(2024, 3, 1), D(2024, 3, 5), D(2024, 3, 6), D(2024, 3, 10))

    def test_shared_endpoint_overlaps(self):
        assert ranges_overlap(D(2024, 3, 1), D(2024, 3, 5), D(2024, 3, 5), D(2024, 3, 10))

    @pytest.mark.parametrize(
        "a,b",
        [
            ((D(2024, 3, 1), D(2024, 3, 5)), (D(2024, 3, 6), D(2024, 3, 10))),
            ((D(2024, 3, 1), D(2024, 3, 5)), (D(2024, 3, 5), D(2024, 3, 10))),
            ((D(2024, 3, 1), D(2024, 3, 31)), (D(2024, 3, 10), D(2024, 3, 11))),
            ((D(2024, 3, 9), D(2024, 3, 9)), (D(2024, 3, 10), D(2024, 3, 10))),
        ],
    )
    def test_grace_phrasing_agrees(self, a, b):
        assert ranges_collide(*a, *b) == ranges_overlap(*a, *b)
        assert ranges_overlap(*a, *b) == ranges_overlap(*b, *a)

    def test_overlaps_on_intervals(self):
        a = interval_from_booking(booking("b1", "2024-03-01", "2024-03-05"))
        b = interval_from_personal_task(personal_task("p1", "2024-03-05", "2024-03-07"))
        assert overlaps(a, b)
        assert overlaps(b, a)


# =============================================================================
# Eligibility
# =============================================================================


class TestEligibility:
    @pytest.fixture
    def active_booking(self):
        return [interval_from_booking(booking("b1", "2024-03-01", "2024-03-10"))]

    def test_booked_window_is_ineligible(self, active_booking):
        assert can_support_now(active_booking, [], D(2024, 3, 5), D(2024, 3, 6)) is False

    def test_after_booking_is_eligible(self, active_booking):
        assert can_support_now(active_booking, [], D(2024, 3, 11), D(2024, 3, 15)) is True

    def test_inactive_booking_does_not_block(self):
        bookings = [interval_from_booking(booking("b1", "2024-03-01", "2024-03-10", is_active=False))]
        assert can_support_now(bookings, [], D(2024, 3, 5), D(2024, 3, 6)) is True

    def test_busy_personal_task_blocks(self):
        personal = [interval_from_personal_task(personal_task("p1", "2024-03-05", "2024-03-05"))]
        result = evaluate_eligibility([], personal, D(2024, 3, 1), D(2024, 3, 5), worker_id="w-1")
        assert result.can_support_now is False
        assert result.blocking_ids == ["p1"]
        assert result.worker_id == "w-1"

    def test_support_slot_never_blocks(self):
        personal = [interval_from_personal_task(personal_task("p1", "2024-03-01", "2024-03-31", can_support=True))]
        result = evaluate_eligibility([], personal, D(2024, 3, 5), D(2024, 3, 6))
        assert result.can_support_now is True
        assert result.has_explicit_support is True

    def test_recurring_personal_task_never_blocks(self):
        row = personal_task("p1", "2024-01-01", "2024-12-31", is_recurring=True, recurring_days=[1, 2, 3, 4, 5, 6, 7])
        result = evaluate_eligibility([], [interval_from_personal_task(row)], D(2024, 3, 4), D(2024, 3, 8))
        assert result.can_support_now is True
        assert result.blocking_ids == []

    def test_recurring_support_slot_counts_as_explicit_support(self):
        row = personal_task(
            "p1", "2024-01-01", "2024-01-31", is_recurring=True, recurring_days=[5], can_support=True
        )
        result = evaluate_eligibility([], [interval_from_personal_task(row)], D(2024, 3, 4), D(2024, 3, 8))
        assert result.has_explicit_support is True

    def test_inverted_query_rejected(self, active_booking):
        with pytest.raises(ValidationError):
            can_support_now(active_booking, [], D(2024, 3, 6), D(2024, 3, 5))

    def test_store_backed_eligibility(self):
        store = MemoryStore(
            personal_tasks=[personal_task("p1", "2024-03-20", "2024-03-21")],
            bookings=[booking("b1", "2024-03-01", "2024-03-10")],
        )
        detector = ConflictDetector(store)

        assert detector.eligibility("w-1", D(2024, 3, 5), D(2024, 3, 6)).can_support_now is False
        assert detector.eligibility("w-1", D(2024, 3, 11), D(2024, 3, 15)).can_support_now is True
        assert detector.eligibility("w-1", D(2024, 3, 15), D(2024, 3, 20)).blocking_ids == ["p1"]
        assert store.call_names() == ["fetch_support_profile"] * 3


# =============================================================================
# Assignment conflict report
# =============================================================================


class TestCheckAssignment:
    def test_clean_worker(self, store):
        report = ConflictDetector(store).check_assignment("w-1", D(2024, 3, 1), D(2024, 3, 5))
        assert not report.has_conflicts
        assert report.warnings == []
        assert report.needs_escalation is False
        assert report.active_task_count == 0

    def test_date_overlap_reported(self):
        store = MemoryStore(bookings=[booking("b1", "2024-03-01", "2024-03-10", title="Install")])
        report = ConflictDetector(store).check_assignment("w-1", D(2024, 3, 10), D(2024, 3, 12))

        (conflict,) = report.conflicts
        assert conflict.type == "date_overlap"
        assert conflict.interval_id == "b1"
        assert conflict.title == "Install"
        assert "2024-03-01 - 2024-03-10" in conflict.message
        assert report.needs_escalation is False

    def test_malformed_booking_row_is_skipped(self):
        store = MemoryStore(
            bookings=[
                booking("b-bad", "2024-03-08", "2024-03-02"),
                booking("b1", "2024-03-01", "2024-03-10"),
            ]
        )
        report = ConflictDetector(store).check_assignment("w-1", D(2024, 3, 3), D(2024, 3, 4))
        assert [c.interval_id for c in report.conflicts] == ["b1"]
        assert report.active_task_count == 1

    def test_adjacent_booking_is_not_a_conflict(self):
        store = MemoryStore(bookings=[booking("b1", "2024-03-01", "2024-03-10")])
        report = ConflictDetector(store).check_assignment("w-1", D(2024, 3, 11), D(2024, 3, 12))
        assert not report.has_conflicts
        assert report.active_task_count == 1

    def test_excluded_task_is_ignored(self):
        store = MemoryStore(bookings=[booking("b1", "2024-03-01", "2024-03-10", task_id="t-1")])
        report = ConflictDetector(store).check_assignment(
            "w-1", D(2024, 3, 1), D(2024, 3, 2), exclude_task_id="t-1"
        )
        assert not report.has_conflicts

    def test_personal_block(self):
        store = MemoryStore(
            personal_tasks=[
                personal_task("p1", "2024-03-02", "2024-03-03", title="Leave"),
                personal_task("p2", "2024-03-02", "2024-03-03", can_support=True),
                personal_task("p3", "2024-01-01", "2024-12-31", is_recurring=True, recurring_days=[6]),
            ]
        )
        report = ConflictDetector(store).check_assignment("w-1", D(2024, 3, 1), D(2024, 3, 5))
        assert [(c.type, c.interval_id) for c in report.conflicts] == [("personal_block", "p1")]

    def test_high_priority_overlap_escalates(self):
        store = MemoryStore(bookings=[booking("b1", "2024-03-01", "2024-03-10", priority=2)])
        report = ConflictDetector(store).check_assignment("w-1", D(2024, 3, 5), D(2024, 3, 6))
        assert report.needs_escalation is True

    def test_overload_warning_and_escalation(self):
        rows = [booking(f"b{i}", "2024-01-01", "2024-01-02") for i in range(5)]
        store = MemoryStore(bookings=rows)

        report = ConflictDetector(store).check_assignment("w-1", D(2024, 3, 1), D(2024, 3, 5))

        assert report.active_task_count == 5
        assert report.warnings == ["Worker already has 5 active bookings"]
        assert [c.type for c in report.conflicts] == ["overload"]
        assert report.needs_escalation is True

    def test_warning_only_below_escalation(self):
        store = MemoryStore(bookings=[booking(f"b{i}", "2024-01-01", "2024-01-02") for i in range(3)])
        report = ConflictDetector(store).check_assignment("w-1", D(2024, 3, 1), D(2024, 3, 5))
        assert len(report.warnings) == 1
        assert not report.has_conflicts
        assert report.needs_escalation is False

    def test_thresholds_overridable(self):
        store = MemoryStore(bookings=[booking("b1", "2024-01-01", "2024-01-02")])
        detector = ConflictDetector(store, overload_warning=1, escalation_threshold=1)
        report = detector.check_assignment("w-1", D(2024, 3, 1), D(2024, 3, 5))
        assert report.warnings
        assert report.needs_escalation is True

    def test_inverted_range_rejected_before_fetch(self, store):
        with pytest.raises(ValidationError):
            ConflictDetector(store).check_assignment("w-1", D(2024, 3, 5), D(2024, 3, 1))
        assert store.calls == []

    def test_fetch_error_propagates(self, store):
        store.fail_fetch = True
        with pytest.raises(FetchError):
            ConflictDetector(store).check_assignment("w-1", D(2024, 3, 1), D(2024, 3, 5))
