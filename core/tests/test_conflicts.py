"""Tests for venue booking conflict detection."""

import itertools

import pytest

from core.conflicts import (
    Slot,
    find_all_conflicts,
    find_conflict,
    intervals_overlap,
    would_conflict,
)
from core.enums import DayOfWeek

MON = DayOfWeek.MONDAY


def slot(start, end, venue=1, day=MON, schedule_id=None):
    return Slot(venue, day, start, end, schedule_id)


class TestIntervalsOverlap:
    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ((540, 600), (540, 600), True),  # identical
            ((540, 600), (555, 585), True),  # b inside a
            ((555, 585), (540, 600), True),  # a inside b
            ((540, 600), (570, 630), True),  # partial, b starts inside a
            ((570, 630), (540, 600), True),  # partial, a starts inside b
            ((540, 600), (600, 660), False),  # adjacent after
            ((600, 660), (540, 600), False),  # adjacent before
            ((540, 600), (700, 760), False),  # disjoint
        ],
    )
    def test_cases(self, a, b, expected):
        assert intervals_overlap(*a, *b) is expected

    def test_symmetric_and_matches_formula(self):
        """Exhaustive check over a small grid of half-hour boundaries."""
        points = range(0, 300, 30)
        intervals = [(s, e) for s, e in itertools.combinations(points, 2)]
        for (s1, e1), (s2, e2) in itertools.product(intervals, repeat=2):
            result = intervals_overlap(s1, e1, s2, e2)
            assert result == intervals_overlap(s2, e2, s1, e1)
            assert result == (s1 < e2 and s2 < e1)


class TestWouldConflict:
    def test_empty_venue_day_is_free(self):
        assert would_conflict(slot(540, 600), []) is False

    def test_overlap_on_same_venue_and_day(self):
        existing = [slot(540, 600, schedule_id=1)]
        assert would_conflict(slot(570, 630), existing) is True

    def test_back_to_back_is_allowed(self):
        existing = [slot(540, 600, schedule_id=1)]
        assert would_conflict(slot(600, 660), existing) is False

    def test_other_venue_is_ignored(self):
        existing = [slot(540, 600, venue=2, schedule_id=1)]
        assert would_conflict(slot(540, 600, venue=1), existing) is False

    def test_other_day_is_ignored(self):
        existing = [slot(540, 600, day=DayOfWeek.TUESDAY, schedule_id=1)]
        assert would_conflict(slot(540, 600), existing) is False

    def test_excludes_own_record_on_update(self):
        existing = [slot(540, 600, schedule_id=7)]
        # Extending a slot into its own old time is not a clash
        assert would_conflict(slot(540, 630, schedule_id=7), existing, exclude_id=7) is False

    def test_exclusion_does_not_hide_others(self):
        existing = [slot(540, 600, schedule_id=7), slot(600, 660, schedule_id=8)]
        assert would_conflict(slot(540, 630), existing, exclude_id=7) is True

    def test_accepts_table_rows(self):
        rows = [
            {
                "schedule_id": 3,
                "venue_id": 1,
                "day_of_week": "MONDAY",
                "start_minute": 540,
                "end_minute": 600,
            }
        ]
        assert would_conflict(slot(550, 560), rows) is True


class TestFindConflict:
    def test_returns_first_clash(self):
        existing = [
            slot(480, 540, schedule_id=1),
            slot(570, 630, schedule_id=2),
            slot(600, 700, schedule_id=3),
        ]
        clash = find_conflict(slot(560, 620), existing)
        assert clash is not None
        assert clash.schedule_id == 2

    def test_returns_none_when_free(self):
        assert find_conflict(slot(540, 600), [slot(600, 660, schedule_id=1)]) is None


class TestFindAllConflicts:
    def test_clean_timetable(self):
        slots = [slot(480, 540), slot(540, 600), slot(600, 660)]
        assert find_all_conflicts(slots) == []

    def test_reports_each_pair_once(self):
        a, b, c = slot(480, 600, schedule_id=1), slot(540, 660, schedule_id=2), slot(700, 760, schedule_id=3)
        pairs = find_all_conflicts([a, b, c])
        assert pairs == [(a, b)]

    def test_ignores_pairs_in_different_venues(self):
        assert find_all_conflicts([slot(480, 600, venue=1), slot(480, 600, venue=2)]) == []


def test_accepting_only_non_conflicting_keeps_timetable_clean():
    """Greedy acceptance of candidates never leaves a clashing pair behind."""
    candidates = [
        slot(s, s + length, venue=v, day=d)
        for s in range(480, 1080, 45)
        for length in (30, 60, 90)
        for v in (1, 2)
        for d in (DayOfWeek.MONDAY, DayOfWeek.WEDNESDAY)
    ]
    accepted = []
    for candidate in candidates:
        if not would_conflict(candidate, accepted):
            accepted.append(candidate)

    assert accepted
    assert find_all_conflicts(accepted) == []
