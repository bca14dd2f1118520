"""
Venue booking conflict detection.

Two slots clash only when they share a venue and a day and their half-open
intervals intersect:
    [s1, e1) and [s2, e2) overlap  <=>  s1 < e2 AND s2 < e1

Adjacent slots (e1 == s2) do not clash. Everything here is pure and works on
plain values, so it can be exercised without a database.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from .enums import DayOfWeek


@dataclass(frozen=True)
class Slot:
    """A recurring weekly booking of a venue."""

    venue_id: int
    day_of_week: DayOfWeek
    start_minute: int
    end_minute: int
    schedule_id: int | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Slot":
        """Build a Slot from a schedules table row (dict or RowMapping)."""
        return cls(
            venue_id=row["venue_id"],
            day_of_week=DayOfWeek(row["day_of_week"]),
            start_minute=row["start_minute"],
            end_minute=row["end_minute"],
            schedule_id=row.get("schedule_id"),
        )


def intervals_overlap(s1: int, e1: int, s2: int, e2: int) -> bool:
    """Half-open interval intersection test."""
    return s1 < e2 and s2 < e1


def _as_slot(slot: Slot | Mapping[str, Any]) -> Slot:
    return slot if isinstance(slot, Slot) else Slot.from_row(slot)


def find_conflict(
    candidate: Slot,
    existing: Iterable[Slot | Mapping[str, Any]],
    exclude_id: int | None = None,
) -> Slot | None:
    """
    Return the first existing slot that clashes with the candidate, if any.

    Args:
        candidate: The slot about to be written
        existing: Slots already booked for the candidate's venue and day
        exclude_id: schedule_id to ignore (the slot's own prior record on update)

    Returns:
        The first clashing Slot, or None when the candidate may be written
    """
    for other in existing:
        other = _as_slot(other)
        if exclude_id is not None and other.schedule_id == exclude_id:
            continue
        # Day and venue are exact-match scopes, not ranges
        if other.venue_id != candidate.venue_id:
            continue
        if other.day_of_week != candidate.day_of_week:
            continue
        if intervals_overlap(
            candidate.start_minute,
            candidate.end_minute,
            other.start_minute,
            other.end_minute,
        ):
            return other
    return None


def would_conflict(
    candidate: Slot,
    existing: Iterable[Slot | Mapping[str, Any]],
    exclude_id: int | None = None,
) -> bool:
    """True if the candidate overlaps any existing slot for the same venue and day."""
    return find_conflict(candidate, existing, exclude_id=exclude_id) is not None


def find_all_conflicts(
    slots: Iterable[Slot | Mapping[str, Any]],
) -> list[tuple[Slot, Slot]]:
    """
    Find every clashing pair in a slot set, each pair once (i < j).

    Used to check the no-overlap invariant over a whole venue timetable.
    """
    parsed = [_as_slot(s) for s in slots]
    pairs: list[tuple[Slot, Slot]] = []
    for i in range(len(parsed)):
        for j in range(i + 1, len(parsed)):
            a, b = parsed[i], parsed[j]
            if a.venue_id != b.venue_id or a.day_of_week != b.day_of_week:
                continue
            if intervals_overlap(a.start_minute, a.end_minute, b.start_minute, b.end_minute):
                pairs.append((a, b))
    return pairs
