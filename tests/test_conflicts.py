"""Tests for the half-open overlap predicate and conflict lookups."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from lawcal.services.conflicts import (
    Interval,
    SortedIntervals,
    find_conflict,
    find_conflicts,
    overlaps,
)

_T0 = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


def _iv(start_min: int, end_min: int) -> Interval:
    return Interval(start=_T0 + timedelta(minutes=start_min), end=_T0 + timedelta(minutes=end_min))


def _appointment(ident: str, start_min: int, end_min: int) -> SimpleNamespace:
    """Stand-in for a stored row: naive UTC columns."""
    return SimpleNamespace(
        id=ident,
        starts_at_utc=(_T0 + timedelta(minutes=start_min)).replace(tzinfo=None),
        ends_at_utc=(_T0 + timedelta(minutes=end_min)).replace(tzinfo=None),
    )


def test_no_overlap():
    """Disjoint ranges don't conflict."""
    assert not overlaps(_iv(0, 60), _iv(120, 180))


def test_partial_overlap():
    assert overlaps(_iv(0, 90), _iv(60, 120))


def test_containment_overlaps():
    assert overlaps(_iv(0, 120), _iv(30, 45))
    assert overlaps(_iv(30, 45), _iv(0, 120))


@pytest.mark.parametrize("duration", [15, 30, 45, 60, 90, 120])
def test_shift_by_own_duration_touches_without_overlap(duration):
    """[s, e) and [e, e + d) share no instant (boundary touch)."""
    first = _iv(0, duration)
    second = _iv(duration, 2 * duration)
    assert not overlaps(first, second)
    assert not overlaps(second, first)


@pytest.mark.parametrize(
    "a, b",
    [
        ((0, 30), (29, 60)),
        ((0, 30), (0, 30)),
        ((10, 20), (0, 30)),
        ((0, 30), (-15, 1)),
    ],
)
def test_shared_instant_overlaps_symmetrically(a, b):
    assert overlaps(_iv(*a), _iv(*b))
    assert overlaps(_iv(*b), _iv(*a))


def test_empty_interval_rejected():
    with pytest.raises(ValueError):
        _iv(30, 30)


def test_stored_rows_compare_against_aware_interval():
    """Naive UTC columns are treated as UTC."""
    assert overlaps(_iv(0, 30), _appointment("a", 15, 45))
    assert not overlaps(_iv(0, 30), _appointment("a", 30, 60))


def test_find_conflict_returns_first_match():
    existing = [_appointment("a", 0, 30), _appointment("b", 30, 60), _appointment("c", 45, 90)]
    conflict = find_conflict(_iv(40, 50), existing)
    assert conflict.id == "b"


def test_find_conflict_none_when_only_touching():
    existing = [_appointment("a", 0, 30), _appointment("b", 60, 90)]
    assert find_conflict(_iv(30, 60), existing) is None


def test_find_conflicts_returns_all():
    existing = [_appointment("a", 0, 30), _appointment("b", 30, 60), _appointment("c", 45, 90)]
    assert [c.id for c in find_conflicts(_iv(40, 50), existing)] == ["b", "c"]


def test_sorted_index_matches_linear_scan():
    existing = [
        _appointment("long", 0, 300),
        _appointment("a", 30, 45),
        _appointment("b", 60, 90),
        _appointment("c", 400, 430),
        _appointment("d", 430, 460),
    ]
    index = SortedIntervals(sorted(existing, key=lambda a: a.starts_at_utc))
    linear = sorted(existing, key=lambda a: a.starts_at_utc)
    for start in range(-60, 500, 15):
        candidate = _iv(start, start + 30)
        expected = find_conflict(candidate, linear)
        assert index.find_conflict(candidate) is expected


def test_sorted_index_add_keeps_order():
    index = SortedIntervals()
    assert index.find_conflict(_iv(0, 30)) is None
    index.add(_appointment("late", 120, 150))
    index.add(_appointment("early", 0, 30))
    assert len(index) == 2
    assert index.find_conflict(_iv(15, 135)).id == "early"
    assert index.find_conflict(_iv(30, 120)) is None
