"""Half-open interval overlap detection for calendar slots."""

from __future__ import annotations

from bisect import bisect_left, bisect_right, insort
from datetime import datetime
from typing import Any, Iterable, Sequence

from pydantic import BaseModel, ConfigDict, model_validator

from lawcal.domain.models import as_utc


class Interval(BaseModel):
    """A ``[start, end)`` range of UTC instants."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _end_after_start(self) -> Interval:
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


def _bounds(item: Any) -> tuple[datetime, datetime]:
    """Return the UTC (start, end) of an Interval or a stored appointment."""
    if isinstance(item, Interval):
        return as_utc(item.start), as_utc(item.end)
    return as_utc(item.starts_at_utc), as_utc(item.ends_at_utc)


def overlaps(a: Any, b: Any) -> bool:
    """True when the half-open ranges share at least one instant.

    Exact boundary touches (a.end == b.start) are NOT considered conflicts.
    """
    a_start, a_end = _bounds(a)
    b_start, b_end = _bounds(b)
    return a_start < b_end and a_end > b_start


def find_conflict(candidate: Any, existing: Iterable[Any]) -> Any | None:
    """Return the first entry of *existing* overlapping *candidate*, if any."""
    for item in existing:
        if overlaps(candidate, item):
            return item
    return None


def find_conflicts(candidate: Any, existing: Iterable[Any]) -> list[Any]:
    """Return every entry of *existing* overlapping *candidate*."""
    return [item for item in existing if overlaps(candidate, item)]


class SortedIntervals:
    """Start-ordered index answering conflict lookups in O(log n).

    Alongside the start keys it keeps the running maximum of end instants.
    Entries starting before ``candidate.end`` form a prefix; the first prefix
    position whose running maximum passes ``candidate.start`` is the
    earliest-starting conflict.
    """

    def __init__(self, items: Sequence[Any] = ()) -> None:
        self._entries: list[tuple[datetime, datetime, int, Any]] = []
        self._seq = 0
        for item in items:
            self._insert(item)
        self._rebuild()

    def __len__(self) -> int:
        return len(self._entries)

    def _insert(self, item: Any) -> None:
        start, end = _bounds(item)
        insort(self._entries, (start, end, self._seq, item), key=lambda e: (e[0], e[2]))
        self._seq += 1

    def _rebuild(self) -> None:
        self._starts = [entry[0] for entry in self._entries]
        self._max_ends: list[datetime] = []
        for _, end, _, _ in self._entries:
            if self._max_ends and self._max_ends[-1] >= end:
                self._max_ends.append(self._max_ends[-1])
            else:
                self._max_ends.append(end)

    def add(self, item: Any) -> None:
        self._insert(item)
        self._rebuild()

    def find_conflict(self, candidate: Any) -> Any | None:
        start, end = _bounds(candidate)
        prefix = bisect_left(self._starts, end)
        position = bisect_right(self._max_ends, start, 0, prefix)
        if position < prefix:
            return self._entries[position][3]
        return None
