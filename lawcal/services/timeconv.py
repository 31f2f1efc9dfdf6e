"""Conversion of zone-qualified wall-clock input into UTC instant ranges."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict

from lawcal.domain.errors import InvalidTimeInput

_LOCAL_FORMAT = "%Y-%m-%dT%H:%M"
_LOCAL_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}$")


class UtcRange(BaseModel):
    """A booking slot resolved to UTC, with the offset in force at its start."""

    model_config = ConfigDict(frozen=True)

    start_utc: datetime
    end_utc: datetime
    offset_minutes: int
    starts_at_local: datetime
    ends_at_local: datetime


def load_zone(iana_zone: str) -> ZoneInfo:
    """Return the ZoneInfo for *iana_zone* or raise InvalidTimeInput."""
    name = (iana_zone or "").strip()
    if not name:
        raise InvalidTimeInput("unknown_time_zone", "scheduledTimeZone is required")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        raise InvalidTimeInput(
            "unknown_time_zone", f"unknown time zone: {name}"
        ) from None


def parse_local(starts_at_local: str) -> datetime:
    """Parse a minute-precision ``YYYY-MM-DDTHH:mm`` wall-clock value."""
    text = (starts_at_local or "").strip()
    if not _LOCAL_PATTERN.match(text):
        raise InvalidTimeInput(
            "unparseable_local_time",
            f"startsAtLocal must look like YYYY-MM-DDTHH:mm, got {text!r}",
        )
    try:
        return datetime.strptime(text, _LOCAL_FORMAT)
    except ValueError:
        raise InvalidTimeInput(
            "unparseable_local_time", f"startsAtLocal is not a valid date/time: {text!r}"
        ) from None


def _offset_minutes(value: datetime) -> int:
    return round(value.utcoffset().total_seconds() / 60)


def localize_strict(naive: datetime, zone: ZoneInfo) -> datetime:
    """Attach *zone* to *naive*, refusing wall-clock values in a DST gap or fold.

    Both fold candidates are evaluated; when they disagree on the offset the
    value is either skipped by the transition (it does not survive a round
    trip through UTC) or repeated by it.
    """
    earlier = naive.replace(tzinfo=zone, fold=0)
    later = naive.replace(tzinfo=zone, fold=1)
    if earlier.utcoffset() == later.utcoffset():
        return earlier

    round_trip = earlier.astimezone(timezone.utc).astimezone(zone).replace(tzinfo=None)
    if round_trip != naive:
        raise InvalidTimeInput(
            "nonexistent_local_time",
            f"{naive:%Y-%m-%dT%H:%M} does not exist in {zone.key} (DST gap)",
        )
    raise InvalidTimeInput(
        "ambiguous_local_time",
        f"{naive:%Y-%m-%dT%H:%M} is ambiguous in {zone.key} (DST fold)",
    )


def resolve_local_range(
    starts_at_local: str,
    iana_zone: str,
    duration_minutes: int,
) -> UtcRange:
    """Resolve a local start and duration to a UTC range.

    The offset is the one in force at the local start instant. The end is a
    plain UTC add of *duration_minutes*, so a slot crossing a DST transition
    keeps its length in elapsed time.
    """
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")

    zone = load_zone(iana_zone)
    naive = parse_local(starts_at_local)

    # Values near year 1 or 9999 leave the datetime range once shifted
    try:
        local_start = localize_strict(naive, zone)
        start_utc = local_start.astimezone(timezone.utc)
        end_utc = start_utc + timedelta(minutes=duration_minutes)
        ends_at_local = end_utc.astimezone(zone).replace(tzinfo=None)
    except OverflowError:
        raise InvalidTimeInput(
            "out_of_range_local_time",
            f"{naive:%Y-%m-%dT%H:%M} in {zone.key} is outside the supported date range",
        ) from None

    return UtcRange(
        start_utc=start_utc,
        end_utc=end_utc,
        offset_minutes=_offset_minutes(local_start),
        starts_at_local=naive,
        ends_at_local=ends_at_local,
    )
