"""Failure taxonomy shared by the services and the HTTP adapter."""

from __future__ import annotations

from datetime import datetime

from lawcal.domain.models import isoformat_utc


class CalendarError(Exception):
    """Base class for every failure the core reports to callers."""

    kind = "calendar_error"
    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def to_payload(self) -> dict:
        return {"ok": False, "error": self.detail, "kind": self.kind}


class ValidationError(CalendarError):
    """Missing or out-of-range input."""

    kind = "validation_error"

    def __init__(self, field: str, detail: str) -> None:
        super().__init__(detail)
        self.field = field

    def to_payload(self) -> dict:
        return {**super().to_payload(), "field": self.field}


class InvalidTimeInput(CalendarError):
    """Wall-clock or zone input that cannot be mapped to one UTC instant."""

    kind = "invalid_time_input"

    def __init__(self, reason: str, detail: str) -> None:
        super().__init__(detail)
        self.reason = reason

    def to_payload(self) -> dict:
        return {**super().to_payload(), "reason": self.reason}


class DuplicateLawyer(CalendarError):
    kind = "duplicate_lawyer"
    status_code = 409

    def __init__(self, email: str) -> None:
        super().__init__("lawyer already registered with that email")
        self.email = email


class SchedulingConflict(CalendarError):
    """The requested slot overlaps an appointment already on the calendar."""

    kind = "scheduling_conflict"
    status_code = 409

    def __init__(
        self,
        appointment_id: str,
        starts_at_utc: datetime,
        ends_at_utc: datetime,
    ) -> None:
        super().__init__("time slot overlaps an existing appointment")
        self.appointment_id = appointment_id
        self.starts_at_utc = starts_at_utc
        self.ends_at_utc = ends_at_utc

    def to_payload(self) -> dict:
        return {
            **super().to_payload(),
            "conflict": {
                "id": self.appointment_id,
                "startsAtUtc": isoformat_utc(self.starts_at_utc),
                "endsAtUtc": isoformat_utc(self.ends_at_utc),
            },
        }
