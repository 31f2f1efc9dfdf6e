"""Domain enums and request/response models for the calendar service."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from lawcal.config import DEMO_LAWYER_EMAIL

DURATION_CHOICES = (15, 30, 45, 60, 90, 120)
DURATION_DETAIL = "durationMinutes must be one of: " + ", ".join(str(d) for d in DURATION_CHOICES)


class AppointmentMode(StrEnum):
    IN_PERSON = "IN_PERSON"
    VIDEO_CALL = "VIDEO_CALL"
    PHONE_CALL = "PHONE_CALL"


class ParticipantRole(StrEnum):
    ORGANIZER = "ORGANIZER"


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime read back from the store."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat_utc(value: datetime) -> str:
    """Render an instant as ``2024-03-10T04:30:00.000Z``."""
    return as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Request DTOs
# ---------------------------------------------------------------------------


class _RequestModel(_CamelModel):
    @field_validator("*", mode="before")
    @classmethod
    def _null_is_missing(cls, value, info: ValidationInfo):
        # JSON null falls back to the field default
        if value is None:
            return cls.model_fields[info.field_name].default
        return value


class RegisterLawyerRequest(_RequestModel):
    email: str = ""
    full_name: str = ""


class AppointmentRequest(_RequestModel):
    subject: str = ""
    mode: AppointmentMode = AppointmentMode.VIDEO_CALL
    starts_at_local: str = ""  # "YYYY-MM-DDTHH:mm"
    duration_minutes: int = 30
    scheduled_time_zone: str = "UTC"
    lawyer_email: str = DEMO_LAWYER_EMAIL


# ---------------------------------------------------------------------------
# Response DTOs
# ---------------------------------------------------------------------------


class CalendarRef(_CamelModel):
    id: str
    name: str


class LawyerRef(_CamelModel):
    id: str
    email: str
    full_name: str


class LawyerRow(LawyerRef):
    personal_calendar: CalendarRef | None = None


class LawyerList(_CamelModel):
    items: list[LawyerRow] = Field(default_factory=list)


class RegisterLawyerResponse(_CamelModel):
    ok: bool = True
    lawyer: LawyerRef
    calendar: CalendarRef


class BootstrapIds(_CamelModel):
    time_zone_id: str
    country_id: str
    office_id: str
    lawyer_id: str
    calendar_id: str


class BootstrapResponse(_CamelModel):
    ok: bool = True
    ids: BootstrapIds


class AppointmentView(_CamelModel):
    id: str
    subject: str
    mode: AppointmentMode
    starts_at_utc: datetime
    ends_at_utc: datetime
    scheduled_time_zone: str
    scheduled_offset_minutes: int

    @field_serializer("starts_at_utc", "ends_at_utc")
    def _serialize_instant(self, value: datetime) -> str:
        return isoformat_utc(value)


class AppointmentList(_CamelModel):
    items: list[AppointmentView] = Field(default_factory=list)


class CreateAppointmentResponse(_CamelModel):
    ok: bool = True
    appointment: AppointmentView


class ConflictRef(_CamelModel):
    id: str
    starts_at_utc: datetime
    ends_at_utc: datetime

    @field_serializer("starts_at_utc", "ends_at_utc")
    def _serialize_instant(self, value: datetime) -> str:
        return isoformat_utc(value)


class Availability(_CamelModel):
    ok: bool = True
    available: bool
    conflict: ConflictRef | None = None
