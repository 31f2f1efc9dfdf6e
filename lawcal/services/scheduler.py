"""Appointment booking: validation, time resolution and conflict enforcement."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from lawcal.config import DEMO_LAWYER_EMAIL
from lawcal.database import atomic
from lawcal.domain.errors import SchedulingConflict, ValidationError
from lawcal.domain.models import (
    DURATION_CHOICES,
    DURATION_DETAIL,
    AppointmentRequest,
    AppointmentView,
    Availability,
    ConflictRef,
    ParticipantRole,
    as_utc,
)
from lawcal.repos.sql import AppointmentRepository, CalendarRepository, LawyerRepository
from lawcal.repos.tables import Appointment, AppointmentParticipant
from lawcal.services.conflicts import Interval, find_conflict
from lawcal.services.provisioning import LawyerContext, ProvisioningService, normalize_email
from lawcal.services.timeconv import UtcRange, resolve_local_range

logger = logging.getLogger(__name__)

RECENT_APPOINTMENTS_LIMIT = 50
NEW_LAWYER_PLACEHOLDER_NAME = "New Lawyer"


def _naive_utc(value: datetime) -> datetime:
    return as_utc(value).replace(tzinfo=None)


def to_view(appointment: Appointment) -> AppointmentView:
    return AppointmentView(
        id=appointment.id,
        subject=appointment.subject,
        mode=appointment.mode,
        starts_at_utc=as_utc(appointment.starts_at_utc),
        ends_at_utc=as_utc(appointment.ends_at_utc),
        scheduled_time_zone=appointment.scheduled_time_zone.iana_name,
        scheduled_offset_minutes=appointment.scheduled_offset_minutes,
    )


def validate_request(request: AppointmentRequest) -> str:
    """Check the booking fields and return the trimmed subject."""
    subject = (request.subject or "").strip()
    if not subject:
        raise ValidationError("subject", "subject is required")
    if not (request.starts_at_local or "").strip():
        raise ValidationError("startsAtLocal", "startsAtLocal is required")
    if request.duration_minutes not in DURATION_CHOICES:
        raise ValidationError("durationMinutes", DURATION_DETAIL)
    return subject


class AppointmentScheduler:
    """Books appointments on a lawyer's personal calendar."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.provisioning = ProvisioningService(db)
        self.lawyers = LawyerRepository(db)
        self.calendars = CalendarRepository(db)
        self.appointments = AppointmentRepository(db)

    def resolve_calendar(self, lawyer_email: str | None) -> LawyerContext:
        """Return the acting lawyer and calendar, provisioning them if needed.

        An unknown email registers a lawyer under a placeholder name; a known
        one keeps its current name.
        """
        email = normalize_email(lawyer_email) or DEMO_LAWYER_EMAIL
        if email == DEMO_LAWYER_EMAIL:
            return self.provisioning.bootstrap_demo()

        existing = self.lawyers.get_by_email(email)
        if existing is None:
            logger.info(f"Booking for unknown lawyer {email}; registering placeholder")
            full_name = NEW_LAWYER_PLACEHOLDER_NAME
        else:
            full_name = existing.full_name
        return self.provisioning.ensure_lawyer_with_calendar(email, full_name)

    def create_appointment(self, request: AppointmentRequest) -> AppointmentView:
        subject = validate_request(request)
        slot = resolve_local_range(
            request.starts_at_local, request.scheduled_time_zone, request.duration_minutes
        )

        with atomic(self.db):
            ctx = self.resolve_calendar(request.lawyer_email)
            calendar_id = ctx.calendar.id
            tz = self.provisioning.ensure_time_zone(request.scheduled_time_zone.strip())

            # Serialize read-check-insert per calendar
            self.calendars.lock(calendar_id)
            self._raise_on_conflict(calendar_id, slot)

            appointment = self.appointments.add(
                Appointment(
                    calendar_id=calendar_id,
                    created_by_lawyer_id=ctx.lawyer.id,
                    subject=subject,
                    mode=request.mode,
                    starts_at_utc=_naive_utc(slot.start_utc),
                    ends_at_utc=_naive_utc(slot.end_utc),
                    scheduled_time_zone=tz,
                    scheduled_offset_minutes=slot.offset_minutes,
                    starts_at_local=slot.starts_at_local,
                    ends_at_local=slot.ends_at_local,
                ),
                participants=[
                    AppointmentParticipant(
                        lawyer_id=ctx.lawyer.id, role=ParticipantRole.ORGANIZER
                    )
                ],
            )
            view = to_view(appointment)

        logger.info(
            f"Booked appointment {view.id} on calendar {calendar_id} "
            f"[{view.starts_at_utc.isoformat()}, {view.ends_at_utc.isoformat()})"
        )
        return view

    def _raise_on_conflict(self, calendar_id: str, slot: UtcRange) -> None:
        candidate = Interval(start=slot.start_utc, end=slot.end_utc)
        conflict = find_conflict(candidate, self.appointments.list_for_calendar(calendar_id))
        if conflict is not None:
            logger.warning(
                f"Slot [{slot.start_utc.isoformat()}, {slot.end_utc.isoformat()}) "
                f"conflicts with appointment {conflict.id} on calendar {calendar_id}"
            )
            raise SchedulingConflict(
                appointment_id=conflict.id,
                starts_at_utc=as_utc(conflict.starts_at_utc),
                ends_at_utc=as_utc(conflict.ends_at_utc),
            )

    def preview_availability(self, request: AppointmentRequest) -> Availability:
        """Non-authoritative availability hint using the booking predicate.

        create_appointment repeats the check under the calendar lock.
        """
        validate_request(request)
        slot = resolve_local_range(
            request.starts_at_local, request.scheduled_time_zone, request.duration_minutes
        )
        with atomic(self.db):
            ctx = self.resolve_calendar(request.lawyer_email)
            candidate = Interval(start=slot.start_utc, end=slot.end_utc)
            conflict = find_conflict(
                candidate, self.appointments.list_for_calendar(ctx.calendar.id)
            )
            if conflict is None:
                return Availability(available=True)
            return Availability(
                available=False,
                conflict=ConflictRef(
                    id=conflict.id,
                    starts_at_utc=as_utc(conflict.starts_at_utc),
                    ends_at_utc=as_utc(conflict.ends_at_utc),
                ),
            )

    def list_appointments(
        self, calendar_id: str, limit: int = RECENT_APPOINTMENTS_LIMIT
    ) -> list[AppointmentView]:
        """Most recent start first, capped at *limit* (at most 50)."""
        limit = min(limit, RECENT_APPOINTMENTS_LIMIT)
        return [to_view(a) for a in self.appointments.list_recent(calendar_id, limit)]

    def list_appointments_for_lawyer(self, lawyer_email: str | None) -> list[AppointmentView]:
        with atomic(self.db):
            ctx = self.resolve_calendar(lawyer_email)
            return self.list_appointments(ctx.calendar.id)
