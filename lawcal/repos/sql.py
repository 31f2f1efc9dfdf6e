"""SQLAlchemy-backed repositories for the calendar tables."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from lawcal.repos.tables import (
    Appointment,
    AppointmentParticipant,
    Calendar,
    Country,
    Lawyer,
    Office,
    TimeZone,
)

logger = logging.getLogger(__name__)


def get_or_create(
    session: Session,
    model: type,
    defaults: dict[str, Any] | None = None,
    **keys: Any,
) -> tuple[Any, bool]:
    """Return the row matching *keys*, inserting it if missing.

    The insert runs in a savepoint. When a concurrent writer wins the race
    the unique constraint on *keys* fires, the savepoint is rolled back and
    the winner's row is returned instead.
    """
    instance = session.query(model).filter_by(**keys).one_or_none()
    if instance is not None:
        return instance, False

    try:
        with session.begin_nested():
            instance = model(**keys, **(defaults or {}))
            session.add(instance)
    except IntegrityError:
        logger.info(f"Concurrent insert of {model.__name__} {keys}; reusing existing row")
        return session.query(model).filter_by(**keys).one(), False
    return instance, True


def upsert(
    session: Session,
    model: type,
    keys: dict[str, Any],
    values: dict[str, Any],
) -> tuple[Any, bool]:
    """Insert by *keys* or update *values* on the existing row."""
    instance, created = get_or_create(session, model, defaults=values, **keys)
    if not created:
        for name, value in values.items():
            setattr(instance, name, value)
    return instance, created


class TimeZoneRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_name(self, iana_name: str) -> TimeZone | None:
        return self.session.query(TimeZone).filter_by(iana_name=iana_name).one_or_none()

    def ensure(self, iana_name: str) -> TimeZone:
        tz, created = get_or_create(self.session, TimeZone, iana_name=iana_name)
        if created:
            logger.info(f"Registered time zone {iana_name}")
        return tz

    def count(self) -> int:
        return self.session.query(TimeZone).count()


class CountryRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def upsert(self, iso_code: str, name: str, default_time_zone_id: str) -> Country:
        country, _ = upsert(
            self.session,
            Country,
            keys={"iso_code": iso_code},
            values={"name": name, "default_time_zone_id": default_time_zone_id},
        )
        return country


class OfficeRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def ensure(self, name: str, country_id: str, time_zone_id: str) -> Office:
        office, created = get_or_create(
            self.session,
            Office,
            defaults={"time_zone_id": time_zone_id},
            name=name,
            country_id=country_id,
        )
        if created:
            logger.info(f"Created office {name!r}")
        return office


class LawyerRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_email(self, email: str) -> Lawyer | None:
        return self.session.query(Lawyer).filter_by(email=email).one_or_none()

    def add(self, lawyer: Lawyer) -> Lawyer:
        self.session.add(lawyer)
        self.session.flush()
        return lawyer

    def upsert(self, email: str, full_name: str, office_id: str) -> Lawyer:
        lawyer, _ = upsert(
            self.session,
            Lawyer,
            keys={"email": email},
            values={"full_name": full_name, "office_id": office_id},
        )
        return lawyer

    def list_active(self) -> list[Lawyer]:
        return (
            self.session.query(Lawyer)
            .filter(Lawyer.is_active.is_(True))
            .order_by(Lawyer.full_name.asc(), Lawyer.email.asc())
            .all()
        )


class CalendarRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, calendar: Calendar) -> Calendar:
        self.session.add(calendar)
        self.session.flush()
        return calendar

    def ensure_personal(self, owner_lawyer_id: str, name: str, time_zone_id: str) -> Calendar:
        calendar, created = get_or_create(
            self.session,
            Calendar,
            defaults={"time_zone_id": time_zone_id, "is_personal": True},
            owner_lawyer_id=owner_lawyer_id,
            name=name,
        )
        if created:
            logger.info(f"Created calendar {name!r}")
        return calendar

    def lock(self, calendar_id: str) -> Calendar:
        """Take a row lock on the calendar for the rest of the transaction."""
        return (
            self.session.query(Calendar)
            .filter(Calendar.id == calendar_id)
            .with_for_update()
            .one()
        )

    def list_for_owners(self, owner_ids: list[str]) -> list[Calendar]:
        if not owner_ids:
            return []
        return (
            self.session.query(Calendar)
            .filter(Calendar.owner_lawyer_id.in_(owner_ids))
            .order_by(Calendar.created_at.asc(), Calendar.id.asc())
            .all()
        )


class AppointmentRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, appointment: Appointment, participants: list[AppointmentParticipant]) -> Appointment:
        appointment.participants.extend(participants)
        self.session.add(appointment)
        self.session.flush()
        return appointment

    def list_for_calendar(self, calendar_id: str) -> list[Appointment]:
        return (
            self.session.query(Appointment)
            .filter(Appointment.calendar_id == calendar_id)
            .order_by(Appointment.starts_at_utc.asc())
            .all()
        )

    def list_recent(self, calendar_id: str, limit: int) -> list[Appointment]:
        return (
            self.session.query(Appointment)
            .options(joinedload(Appointment.scheduled_time_zone))
            .filter(Appointment.calendar_id == calendar_id)
            .order_by(Appointment.starts_at_utc.desc(), Appointment.created_at.desc())
            .limit(limit)
            .all()
        )
