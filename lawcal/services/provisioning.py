"""Provisioning of reference data and the lawyer → personal calendar link."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lawcal.config import DEMO_LAWYER_EMAIL, DEMO_LAWYER_NAME
from lawcal.database import atomic
from lawcal.domain.errors import DuplicateLawyer
from lawcal.repos.sql import (
    CalendarRepository,
    CountryRepository,
    LawyerRepository,
    OfficeRepository,
    TimeZoneRepository,
)
from lawcal.repos.tables import Calendar, Country, Lawyer, Office, TimeZone

logger = logging.getLogger(__name__)

BASE_TIME_ZONE = "UTC"
DEFAULT_COUNTRY_ISO = "AR"
DEFAULT_COUNTRY_NAME = "Argentina"
DEFAULT_OFFICE_NAME = "Demo Office"


class BaseContext(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    time_zone: TimeZone
    country: Country
    office: Office


class LawyerContext(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    base: BaseContext
    lawyer: Lawyer
    calendar: Calendar


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def personal_calendar_name(full_name: str) -> str:
    return f"{full_name} (personal)"


class ProvisioningService:
    """Idempotent creation of the rows every appointment depends on."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.time_zones = TimeZoneRepository(db)
        self.countries = CountryRepository(db)
        self.offices = OfficeRepository(db)
        self.lawyers = LawyerRepository(db)
        self.calendars = CalendarRepository(db)

    def ensure_time_zone(self, iana_name: str) -> TimeZone:
        with atomic(self.db):
            return self.time_zones.ensure(iana_name)

    def ensure_base_context(self) -> BaseContext:
        """Upsert the UTC zone, the default country and the default office."""
        with atomic(self.db):
            tz_utc = self.time_zones.ensure(BASE_TIME_ZONE)
            country = self.countries.upsert(
                iso_code=DEFAULT_COUNTRY_ISO,
                name=DEFAULT_COUNTRY_NAME,
                default_time_zone_id=tz_utc.id,
            )
            office = self.offices.ensure(
                name=DEFAULT_OFFICE_NAME,
                country_id=country.id,
                time_zone_id=tz_utc.id,
            )
            return BaseContext(time_zone=tz_utc, country=country, office=office)

    def ensure_lawyer_with_calendar(self, email: str, full_name: str) -> LawyerContext:
        """Upsert the lawyer by email and find-or-create their personal calendar.

        Both steps run in one transaction and each insert is guarded by a
        unique key, so concurrent first calls converge on a single lawyer and
        a single calendar.
        """
        email = normalize_email(email)
        with atomic(self.db):
            base = self.ensure_base_context()
            lawyer = self.lawyers.upsert(
                email=email, full_name=full_name, office_id=base.office.id
            )
            self.db.flush()
            calendar = self.calendars.ensure_personal(
                owner_lawyer_id=lawyer.id,
                name=personal_calendar_name(lawyer.full_name),
                time_zone_id=base.time_zone.id,
            )
            return LawyerContext(base=base, lawyer=lawyer, calendar=calendar)

    def create_lawyer_with_calendar(self, email: str, full_name: str) -> LawyerContext:
        """Register a new lawyer together with their personal calendar.

        Raises DuplicateLawyer when the email is taken. The lawyer and the
        calendar are committed together or not at all.
        """
        email = normalize_email(email)
        try:
            with atomic(self.db):
                base = self.ensure_base_context()
                if self.lawyers.get_by_email(email) is not None:
                    raise DuplicateLawyer(email)

                lawyer = self.lawyers.add(
                    Lawyer(email=email, full_name=full_name, office_id=base.office.id)
                )
                calendar = self.calendars.add(
                    Calendar(
                        owner_lawyer_id=lawyer.id,
                        name=personal_calendar_name(lawyer.full_name),
                        time_zone_id=base.time_zone.id,
                        is_personal=True,
                    )
                )
                context = LawyerContext(base=base, lawyer=lawyer, calendar=calendar)
        except DuplicateLawyer:
            logger.warning(f"Registration rejected, {email} already exists")
            raise
        except IntegrityError as exc:
            # Lost a race with a concurrent registration of the same email
            if self.lawyers.get_by_email(email) is not None:
                logger.warning(f"Registration rejected, {email} already exists")
                raise DuplicateLawyer(email) from exc
            raise

        logger.info(f"Registered lawyer {email} with calendar {context.calendar.id}")
        return context

    def bootstrap_demo(self) -> LawyerContext:
        return self.ensure_lawyer_with_calendar(DEMO_LAWYER_EMAIL, DEMO_LAWYER_NAME)
