"""SQLAlchemy table mappings.

Instants are stored as naive UTC ``DateTime`` columns; ``as_utc`` re-attaches
the zone on the way out.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from lawcal.database import Base
from lawcal.domain.models import AppointmentMode, ParticipantRole


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimeZone(Base):
    __tablename__ = "time_zones"

    id = Column(String(36), primary_key=True, default=_new_id)
    iana_name = Column(String(64), unique=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow_naive, nullable=False)


class Country(Base):
    __tablename__ = "countries"

    id = Column(String(36), primary_key=True, default=_new_id)
    iso_code = Column(String(2), unique=True, nullable=False)
    name = Column(String(128), nullable=False)
    default_time_zone_id = Column(String(36), ForeignKey("time_zones.id"), nullable=False)
    created_at = Column(DateTime, default=_utcnow_naive, nullable=False)

    default_time_zone = relationship("TimeZone")


class Office(Base):
    __tablename__ = "offices"
    __table_args__ = (UniqueConstraint("name", "country_id", name="uq_offices_name_country"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(128), nullable=False)
    country_id = Column(String(36), ForeignKey("countries.id"), nullable=False)
    time_zone_id = Column(String(36), ForeignKey("time_zones.id"), nullable=False)
    created_at = Column(DateTime, default=_utcnow_naive, nullable=False)

    country = relationship("Country")


class Lawyer(Base):
    __tablename__ = "lawyers"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    office_id = Column(String(36), ForeignKey("offices.id"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow_naive, nullable=False)
    updated_at = Column(DateTime, default=_utcnow_naive, onupdate=_utcnow_naive, nullable=False)

    office = relationship("Office")
    calendars = relationship("Calendar", back_populates="owner", order_by="Calendar.created_at")


class Calendar(Base):
    __tablename__ = "calendars"
    # One calendar per (owner, name); closes the find-or-create race
    __table_args__ = (UniqueConstraint("owner_lawyer_id", "name", name="uq_calendars_owner_name"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_lawyer_id = Column(String(36), ForeignKey("lawyers.id"), nullable=False, index=True)
    name = Column(String(300), nullable=False)
    time_zone_id = Column(String(36), ForeignKey("time_zones.id"), nullable=False)
    is_personal = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_utcnow_naive, nullable=False)

    owner = relationship("Lawyer", back_populates="calendars")
    time_zone = relationship("TimeZone")


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (Index("ix_appointments_calendar_start", "calendar_id", "starts_at_utc"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    calendar_id = Column(String(36), ForeignKey("calendars.id"), nullable=False)
    created_by_lawyer_id = Column(String(36), ForeignKey("lawyers.id"), nullable=False)
    subject = Column(String(500), nullable=False)
    mode = Column(Enum(AppointmentMode, native_enum=False, length=20), nullable=False)
    starts_at_utc = Column(DateTime, nullable=False)
    ends_at_utc = Column(DateTime, nullable=False)
    scheduled_time_zone_id = Column(String(36), ForeignKey("time_zones.id"), nullable=False)
    scheduled_offset_minutes = Column(Integer, nullable=False)
    # Wall-clock mirrors in the authoring zone, kept for display
    starts_at_local = Column(DateTime, nullable=False)
    ends_at_local = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=_utcnow_naive, nullable=False)

    calendar = relationship("Calendar")
    scheduled_time_zone = relationship("TimeZone")
    participants = relationship(
        "AppointmentParticipant",
        back_populates="appointment",
        cascade="all, delete-orphan",
    )


class AppointmentParticipant(Base):
    __tablename__ = "appointment_participants"
    __table_args__ = (
        UniqueConstraint("appointment_id", "lawyer_id", name="uq_participants_appointment_lawyer"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    appointment_id = Column(String(36), ForeignKey("appointments.id"), nullable=False)
    lawyer_id = Column(String(36), ForeignKey("lawyers.id"), nullable=False)
    role = Column(Enum(ParticipantRole, native_enum=False, length=20), nullable=False)

    appointment = relationship("Appointment", back_populates="participants")
