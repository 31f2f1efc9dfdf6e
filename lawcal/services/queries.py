"""Read-only projections over lawyers and their calendars."""

from __future__ import annotations

from sqlalchemy.orm import Session

from lawcal.domain.models import CalendarRef, LawyerRow
from lawcal.repos.sql import CalendarRepository, LawyerRepository
from lawcal.repos.tables import Calendar


def pick_personal_calendar(calendars: list[Calendar]) -> Calendar | None:
    """Choose the calendar to show for a lawyer.

    *calendars* must be in creation order. A calendar flagged personal wins;
    otherwise the earliest-created one is used.
    """
    for calendar in calendars:
        if calendar.is_personal:
            return calendar
    return calendars[0] if calendars else None


class CalendarQueryService:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.lawyers = LawyerRepository(db)
        self.calendars = CalendarRepository(db)

    def list_lawyers(self) -> list[LawyerRow]:
        """Active lawyers by display name, each with their personal calendar."""
        lawyers = self.lawyers.list_active()
        by_owner: dict[str, list[Calendar]] = {}
        for calendar in self.calendars.list_for_owners([lawyer.id for lawyer in lawyers]):
            by_owner.setdefault(calendar.owner_lawyer_id, []).append(calendar)

        rows: list[LawyerRow] = []
        for lawyer in lawyers:
            personal = pick_personal_calendar(by_owner.get(lawyer.id, []))
            rows.append(
                LawyerRow(
                    id=lawyer.id,
                    email=lawyer.email,
                    full_name=lawyer.full_name,
                    personal_calendar=(
                        CalendarRef(id=personal.id, name=personal.name) if personal else None
                    ),
                )
            )
        return rows
