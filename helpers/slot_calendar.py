"""Turns an affiliation's working hours into a day's calendar of bookable slots.

A calendar is generated once per (doctor, clinic, date) and never reshaped
afterwards: later calls return the stored calendar, claims included, even if
the affiliation's hours have changed since.
"""

import logging
import re
from datetime import date, datetime
from typing import List, Optional, Tuple, Union

from helpers.affiliation_directory import AffiliationDirectory
from helpers.availability_store import AvailabilityStore
from helpers.errors import InvalidDate, InvalidWorkingHours, NonWorkingDay
from helpers.settings import Settings
from models.affiliation import WEEKDAYS
from models.availability import CalendarView


logger = logging.getLogger(__name__)

_CLOCK_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

DateLike = Union[date, str]


def normalize_date(value: DateLike) -> str:
    """Return `value` as a YYYY-MM-DD string, or raise InvalidDate."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()).isoformat()
        except ValueError:
            pass
    raise InvalidDate(f"Invalid date {value!r}, expected YYYY-MM-DD")


def weekday_name(day: str) -> str:
    return WEEKDAYS[date.fromisoformat(day).weekday()]


def parse_clock(value: str) -> int:
    """Minutes since midnight for an HH:MM string."""
    match = _CLOCK_RE.match(value or "")
    if not match:
        raise InvalidWorkingHours(f"Invalid time {value!r}, expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_clock(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def build_slot_bounds(start: str, end: str, slot_duration_minutes: int) -> List[Tuple[str, str]]:
    """Contiguous (start, end) pairs covering the working window.

    A trailing remainder shorter than one slot is dropped.
    """
    start_minutes, end_minutes = parse_clock(start), parse_clock(end)
    if start_minutes >= end_minutes:
        raise InvalidWorkingHours(f"Working hours start {start} must be before end {end}")

    slot_count = (end_minutes - start_minutes) // slot_duration_minutes
    return [
        (
            format_clock(start_minutes + i * slot_duration_minutes),
            format_clock(start_minutes + (i + 1) * slot_duration_minutes),
        )
        for i in range(slot_count)
    ]


class SlotCalendarGenerator:
    def __init__(
        self,
        settings: Settings,
        directory: Optional[AffiliationDirectory] = None,
        store: Optional[AvailabilityStore] = None,
    ):
        self.settings = settings
        self.directory = directory or AffiliationDirectory()
        self.store = store or AvailabilityStore()

    async def generate(self, doctor_id: int, clinic_id: int, day: DateLike) -> CalendarView:
        """Materialize the calendar for one date, or return the existing one unchanged.

        Raises NotAffiliated when there is no active affiliation and
        NonWorkingDay when the doctor does not work on that weekday; in both
        cases nothing is written.
        """
        day_key = normalize_date(day)
        affiliation = await self.directory.get_active_affiliation(doctor_id, clinic_id)

        existing = await self.store.load_calendar(doctor_id, clinic_id, day_key)
        if existing is not None:
            return existing

        weekday = weekday_name(day_key)
        if not affiliation.works_on(weekday):
            logger.debug("No calendar for doctor=%s clinic=%s on %s (%s)", doctor_id, clinic_id, day_key, weekday)
            raise NonWorkingDay(f"Doctor {doctor_id} does not work at clinic {clinic_id} on {weekday}s")

        working_hours = (affiliation.working_hours_start, affiliation.working_hours_end)
        bounds = build_slot_bounds(*working_hours, self.settings.slot_duration_minutes)
        return await self.store.create_calendar(
            doctor_id,
            clinic_id,
            day_key,
            self.settings.slot_duration_minutes,
            working_hours,
            bounds,
        )
