import asyncio
import logging
from datetime import date, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

from helpers.errors import AvailabilityError, NonWorkingDay, ValidationError
from helpers.settings import Settings
from helpers.slot_calendar import DateLike, SlotCalendarGenerator, normalize_date
from models.availability import CalendarView


logger = logging.getLogger(__name__)


class OutcomeStatus(Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
    CANCELLED = "cancelled"


class DateOutcome(BaseModel):
    date: str
    status: OutcomeStatus
    calendar: Optional[CalendarView] = None
    error: Optional[str] = None


def date_range(start: DateLike, end: DateLike) -> List[str]:
    """Every date from `start` to `end`, inclusive."""
    first = date.fromisoformat(normalize_date(start))
    last = date.fromisoformat(normalize_date(end))
    if first > last:
        raise ValidationError(f"start date {first} is after end date {last}")
    return [(first + timedelta(days=i)).isoformat() for i in range((last - first).days + 1)]


def summarize(outcomes: Iterable[DateOutcome]) -> Dict[str, int]:
    outcomes = list(outcomes)
    counts = {status: 0 for status in OutcomeStatus}
    for outcome in outcomes:
        counts[outcome.status] += 1
    return {
        "total": len(outcomes),
        "successful": counts[OutcomeStatus.SUCCESS],
        "skipped": counts[OutcomeStatus.SKIPPED],
        "failed": counts[OutcomeStatus.FAILED],
        "cancelled": counts[OutcomeStatus.CANCELLED],
    }


class BulkGenerationOrchestrator:
    def __init__(self, settings: Settings, generator: Optional[SlotCalendarGenerator] = None):
        self.settings = settings
        self.generator = generator or SlotCalendarGenerator(settings)

    async def generate_range(
        self,
        doctor_id: int,
        clinic_id: int,
        dates: Iterable[DateLike],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[DateOutcome]:
        """Generate one calendar per date and report each date's outcome separately.

        Dates run concurrently but results come back in input order, one per
        distinct date. Setting `cancel_event` stops dates that have not
        started yet; those already generated stay generated.
        """
        pending = _dedupe(dates)
        if len(pending) > self.settings.max_bulk_dates:
            raise ValidationError(
                f"At most {self.settings.max_bulk_dates} dates per request, got {len(pending)}"
            )

        semaphore = asyncio.Semaphore(self.settings.bulk_concurrency)

        async def run(day_key: str) -> DateOutcome:
            async with semaphore:
                if cancel_event is not None and cancel_event.is_set():
                    return DateOutcome(date=day_key, status=OutcomeStatus.CANCELLED)
                return await self._generate_one(doctor_id, clinic_id, day_key)

        outcomes = await asyncio.gather(*(run(day_key) for day_key in pending))
        logger.info(
            "Bulk generation for doctor=%s clinic=%s finished: %s",
            doctor_id, clinic_id, summarize(outcomes),
        )
        return list(outcomes)

    async def generate_period(
        self,
        doctor_id: int,
        clinic_id: int,
        start: DateLike,
        end: DateLike,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[DateOutcome]:
        first = date.fromisoformat(normalize_date(start))
        last = date.fromisoformat(normalize_date(end))
        span = (last - first).days + 1
        if span > self.settings.max_bulk_dates:
            raise ValidationError(f"At most {self.settings.max_bulk_dates} dates per request, got {span}")
        return await self.generate_range(doctor_id, clinic_id, date_range(first, last), cancel_event)

    async def _generate_one(self, doctor_id: int, clinic_id: int, day_key: str) -> DateOutcome:
        try:
            calendar = await self.generator.generate(doctor_id, clinic_id, day_key)
            return DateOutcome(date=day_key, status=OutcomeStatus.SUCCESS, calendar=calendar)
        except NonWorkingDay as e:
            return DateOutcome(date=day_key, status=OutcomeStatus.SKIPPED, error=str(e))
        except AvailabilityError as e:
            return DateOutcome(date=day_key, status=OutcomeStatus.FAILED, error=str(e))
        except Exception as e:
            logger.exception("Unexpected failure generating doctor=%s clinic=%s date=%s", doctor_id, clinic_id, day_key)
            return DateOutcome(date=day_key, status=OutcomeStatus.FAILED, error=f"Unexpected error: {e}")


def _dedupe(dates: Iterable[DateLike]) -> List[str]:
    # Unparseable values are kept as-is so they come back as FAILED outcomes.
    seen = set()
    pending = []
    for value in dates:
        try:
            key = normalize_date(value)
        except ValidationError:
            key = str(value)
        if key in seen:
            continue
        seen.add(key)
        pending.append(key)
    return pending
