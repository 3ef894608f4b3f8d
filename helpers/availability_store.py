import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction

from helpers.errors import translate_store_errors
from models.availability import AvailabilityDay, AvailabilitySlot, CalendarView


logger = logging.getLogger(__name__)


class AvailabilityStore:
    """Persistence for per-(doctor, clinic, date) calendars.

    Slot state only ever changes through single conditional UPDATE statements,
    so concurrent callers in separate processes cannot lose each other's writes.
    """

    @translate_store_errors
    async def find_day(self, doctor_id: int, clinic_id: int, date: str) -> Optional[AvailabilityDay]:
        return await AvailabilityDay.get_or_none(doctor_id=doctor_id, clinic_id=clinic_id, date=date)

    @translate_store_errors
    async def load_calendar(self, doctor_id: int, clinic_id: int, date: str) -> Optional[CalendarView]:
        # Day and slots are read together so a calendar still being inserted is never seen half-built.
        async with in_transaction() as conn:
            day = await AvailabilityDay.filter(doctor_id=doctor_id, clinic_id=clinic_id, date=date).using_db(conn).first()
            if day is None:
                return None
            slots = await AvailabilitySlot.filter(day_id=day.id).order_by("slot_index").using_db(conn)
        return CalendarView.from_records(day, slots)

    @translate_store_errors
    async def create_calendar(
        self,
        doctor_id: int,
        clinic_id: int,
        date: str,
        slot_duration_minutes: int,
        working_hours: Tuple[str, str],
        bounds: List[Tuple[str, str]],
    ) -> CalendarView:
        """Insert a new calendar, or return the one a concurrent caller inserted first."""
        try:
            async with in_transaction() as conn:
                day = await AvailabilityDay.create(
                    doctor_id=doctor_id,
                    clinic_id=clinic_id,
                    date=date,
                    slot_duration_minutes=slot_duration_minutes,
                    slot_count=len(bounds),
                    working_hours_start=working_hours[0],
                    working_hours_end=working_hours[1],
                    using_db=conn,
                )
                slots = [
                    AvailabilitySlot(day_id=day.id, slot_index=i, start_time=start, end_time=end)
                    for i, (start, end) in enumerate(bounds)
                ]
                await AvailabilitySlot.bulk_create(slots, using_db=conn)
        except IntegrityError:
            existing = await self.load_calendar(doctor_id, clinic_id, date)
            if existing is None:
                raise
            logger.info(
                "Calendar doctor=%s clinic=%s date=%s was created concurrently; using existing record",
                doctor_id, clinic_id, date,
            )
            return existing

        logger.info(
            "Created calendar doctor=%s clinic=%s date=%s with %d slots",
            doctor_id, clinic_id, date, len(bounds),
        )
        return CalendarView.from_records(day, slots)

    @translate_store_errors
    async def claim_slot(self, day_id: int, slot_index: int, booking_reference: str) -> bool:
        updated = await AvailabilitySlot.filter(
            day_id=day_id, slot_index=slot_index, is_available=True
        ).update(is_available=False, booking_reference=booking_reference)
        return updated == 1

    @translate_store_errors
    async def release_slot(self, day_id: int, slot_index: int, booking_reference: str) -> bool:
        updated = await AvailabilitySlot.filter(
            day_id=day_id, slot_index=slot_index, is_available=False, booking_reference=booking_reference
        ).update(is_available=True, booking_reference=None)
        return updated == 1

    @translate_store_errors
    async def slot_held_by(self, day_id: int, slot_index: int, booking_reference: str) -> bool:
        return await AvailabilitySlot.filter(
            day_id=day_id, slot_index=slot_index, is_available=False, booking_reference=booking_reference
        ).exists()

    @translate_store_errors
    async def claim_all_free(self, day_id: int, booking_reference: str) -> int:
        return await AvailabilitySlot.filter(day_id=day_id, is_available=True).update(
            is_available=False, booking_reference=booking_reference
        )

    @translate_store_errors
    async def release_all_held_by(self, day_id: int, booking_reference: str) -> int:
        return await AvailabilitySlot.filter(
            day_id=day_id, is_available=False, booking_reference=booking_reference
        ).update(is_available=True, booking_reference=None)

    @translate_store_errors
    async def find_day_ids(self, clinic_id: int, date: str, doctor_ids: Iterable[int]) -> Dict[int, int]:
        """Map doctor id -> calendar id for the doctors that have a calendar on `date`."""
        doctor_ids = list(doctor_ids)
        if not doctor_ids:
            return {}
        rows = await AvailabilityDay.filter(
            clinic_id=clinic_id, date=date, doctor_id__in=doctor_ids
        ).values_list("doctor_id", "id")
        return {doctor_id: day_id for doctor_id, day_id in rows}

    @translate_store_errors
    async def days_with_free_slot(self, day_ids: Iterable[int], slot_index: int) -> Set[int]:
        day_ids = list(day_ids)
        if not day_ids:
            return set()
        rows = await AvailabilitySlot.filter(
            day_id__in=day_ids, slot_index=slot_index, is_available=True
        ).values_list("day_id", flat=True)
        return set(rows)
