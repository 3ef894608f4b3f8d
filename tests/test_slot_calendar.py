import asyncio
from datetime import date

import pytest

from helpers.errors import InvalidDate, InvalidWorkingHours, NonWorkingDay, NotAffiliated
from helpers.settings import Settings
from helpers.slot_calendar import SlotCalendarGenerator, build_slot_bounds, normalize_date, weekday_name
from helpers.slot_claims import SlotClaimCoordinator
from models.affiliation import AffiliationStatus
from models.availability import AvailabilityDay, AvailabilitySlot


MONDAY = "2026-10-19"
SUNDAY = "2026-10-25"


def test_bounds_cover_working_window():
    bounds = build_slot_bounds("09:00", "18:00", 15)

    assert len(bounds) == 36
    assert bounds[0] == ("09:00", "09:15")
    assert bounds[35][1] == "18:00"
    for (_, previous_end), (next_start, _) in zip(bounds, bounds[1:]):
        assert previous_end == next_start


def test_bounds_drop_partial_trailing_slot():
    bounds = build_slot_bounds("09:00", "10:10", 30)

    assert bounds == [("09:00", "09:30"), ("09:30", "10:00")]


@pytest.mark.parametrize("start,end", [("18:00", "09:00"), ("09:00", "09:00"), ("9am", "5pm"), ("24:00", "25:00")])
def test_bounds_reject_bad_working_hours(start, end):
    with pytest.raises(InvalidWorkingHours):
        build_slot_bounds(start, end, 15)


def test_normalize_date():
    assert normalize_date(date(2026, 10, 19)) == MONDAY
    assert normalize_date(" 2026-10-19 ") == MONDAY
    assert weekday_name(MONDAY) == "monday"
    assert weekday_name(SUNDAY) == "sunday"

    for bad in ["2026-13-01", "19/10/2026", "", None, 20261019]:
        with pytest.raises(InvalidDate):
            normalize_date(bad)


@pytest.mark.asyncio
async def test_generate_builds_full_day(settings, make_affiliation):
    affiliation = await make_affiliation()
    generator = SlotCalendarGenerator(settings)

    calendar = await generator.generate(affiliation.doctor_id, affiliation.clinic_id, MONDAY)

    assert calendar.date == MONDAY
    assert calendar.slot_count == 36
    assert calendar.slots[0].start_time == "09:00"
    assert calendar.slots[35].end_time == "18:00"
    assert [s.slot_index for s in calendar.slots] == list(range(36))
    assert all(s.is_available and s.booking_reference is None for s in calendar.slots)
    assert await AvailabilitySlot.filter(day_id=calendar.id).count() == 36


@pytest.mark.asyncio
async def test_slot_duration_comes_from_settings(make_affiliation):
    affiliation = await make_affiliation()

    half_hour = await SlotCalendarGenerator(Settings(slot_duration_minutes=30)).generate(
        affiliation.doctor_id, affiliation.clinic_id, MONDAY
    )

    assert half_hour.slot_count == 18
    assert half_hour.slot_duration_minutes == 30
    assert half_hour.slots[1].start_time == "09:30"


@pytest.mark.asyncio
async def test_generate_is_idempotent(settings, make_affiliation):
    affiliation = await make_affiliation()
    generator = SlotCalendarGenerator(settings)

    first = await generator.generate(affiliation.doctor_id, affiliation.clinic_id, MONDAY)
    second = await generator.generate(affiliation.doctor_id, affiliation.clinic_id, date(2026, 10, 19))

    assert second == first
    assert await AvailabilityDay.all().count() == 1


@pytest.mark.asyncio
async def test_regenerating_keeps_existing_claims(settings, make_affiliation):
    affiliation = await make_affiliation()
    generator = SlotCalendarGenerator(settings)
    await generator.generate(affiliation.doctor_id, affiliation.clinic_id, MONDAY)
    await SlotClaimCoordinator(settings).claim(affiliation.doctor_id, affiliation.clinic_id, MONDAY, 3, "appt-1")

    calendar = await generator.generate(affiliation.doctor_id, affiliation.clinic_id, MONDAY)

    assert calendar.slots[3].is_available is False
    assert calendar.slots[3].booking_reference == "appt-1"


@pytest.mark.asyncio
async def test_changed_hours_do_not_reshape_existing_calendar(settings, make_affiliation):
    affiliation = await make_affiliation()
    generator = SlotCalendarGenerator(settings)
    await generator.generate(affiliation.doctor_id, affiliation.clinic_id, MONDAY)

    affiliation.working_hours_end = "12:00"
    await affiliation.save()
    calendar = await generator.generate(affiliation.doctor_id, affiliation.clinic_id, MONDAY)

    assert calendar.slot_count == 36
    assert calendar.working_hours_end == "18:00"


@pytest.mark.asyncio
async def test_non_working_day_creates_nothing(settings, make_affiliation):
    affiliation = await make_affiliation()

    with pytest.raises(NonWorkingDay):
        await SlotCalendarGenerator(settings).generate(affiliation.doctor_id, affiliation.clinic_id, SUNDAY)

    assert await AvailabilityDay.all().count() == 0
    assert await AvailabilitySlot.all().count() == 0


@pytest.mark.asyncio
async def test_generate_requires_active_affiliation(settings, clinic, make_affiliation):
    inactive = await make_affiliation(status=AffiliationStatus.INACTIVE)
    generator = SlotCalendarGenerator(settings)

    with pytest.raises(NotAffiliated):
        await generator.generate(inactive.doctor_id, inactive.clinic_id, MONDAY)
    with pytest.raises(NotAffiliated):
        await generator.generate(inactive.doctor_id, clinic.id + 100, MONDAY)

    assert await AvailabilityDay.all().count() == 0


@pytest.mark.asyncio
async def test_concurrent_first_generation_creates_one_calendar(settings, make_affiliation):
    affiliation = await make_affiliation()
    generators = [SlotCalendarGenerator(settings) for _ in range(5)]

    calendars = await asyncio.gather(
        *(g.generate(affiliation.doctor_id, affiliation.clinic_id, MONDAY) for g in generators)
    )

    assert len({c.id for c in calendars}) == 1
    assert all(c.slot_count == 36 for c in calendars)
    assert await AvailabilityDay.all().count() == 1
    assert await AvailabilitySlot.all().count() == 36
