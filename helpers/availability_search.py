from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from helpers.affiliation_directory import AffiliationDirectory
from helpers.availability_store import AvailabilityStore
from helpers.errors import SlotIndexOutOfRange
from helpers.settings import Settings
from helpers.slot_calendar import DateLike, normalize_date
from models.affiliation import Affiliation
from models.availability import CalendarView, SlotView


class AvailabilityState(Enum):
    GENERATED = "generated"
    NOT_GENERATED = "not_generated"
    INACTIVE_AFFILIATION = "inactive_affiliation"


class DoctorAvailability(BaseModel):
    state: AvailabilityState
    calendar: Optional[CalendarView] = None


class AvailableDoctor(BaseModel):
    doctor_id: int
    name: str
    specialization: List[str]
    experience: int
    rating: float
    consultation_fee: float


class AvailabilitySearchIndex:
    """Read-only queries across the calendars of many doctors."""

    def __init__(
        self,
        settings: Settings,
        directory: Optional[AffiliationDirectory] = None,
        store: Optional[AvailabilityStore] = None,
    ):
        self.settings = settings
        self.directory = directory or AffiliationDirectory()
        self.store = store or AvailabilityStore()

    async def find_available_doctors(
        self, clinic_id: int, day: DateLike, slot_index: int, specialization: Optional[str] = None
    ) -> List[int]:
        """Doctors at the clinic whose slot `slot_index` is free on `day`, best rated first.

        Doctors without a calendar for `day` are left out; generating one is
        the caller's call.
        """
        affiliations = await self._available_affiliations(clinic_id, day, slot_index, specialization)
        return [a.doctor_id for a in affiliations]

    async def find_available_doctor_profiles(
        self, clinic_id: int, day: DateLike, slot_index: int, specialization: Optional[str] = None
    ) -> List[AvailableDoctor]:
        affiliations = await self._available_affiliations(clinic_id, day, slot_index, specialization)
        return [
            AvailableDoctor(
                doctor_id=a.doctor_id,
                name=a.doctor.name,
                specialization=list(a.doctor.specialization or []),
                experience=a.doctor.experience,
                rating=a.doctor.rating,
                consultation_fee=float(a.consultation_fee or 0),
            )
            for a in affiliations
        ]

    async def get_doctor_availability(self, doctor_id: int, clinic_id: int, day: DateLike) -> DoctorAvailability:
        day_key = normalize_date(day)
        affiliation = await self.directory.find_affiliation(doctor_id, clinic_id)
        if affiliation is None or not affiliation.is_active:
            return DoctorAvailability(state=AvailabilityState.INACTIVE_AFFILIATION)

        calendar = await self.store.load_calendar(doctor_id, clinic_id, day_key)
        if calendar is None:
            return DoctorAvailability(state=AvailabilityState.NOT_GENERATED)
        return DoctorAvailability(state=AvailabilityState.GENERATED, calendar=calendar)

    async def get_available_slots(self, doctor_id: int, clinic_id: int, day: DateLike) -> List[SlotView]:
        availability = await self.get_doctor_availability(doctor_id, clinic_id, day)
        if availability.calendar is None:
            return []
        return availability.calendar.available_slots()

    async def _available_affiliations(
        self, clinic_id: int, day: DateLike, slot_index: int, specialization: Optional[str]
    ) -> List[Affiliation]:
        day_key = normalize_date(day)
        if slot_index < 0 or slot_index >= self.settings.max_slots_per_day:
            raise SlotIndexOutOfRange(
                f"slot_index must be between 0 and {self.settings.max_slots_per_day - 1}, got {slot_index}"
            )

        affiliations = await self.directory.list_active_affiliations(clinic_id)
        if specialization:
            affiliations = [a for a in affiliations if a.doctor.has_specialization(specialization)]
        by_doctor = {a.doctor_id: a for a in affiliations}

        day_ids = await self.store.find_day_ids(clinic_id, day_key, by_doctor.keys())
        free = await self.store.days_with_free_slot(day_ids.values(), slot_index)

        matches = [by_doctor[doctor_id] for doctor_id, day_id in day_ids.items() if day_id in free]
        matches.sort(key=lambda a: (-(a.doctor.rating or 0), a.doctor_id))
        return matches
