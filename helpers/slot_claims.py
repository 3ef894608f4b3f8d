import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from helpers.availability_store import AvailabilityStore
from helpers.errors import CalendarNotFound, InvalidBookingReference, SlotIndexOutOfRange
from helpers.settings import Settings
from helpers.slot_calendar import DateLike, normalize_date
from models.availability import ADMIN_BLOCK_REFERENCE, AvailabilityDay


logger = logging.getLogger(__name__)

MAX_REFERENCE_LENGTH = 64


class ClaimStatus(Enum):
    CLAIMED = "claimed"
    ALREADY_HELD = "already_held"
    CONFLICT = "conflict"


class ReleaseStatus(Enum):
    RELEASED = "released"
    MISMATCH = "mismatch"


class ClaimResult(BaseModel):
    status: ClaimStatus
    slot_index: int
    booking_reference: str

    @property
    def succeeded(self) -> bool:
        return self.status in (ClaimStatus.CLAIMED, ClaimStatus.ALREADY_HELD)


class ReleaseResult(BaseModel):
    status: ReleaseStatus
    slot_index: int
    booking_reference: str

    @property
    def succeeded(self) -> bool:
        return self.status == ReleaseStatus.RELEASED


def _check_reference(booking_reference: Optional[str]) -> str:
    if not isinstance(booking_reference, str) or not booking_reference.strip():
        raise InvalidBookingReference("booking_reference is required")
    if len(booking_reference) > MAX_REFERENCE_LENGTH:
        raise InvalidBookingReference(f"booking_reference must be at most {MAX_REFERENCE_LENGTH} characters")
    return booking_reference


def _booking_reference(booking_reference: Optional[str]) -> str:
    # Only block_slot/unblock_slot and the day-wide variants may hold or free the sentinel.
    reference = _check_reference(booking_reference)
    if reference == ADMIN_BLOCK_REFERENCE:
        raise InvalidBookingReference(f"{ADMIN_BLOCK_REFERENCE!r} is reserved for administrative blocks")
    return reference


class SlotClaimCoordinator:
    """Claims and releases individual slots.

    Conflict and mismatch are ordinary results, not exceptions: under load a
    lost race is the expected outcome for all but one caller. Every call
    returns on its first attempt; retrying is up to the caller.
    """

    def __init__(self, settings: Settings, store: Optional[AvailabilityStore] = None):
        self.settings = settings
        self.store = store or AvailabilityStore()

    async def _find_day(self, doctor_id: int, clinic_id: int, day: DateLike) -> AvailabilityDay:
        day_key = normalize_date(day)
        record = await self.store.find_day(doctor_id, clinic_id, day_key)
        if record is None:
            raise CalendarNotFound(
                f"No calendar generated for doctor {doctor_id} at clinic {clinic_id} on {day_key}"
            )
        return record

    async def _locate(self, doctor_id: int, clinic_id: int, day: DateLike, slot_index: int) -> AvailabilityDay:
        if slot_index < 0:
            raise SlotIndexOutOfRange(f"slot_index must be >= 0, got {slot_index}")
        record = await self._find_day(doctor_id, clinic_id, day)
        if slot_index >= record.slot_count:
            raise SlotIndexOutOfRange(f"slot_index must be < {record.slot_count}, got {slot_index}")
        return record

    async def claim(
        self, doctor_id: int, clinic_id: int, day: DateLike, slot_index: int, booking_reference: str
    ) -> ClaimResult:
        reference = _booking_reference(booking_reference)
        return await self._claim(doctor_id, clinic_id, day, slot_index, reference)

    async def release(
        self, doctor_id: int, clinic_id: int, day: DateLike, slot_index: int, booking_reference: str
    ) -> ReleaseResult:
        reference = _booking_reference(booking_reference)
        return await self._release(doctor_id, clinic_id, day, slot_index, reference)

    async def block_slot(self, doctor_id: int, clinic_id: int, day: DateLike, slot_index: int) -> ClaimResult:
        return await self._claim(doctor_id, clinic_id, day, slot_index, ADMIN_BLOCK_REFERENCE)

    async def unblock_slot(self, doctor_id: int, clinic_id: int, day: DateLike, slot_index: int) -> ReleaseResult:
        return await self._release(doctor_id, clinic_id, day, slot_index, ADMIN_BLOCK_REFERENCE)

    async def block_day(self, doctor_id: int, clinic_id: int, day: DateLike) -> int:
        """Block every currently free slot of the day. Booked slots keep their appointment."""
        record = await self._find_day(doctor_id, clinic_id, day)
        blocked = await self.store.claim_all_free(record.id, ADMIN_BLOCK_REFERENCE)
        logger.info("Blocked %d slots for doctor=%s clinic=%s date=%s", blocked, doctor_id, clinic_id, record.date)
        return blocked

    async def unblock_day(self, doctor_id: int, clinic_id: int, day: DateLike) -> int:
        record = await self._find_day(doctor_id, clinic_id, day)
        released = await self.store.release_all_held_by(record.id, ADMIN_BLOCK_REFERENCE)
        logger.info("Unblocked %d slots for doctor=%s clinic=%s date=%s", released, doctor_id, clinic_id, record.date)
        return released

    async def _claim(
        self, doctor_id: int, clinic_id: int, day: DateLike, slot_index: int, reference: str
    ) -> ClaimResult:
        record = await self._locate(doctor_id, clinic_id, day, slot_index)

        if await self.store.claim_slot(record.id, slot_index, reference):
            logger.info(
                "Slot %d claimed for doctor=%s clinic=%s date=%s by %s",
                slot_index, doctor_id, clinic_id, record.date, reference,
            )
            return ClaimResult(status=ClaimStatus.CLAIMED, slot_index=slot_index, booking_reference=reference)

        if await self.store.slot_held_by(record.id, slot_index, reference):
            return ClaimResult(status=ClaimStatus.ALREADY_HELD, slot_index=slot_index, booking_reference=reference)

        logger.debug(
            "Slot %d for doctor=%s clinic=%s date=%s already taken; %s lost",
            slot_index, doctor_id, clinic_id, record.date, reference,
        )
        return ClaimResult(status=ClaimStatus.CONFLICT, slot_index=slot_index, booking_reference=reference)

    async def _release(
        self, doctor_id: int, clinic_id: int, day: DateLike, slot_index: int, reference: str
    ) -> ReleaseResult:
        record = await self._locate(doctor_id, clinic_id, day, slot_index)

        if await self.store.release_slot(record.id, slot_index, reference):
            logger.info(
                "Slot %d released for doctor=%s clinic=%s date=%s by %s",
                slot_index, doctor_id, clinic_id, record.date, reference,
            )
            return ReleaseResult(status=ReleaseStatus.RELEASED, slot_index=slot_index, booking_reference=reference)

        logger.warning(
            "Release of slot %d for doctor=%s clinic=%s date=%s refused: not held by %s",
            slot_index, doctor_id, clinic_id, record.date, reference,
        )
        return ReleaseResult(status=ReleaseStatus.MISMATCH, slot_index=slot_index, booking_reference=reference)
