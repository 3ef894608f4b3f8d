from tortoise import fields
from tortoise.models import Model
from pydantic import BaseModel
from typing import List, Optional


# Booking reference recorded on slots blocked by administrative tooling rather than an appointment.
ADMIN_BLOCK_REFERENCE = "admin-block"


class AvailabilityDay(Model):
    id = fields.IntField(primary_key=True)
    doctor_id = fields.IntField()
    clinic_id = fields.IntField()
    date = fields.CharField(max_length=10, description="YYYY-MM-DD")
    slot_duration_minutes = fields.IntField()
    slot_count = fields.IntField()
    working_hours_start = fields.CharField(max_length=5, description="HH:MM (24h format)")
    working_hours_end = fields.CharField(max_length=5, description="HH:MM (24h format)")
    created_at = fields.DatetimeField(auto_now_add=True)

    slots: fields.ReverseRelation["AvailabilitySlot"]

    class Meta:
        table = "doctor_availability"
        unique_together = (("doctor_id", "clinic_id", "date"),)
        indexes = (("clinic_id", "date"),)


class AvailabilitySlot(Model):
    id = fields.IntField(primary_key=True)
    day = fields.ForeignKeyField("models.AvailabilityDay", related_name="slots")
    slot_index = fields.IntField()
    start_time = fields.CharField(max_length=5)
    end_time = fields.CharField(max_length=5)
    is_available = fields.BooleanField(default=True)
    booking_reference = fields.CharField(max_length=64, null=True)

    class Meta:
        table = "availability_slots"
        unique_together = (("day", "slot_index"),)


class SlotView(BaseModel):
    slot_index: int
    start_time: str
    end_time: str
    is_available: bool = True
    booking_reference: Optional[str] = None

    @property
    def is_blocked(self) -> bool:
        return self.booking_reference == ADMIN_BLOCK_REFERENCE


class CalendarView(BaseModel):
    """Read-only snapshot of one doctor's calendar at one clinic for one date."""

    id: int
    doctor_id: int
    clinic_id: int
    date: str
    slot_duration_minutes: int
    working_hours_start: str
    working_hours_end: str
    slots: List[SlotView]

    @property
    def slot_count(self) -> int:
        return len(self.slots)

    def available_slots(self) -> List[SlotView]:
        return [s for s in self.slots if s.is_available]

    @classmethod
    def from_records(cls, day: AvailabilityDay, slots: List[AvailabilitySlot]) -> "CalendarView":
        return cls(
            id=day.id,
            doctor_id=day.doctor_id,
            clinic_id=day.clinic_id,
            date=day.date,
            slot_duration_minutes=day.slot_duration_minutes,
            working_hours_start=day.working_hours_start,
            working_hours_end=day.working_hours_end,
            slots=[
                SlotView(
                    slot_index=s.slot_index,
                    start_time=s.start_time,
                    end_time=s.end_time,
                    is_available=s.is_available,
                    booking_reference=s.booking_reference,
                )
                for s in sorted(slots, key=lambda s: s.slot_index)
            ],
        )
