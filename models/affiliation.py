from tortoise import fields
from tortoise.models import Model
from enum import Enum
from typing import List


WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class AffiliationStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Affiliation(Model):
    id = fields.IntField(primary_key=True)
    doctor = fields.ForeignKeyField("models.Doctor", related_name="affiliations")
    clinic = fields.ForeignKeyField("models.Clinic", related_name="affiliations")
    status = fields.CharEnumField(enum_type=AffiliationStatus, max_length=8, default=AffiliationStatus.ACTIVE)
    consultation_fee = fields.DecimalField(max_digits=10, decimal_places=2, default=0)
    working_days: List[str] = fields.JSONField(default=list, description='["monday", "tuesday", ...]')
    working_hours_start = fields.CharField(max_length=5, description="HH:MM (24h format)")
    working_hours_end = fields.CharField(max_length=5, description="HH:MM (24h format)")
    room_number = fields.CharField(max_length=50, null=True)
    department = fields.CharField(max_length=255, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "doctor_clinic_affiliations"
        unique_together = (("doctor", "clinic"),)

    @property
    def is_active(self) -> bool:
        return self.status == AffiliationStatus.ACTIVE

    def works_on(self, weekday: str) -> bool:
        return weekday.lower() in {d.strip().lower() for d in self.working_days or []}
