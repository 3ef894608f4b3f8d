from tortoise import fields
from tortoise.models import Model
from typing import List


class Doctor(Model):
    id = fields.IntField(primary_key=True)
    name = fields.CharField(max_length=255)
    specialization: List[str] = fields.JSONField(default=list, description='["cardiology", ...] (lower-case)')
    experience = fields.IntField(default=0, description="Years of practice")
    rating = fields.FloatField(default=0)

    affiliations: fields.ReverseRelation["Affiliation"]

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "doctors"

    def has_specialization(self, specialization: str) -> bool:
        wanted = specialization.strip().lower()
        return any(s.strip().lower() == wanted for s in self.specialization or [])
