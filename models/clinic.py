from tortoise import fields
from tortoise.models import Model


class Clinic(Model):
    id = fields.IntField(primary_key=True)
    name = fields.CharField(max_length=255)
    address = fields.CharField(max_length=500, null=True)
    phone = fields.CharField(max_length=20, null=True)

    affiliations: fields.ReverseRelation["Affiliation"]

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "clinics"
