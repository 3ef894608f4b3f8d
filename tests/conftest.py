import pytest
import pytest_asyncio
from tortoise import Tortoise

from helpers.settings import Settings
from helpers.tortoise_config import build_tortoise_config
from models.affiliation import Affiliation, AffiliationStatus
from models.clinic import Clinic
from models.doctor import Doctor


# 2026-10-19 is a Monday.
MONDAY = "2026-10-19"
TUESDAY = "2026-10-20"
WEDNESDAY = "2026-10-21"
SATURDAY = "2026-10-24"
SUNDAY = "2026-10-25"

WEEKDAYS_ONLY = ["monday", "tuesday", "wednesday", "thursday", "friday"]


@pytest_asyncio.fixture
async def db():
    await Tortoise.init(config=build_tortoise_config("sqlite://:memory:"))
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def settings():
    return Settings(slot_duration_minutes=15, jwt_secret="test-secret")


@pytest_asyncio.fixture
async def clinic(db):
    return await Clinic.create(name="Central Clinic", address="1 Main St")


@pytest.fixture
def make_affiliation(clinic):
    """Factory creating a doctor affiliated with a clinic (the `clinic` fixture by default)."""

    async def _make(
        name="Dr. Garcia",
        specialization=("cardiology",),
        rating=4.5,
        working_days=WEEKDAYS_ONLY,
        start="09:00",
        end="18:00",
        status=AffiliationStatus.ACTIVE,
        fee=500,
        at_clinic=None,
    ):
        doctor = await Doctor.create(name=name, specialization=list(specialization), rating=rating, experience=10)
        return await Affiliation.create(
            doctor=doctor,
            clinic=at_clinic or clinic,
            status=status,
            working_days=list(working_days),
            working_hours_start=start,
            working_hours_end=end,
            consultation_fee=fee,
        )

    return _make
