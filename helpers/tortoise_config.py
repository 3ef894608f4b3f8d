from tortoise import Tortoise
from contextlib import asynccontextmanager
import logging

from helpers.settings import get_settings


logger = logging.getLogger(__name__)

MODEL_MODULES = [
    "models.clinic",
    "models.doctor",
    "models.affiliation",
    "models.availability",
]


def build_tortoise_config(db_url: str) -> dict:
    return {
        'connections': {
            'default': db_url
        },
        "apps": {
            "models": {
                "models": MODEL_MODULES,
                "default_connection": "default",
            }
        }
    }


@asynccontextmanager
async def lifespan(_):
    settings = get_settings()
    if not settings.database_uri:
        raise ValueError("DATABASE_URI environment variable is not set.")

    await Tortoise.init(config=build_tortoise_config(settings.database_uri))
    if settings.generate_schemas:
        await Tortoise.generate_schemas(safe=True)
    logger.info("Availability store connected")
    try:
        yield
    finally:
        await Tortoise.close_connections()
