import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class Settings:
    database_uri: Optional[str] = None
    jwt_secret: Optional[str] = None

    # Length of one bookable slot. Shared by every doctor and clinic.
    slot_duration_minutes: int = 30

    # Bulk generation tuning
    bulk_concurrency: int = 5
    max_bulk_dates: int = 90

    generate_schemas: bool = True
    log_level: str = "INFO"

    def __post_init__(self):
        if not 0 < self.slot_duration_minutes <= MINUTES_PER_DAY:
            raise ValueError(
                f"slot_duration_minutes must be between 1 and {MINUTES_PER_DAY}, got {self.slot_duration_minutes}"
            )
        if self.bulk_concurrency < 1:
            raise ValueError(f"bulk_concurrency must be at least 1, got {self.bulk_concurrency}")
        if self.max_bulk_dates < 1:
            raise ValueError(f"max_bulk_dates must be at least 1, got {self.max_bulk_dates}")

    @property
    def max_slots_per_day(self) -> int:
        """Most slots any working window can produce at the configured duration."""
        return MINUTES_PER_DAY // self.slot_duration_minutes


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"Invalid {name} value: {raw!r}. Expected an integer.") from e


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in {"0", "false", "no"}


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    load_dotenv(dotenv_path=dotenv_path, override=False)

    return Settings(
        database_uri=os.getenv("DATABASE_URI") or None,
        jwt_secret=os.getenv("JWT_SECRET") or None,
        slot_duration_minutes=_int_env("SLOT_DURATION_MINUTES", 30),
        bulk_concurrency=_int_env("BULK_GENERATION_CONCURRENCY", 5),
        max_bulk_dates=_int_env("MAX_BULK_DATES", 90),
        generate_schemas=_bool_env("GENERATE_SCHEMAS", True),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
