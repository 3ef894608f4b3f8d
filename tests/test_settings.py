import pytest

from helpers.settings import Settings, load_settings


ENV_VARS = [
    "DATABASE_URI",
    "JWT_SECRET",
    "SLOT_DURATION_MINUTES",
    "BULK_GENERATION_CONCURRENCY",
    "MAX_BULK_DATES",
    "GENERATE_SCHEMAS",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return str(tmp_path / "missing.env")


def test_defaults(clean_env):
    settings = load_settings(dotenv_path=clean_env)

    assert settings.slot_duration_minutes == 30
    assert settings.max_slots_per_day == 48
    assert settings.bulk_concurrency == 5
    assert settings.max_bulk_dates == 90
    assert settings.generate_schemas is True
    assert settings.database_uri is None
    assert settings.log_level == "INFO"


def test_environment_overrides(clean_env, monkeypatch):
    monkeypatch.setenv("DATABASE_URI", "sqlite://:memory:")
    monkeypatch.setenv("SLOT_DURATION_MINUTES", "15")
    monkeypatch.setenv("BULK_GENERATION_CONCURRENCY", "2")
    monkeypatch.setenv("GENERATE_SCHEMAS", "no")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings(dotenv_path=clean_env)

    assert settings.database_uri == "sqlite://:memory:"
    assert settings.slot_duration_minutes == 15
    assert settings.max_slots_per_day == 96
    assert settings.bulk_concurrency == 2
    assert settings.generate_schemas is False
    assert settings.log_level == "DEBUG"


def test_rejects_non_integer(clean_env, monkeypatch):
    monkeypatch.setenv("SLOT_DURATION_MINUTES", "fifteen")

    with pytest.raises(ValueError, match="SLOT_DURATION_MINUTES"):
        load_settings(dotenv_path=clean_env)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"slot_duration_minutes": 0},
        {"slot_duration_minutes": 1441},
        {"bulk_concurrency": 0},
        {"max_bulk_dates": 0},
    ],
)
def test_rejects_out_of_range_values(kwargs):
    with pytest.raises(ValueError):
        Settings(**kwargs)
