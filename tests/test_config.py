import pytest
from pydantic import ValidationError as SettingsError

from food_ordering.core.config import (
    DEFAULT_JWT_SECRET,
    EnvironmentMode,
    FulfillmentMode,
    Settings,
)


def test_defaults_from_test_environment():
    settings = Settings()

    assert settings.env_mode is EnvironmentMode.DEVELOPMENT
    assert settings.fulfillment_mode is FulfillmentMode.DISABLED
    assert settings.fulfillment_enabled is False
    assert settings.bcrypt_rounds == 4


def test_fulfillment_schedule_parsing():
    settings = Settings(fulfillment_schedule="confirmed:1, preparing:4,ready:10")

    assert settings.fulfillment_steps == [("confirmed", 1), ("preparing", 4), ("ready", 10)]


def test_malformed_fulfillment_schedule():
    with pytest.raises(SettingsError):
        Settings(fulfillment_schedule="confirmed:soon")


def test_modes_are_case_insensitive():
    settings = Settings(env_mode="PRODUCTION", fulfillment_mode="Simulated")

    assert settings.is_production
    assert settings.fulfillment_enabled


def test_cors_origins_list():
    settings = Settings(cors_origins="http://a.test, http://b.test,")

    assert settings.cors_origins_list == ["http://a.test", "http://b.test"]


def test_production_config_flags_insecure_values():
    settings = Settings(
        env_mode="production",
        jwt_secret=DEFAULT_JWT_SECRET,
        database_url="sqlite+aiosqlite:///./prod.db",
    )

    assert settings.validate_production_config() == ["JWT_SECRET", "DATABASE_URL"]


def test_development_config_is_never_flagged():
    settings = Settings(jwt_secret=DEFAULT_JWT_SECRET)

    assert settings.validate_production_config() == []


def test_max_line_quantity():
    assert Settings().max_line_quantity == 99

    with pytest.raises(SettingsError):
        Settings(max_line_quantity=0)
