"""Unit tests for settings validation"""

from datetime import time
from decimal import Decimal
import pytest
from pydantic import ValidationError
from volume_guard.config import Settings
from volume_guard.domain.exceptions import ConfigurationError


def test_defaults_match_account_policy():
    settings = Settings(_env_file=None)

    assert settings.account_timezone == "Etc/GMT-4"
    assert settings.currency == "aed"
    assert settings.daily_limit == Decimal("30")
    assert settings.delay_cycle_days == [1, 3, 5, 7, 9]
    assert settings.reschedule_time == time(12, 0, 0)


def test_guard_config_requires_stripe_key():
    settings = Settings(_env_file=None, stripe_secret_key="", account_id="acct_1")
    with pytest.raises(ConfigurationError, match="STRIPE_SECRET_KEY"):
        settings.to_guard_config()


def test_guard_config_requires_account_id():
    settings = Settings(_env_file=None, stripe_secret_key="sk_test", account_id="")
    with pytest.raises(ConfigurationError, match="ACCOUNT_ID"):
        settings.to_guard_config()


def test_guard_config_from_environment(monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test")
    monkeypatch.setenv("ACCOUNT_ID", "acct_1")
    monkeypatch.setenv("CURRENCY", "AED")
    monkeypatch.setenv("DAILY_LIMIT", "45.5")
    monkeypatch.setenv("DELAY_CYCLE_DAYS", "[2, 4]")
    monkeypatch.setenv("RESCHEDULE_TIME", "09:15:00")
    monkeypatch.setenv("DRY_RUN", "true")

    config = Settings(_env_file=None).to_guard_config()

    assert config.account_id == "acct_1"
    assert config.currency == "aed"
    assert config.daily_limit == Decimal("45.5")
    assert config.delay_cycle == (2, 4)
    assert config.reschedule_time == time(9, 15, 0)
    assert config.dry_run is True
    assert config.timezone.key == "Etc/GMT-4"


@pytest.mark.parametrize(
    "overrides",
    [
        {"account_timezone": "Mars/Olympus_Mons"},
        {"daily_limit": 0},
        {"daily_limit": -10},
        {"delay_cycle_days": []},
        {"delay_cycle_days": [1, 0]},
    ],
)
def test_invalid_settings_are_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)
