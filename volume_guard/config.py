"""Configuration management using Pydantic Settings"""

from datetime import time
from decimal import Decimal
from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from volume_guard.domain.exceptions import ConfigurationError
from volume_guard.domain.models import GuardConfig


class Settings(BaseSettings):
    """Worker configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Stripe
    stripe_secret_key: str = ""
    stripe_api_base: str = "https://api.stripe.com"
    account_id: str = ""

    # Guard policy
    account_timezone: str = "Etc/GMT-4"
    currency: str = "aed"
    daily_limit: Decimal = Field(default=Decimal("30"), gt=0)
    delay_cycle_days: List[int] = Field(default_factory=lambda: [1, 3, 5, 7, 9])
    reschedule_time: time = time(12, 0, 0)
    notification_reset_time: time = time(0, 0, 0)
    dry_run: bool = False

    # Notifications
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    telegram_api_base: str = "https://api.telegram.org"

    # Transfer log side-channel
    transfer_log_url: str = ""
    transfer_log_secret: str = ""

    # Control plane
    gateway_secret: str = ""

    # Scheduler
    scheduler_enabled: bool = True
    tick_interval_seconds: float = 60.0

    # Service
    service_name: str = "volume-guard"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 10.0
    settlement_lookup_concurrency: int = Field(default=8, ge=1)

    @field_validator("account_timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @field_validator("delay_cycle_days")
    @classmethod
    def _positive_cycle(cls, value: List[int]) -> List[int]:
        if not value:
            raise ValueError("delay_cycle_days must not be empty")
        if any(days <= 0 for days in value):
            raise ValueError("delay_cycle_days must contain positive day offsets only")
        return value

    @field_validator("currency")
    @classmethod
    def _lower_currency(cls, value: str) -> str:
        return value.lower()

    def to_guard_config(self) -> GuardConfig:
        """
        Build the immutable guard configuration.

        Raises:
            ConfigurationError: When Stripe credentials or the account id are missing
        """
        if not self.stripe_secret_key:
            raise ConfigurationError("STRIPE_SECRET_KEY is not set")
        if not self.account_id:
            raise ConfigurationError("ACCOUNT_ID is not set")

        return GuardConfig(
            account_id=self.account_id,
            timezone=ZoneInfo(self.account_timezone),
            currency=self.currency,
            daily_limit=self.daily_limit,
            delay_cycle=tuple(self.delay_cycle_days),
            reschedule_time=self.reschedule_time,
            dry_run=self.dry_run,
        )


settings = Settings()
