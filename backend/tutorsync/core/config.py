from functools import lru_cache
import re
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"

FALLBACK_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Settings(BaseSettings):
    # Resolve to backend/.env so the engine picks up overrides from any cwd.
    model_config = SettingsConfigDict(
        env_prefix="TUTORSYNC_",
        env_file=str(BACKEND_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    min_window_minutes: int = 30
    grid_step_minutes: int = 15
    default_timezone: str = "UTC"
    fallback_time: str = "09:00"
    same_day_cutoff_hour: int = 12

    expiry_days_after_session: int = 1
    retire_empty_sessions: bool = True

    @field_validator("min_window_minutes", "grid_step_minutes")
    @classmethod
    def require_positive_minutes(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Minute granularity must be at least 1")
        if value >= 24 * 60:
            raise ValueError("Minute granularity must be shorter than a day")
        return value

    @field_validator("fallback_time")
    @classmethod
    def validate_fallback_time(cls, value: str) -> str:
        stripped = value.strip()
        if not FALLBACK_TIME_PATTERN.match(stripped):
            raise ValueError("fallback_time must be in HH:MM 24-hour format")
        return stripped

    @field_validator("same_day_cutoff_hour")
    @classmethod
    def validate_cutoff_hour(cls, value: int) -> int:
        if not 0 <= value <= 23:
            raise ValueError("same_day_cutoff_hour must be between 0 and 23")
        return value

    @field_validator("expiry_days_after_session")
    @classmethod
    def validate_expiry_days(cls, value: int) -> int:
        if value < 0:
            raise ValueError("expiry_days_after_session cannot be negative")
        return value

    @field_validator("default_timezone")
    @classmethod
    def validate_default_timezone(cls, value: str) -> str:
        stripped = value.strip()
        return stripped or "UTC"


@lru_cache
def get_settings() -> Settings:
    return Settings()
