"""
Environment-driven configuration for budgetsplit.

Every value can be overridden with a ``BUDGETSPLIT_`` prefixed environment
variable (or a ``.env`` file next to manage.py). ``settings.py`` reads the
cached instance returned by ``get_settings()``.
"""
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class RateLimitSettings(BaseModel):
    max_requests: int = Field(..., gt=0)
    window_seconds: int = Field(..., gt=0)


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BUDGETSPLIT_",
        env_file=BASE_DIR / ".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    secret_key: str = "django-insecure-budgetsplit-dev-key-change-me"
    debug: bool = False
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "testserver"]
    database_path: Path = BASE_DIR / "db.sqlite3"
    log_level: str = "INFO"

    # Dashboard money formatting
    currency_symbol: str = "R$"
    decimal_separator: str = ","
    thousands_separator: str = "."

    # Share of income each expense type may take, in percent
    rule_percentages: dict[str, int] = {
        "NEEDS": 50,
        "WANTS": 30,
        "RESERVES": 10,
        "INVESTMENTS": 10,
    }

    import_max_file_size: int = Field(5 * 1024 * 1024, gt=0)
    import_max_rows: int = Field(10_000, gt=0)
    import_max_errors: int = Field(10, ge=0)
    pending_expiration_hours: int = Field(5, gt=0)

    import_rate_limit: RateLimitSettings = RateLimitSettings(max_requests=10, window_seconds=60 * 60)
    login_rate_limit: RateLimitSettings = RateLimitSettings(max_requests=5, window_seconds=15 * 60)
    login_email_rate_limit: RateLimitSettings = RateLimitSettings(max_requests=3, window_seconds=15 * 60)

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("rule_percentages")
    @classmethod
    def _rule_covers_income(cls, value: dict[str, int]) -> dict[str, int]:
        expected = {"NEEDS", "WANTS", "RESERVES", "INVESTMENTS"}
        value = {key.upper(): pct for key, pct in value.items()}
        if set(value) != expected:
            raise ValueError(f"rule_percentages must define exactly {sorted(expected)}")
        if any(pct < 0 for pct in value.values()):
            raise ValueError("rule_percentages cannot be negative")
        if sum(value.values()) != 100:
            raise ValueError("rule_percentages must add up to 100")
        return value


@lru_cache
def get_settings() -> AppSettings:
    return AppSettings()
