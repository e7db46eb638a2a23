import os
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    env: str = Field(default="dev", description="Deployment environment")
    app_name: str = "Wage Approval Engine"
    database_url: str = Field(
        default="postgresql+psycopg2://postgres:postgres@db:5432/payroll",
        description="Database connection string",
    )
    statement_timeout_ms: int = Field(default=10_000, gt=0, description="Per-statement timeout")
    pool_pre_ping: bool = True

    base_url: str = Field(default="http://localhost:9002", description="Public application URL")
    approval_path: str = "/approve-wages"
    cors_origins: list[str] = Field(default_factory=list)

    log_level: str = "INFO"
    sentry_dsn: str | None = Field(default=None, description="Sentry DSN for error monitoring")
    otlp_endpoint: str | None = Field(default=None, description="OTLP endpoint for traces/metrics")

    normal_hours_threshold: Decimal = Decimal("45")
    overtime_multiplier: Decimal = Decimal("1.5")
    fnpf_rate: Decimal = Decimal("0.08")
    daily_normal_hours: Decimal = Decimal("8")

    model_config = SettingsConfigDict(env_prefix="WAGE_ENGINE_", extra="ignore")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("approval_path")
    @classmethod
    def ensure_leading_slash(cls, value: str) -> str:
        return value if value.startswith("/") else f"/{value}"

    @property
    def env_file_path(self) -> Path:
        env_specific = BASE_DIR / f".env.{self.env}"
        return env_specific if env_specific.exists() else BASE_DIR / ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings(_env_file=get_settings_env_file())


def get_settings_env_file() -> str | None:
    """Resolve environment-specific env file if it exists."""
    env = os.getenv("WAGE_ENGINE_ENV", "dev")
    env_file = BASE_DIR / f".env.{env}"
    default_file = BASE_DIR / ".env"
    if env_file.exists():
        return str(env_file)
    if default_file.exists():
        return str(default_file)
    return None
