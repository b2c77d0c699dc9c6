from functools import lru_cache
from typing import Any
from urllib.parse import urlparse, urlunparse

from pydantic import AnyUrl, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

STATS_PERIODS = ("day", "week", "month", "year")


def _ensure_sqlalchemy_postgres_scheme(value: str) -> str:
    if not value.lower().startswith("postgres"):
        return value

    parsed = urlparse(value)
    scheme = parsed.scheme.lower()
    if scheme in {"postgres", "postgresql"}:
        scheme = "postgresql+psycopg"

    return urlunparse(parsed._replace(scheme=scheme))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = Field(False, description="Enable FastAPI debug mode")
    environment: str = Field(
        default="development",
        description="Runtime environment (development|staging|production)",
    )
    database_url: AnyUrl | str = Field(
        default="sqlite:///./data/relay_fills.db",
        description="SQLAlchemy compatible database URL",
    )
    production_database_url: AnyUrl | str | None = Field(
        default=None,
        description="Postgres connection string used when ENVIRONMENT=production",
    )
    default_page_limit: int = Field(
        default=20, description="Page size used when a listing omits ?limit", ge=1
    )
    max_page_limit: int = Field(
        default=50, description="Largest page size a listing may request", ge=1
    )
    background_workers: int = Field(
        default=2,
        description="Worker threads reserved for best-effort background tasks such as search logging",
        ge=1,
    )
    stats_default_period: str = Field(
        default="day",
        description="Statistics window used when /v1/stats/network omits ?period",
    )

    @field_validator("stats_default_period")
    @classmethod
    def _validate_stats_period(cls, value: str) -> str:
        if value not in STATS_PERIODS:
            raise ValueError(
                "stats_default_period must be one of: " + ", ".join(STATS_PERIODS)
            )
        return value

    @field_validator("max_page_limit")
    @classmethod
    def _validate_max_page_limit(cls, value: int, info: ValidationInfo) -> int:
        default_limit = info.data.get("default_page_limit")
        if default_limit is not None and value < default_limit:
            raise ValueError("max_page_limit cannot be smaller than default_page_limit")
        return value

    @field_validator("database_url", "production_database_url", mode="before")
    @classmethod
    def _normalize_postgres_urls(cls, value: Any) -> Any:
        if value is None or not isinstance(value, str):
            return value
        if value.startswith("postgres://"):
            return "postgresql://" + value[len("postgres://") :]
        return value

    @property
    def resolved_database_url(self) -> str:
        if self.environment.lower() == "production":
            if not self.production_database_url:
                raise ValueError(
                    "PRODUCTION_DATABASE_URL must be set when ENVIRONMENT=production"
                )
            return _ensure_sqlalchemy_postgres_scheme(str(self.production_database_url))
        return _ensure_sqlalchemy_postgres_scheme(str(self.database_url))


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
