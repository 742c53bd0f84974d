from pydantic_settings import BaseSettings
from pydantic import field_validator
from datetime import date


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "Campus Attendance Analytics"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./attendance.db"
    DATABASE_ECHO: bool = False

    # Redis settings (optional shared cache for multi-instance deployments)
    REDIS_URL: str = "redis://localhost:6379"
    REDIS_ENABLED: bool = False

    # Query cache settings
    CACHE_DEFAULT_TTL: int = 300
    CACHE_CHECK_PERIOD: int = 60
    OVERVIEW_FILTERED_TTL: int = 300
    OVERVIEW_UNFILTERED_TTL: int = 900

    # Earliest day considered when a query has no start date
    SYSTEM_START_DATE: date = date(2020, 1, 1)

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v):
        if not v:
            raise ValueError("DATABASE_URL is required")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper()

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
    }


settings = Settings()
