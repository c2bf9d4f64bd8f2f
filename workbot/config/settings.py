import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_database_url() -> str:
    """Get database URL, using an absolute path for the local SQLite fallback.

    SQLite is only meant for local development. Set DATABASE_URL to a
    PostgreSQL connection string anywhere data has to survive a restart.
    """
    db_url = os.getenv("DATABASE_URL", "")
    if db_url:
        logger.info(f"Using DATABASE_URL from environment: {db_url}")
        return db_url

    db_path = Path(__file__).parent.parent.parent / "workbot.db"
    db_url = f"sqlite:///{db_path.resolve()}"
    logger.warning(f"Using SQLite database (LOCAL DEV ONLY): {db_url}")
    return db_url


class Settings(BaseSettings):
    database_url: str = Field(
        default_factory=get_database_url,
        validation_alias="DATABASE_URL",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="WORKBOT_LOG_FILE")
    log_rotation: str = Field(default="10 MB", validation_alias="WORKBOT_LOG_ROTATION")
    log_retention: str = Field(default="7 days", validation_alias="WORKBOT_LOG_RETENTION")
    timezone: str = Field(
        default="Asia/Kolkata",
        validation_alias="WORKBOT_TIMEZONE",
        description="Timezone used to derive the reference date for requests",
    )
    member_window_days: int = Field(
        default=90,
        validation_alias="MEMBER_WINDOW_DAYS",
        description="How many days past today a non-admin may edit",
    )
    max_command_length: int = Field(default=1000, validation_alias="MAX_COMMAND_LENGTH")
    max_apply_batch: int = Field(default=100, validation_alias="MAX_APPLY_BATCH")
    llm_provider: str = Field(default="openai", validation_alias="LLM_PROVIDER")
    llm_model: str = Field(default="gpt-4o-mini", validation_alias="LLM_MODEL")
    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Fall back to Asia/Kolkata when the configured zone is unknown."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown WORKBOT_TIMEZONE '{value}'. Defaulting to Asia/Kolkata.")
            return "Asia/Kolkata"
        return value

    @field_validator("member_window_days", "max_command_length", "max_apply_batch")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Limits must be positive."""
        if value <= 0:
            raise ValueError(f"must be positive, got {value}")
        return value

    @field_validator("openai_api_key")
    @classmethod
    def validate_openai_api_key(cls, value: str) -> str:
        """Warn when the proposer has no credentials.

        Resolution and commit work without them; only /parse needs the model.
        """
        if not value:
            logger.warning("OPENAI_API_KEY is not set. Command parsing through the language model will be unavailable.")
        return value


settings = Settings()
