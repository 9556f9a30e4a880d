"""Runtime configuration for the Meeting Speaker Mapping System."""

from datetime import timedelta

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Session lifecycle
    session_timeout_minutes: int = Field(
        default=120,
        ge=1,
        validation_alias="SPEAKERS_SESSION_TIMEOUT_MINUTES"
    )
    warning_threshold_minutes: int = Field(
        default=5,
        ge=0,
        validation_alias="SPEAKERS_WARNING_THRESHOLD_MINUTES"
    )
    extension_minutes: int = Field(
        default=15,
        ge=1,
        validation_alias="SPEAKERS_EXTENSION_MINUTES"
    )

    # Field validation
    min_field_length: int = Field(
        default=2,
        ge=1,
        validation_alias="SPEAKERS_MIN_FIELD_LENGTH"
    )
    max_name_length: int = Field(
        default=100,
        validation_alias="SPEAKERS_MAX_NAME_LENGTH"
    )
    max_role_length: int = Field(
        default=50,
        validation_alias="SPEAKERS_MAX_ROLE_LENGTH"
    )

    # Role given to a speaker synthesized for an override with no saved mapping
    baseline_role: str = Field(
        default="Participant",
        validation_alias="SPEAKERS_BASELINE_ROLE"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        validation_alias="SPEAKERS_LOG_LEVEL"
    )
    log_json: bool = Field(
        default=False,
        validation_alias="SPEAKERS_LOG_JSON"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def session_timeout(self) -> timedelta:
        """Base idle timeout before a session expires."""
        return timedelta(minutes=self.session_timeout_minutes)

    @property
    def warning_threshold(self) -> timedelta:
        """Window before expiry in which a session is in the warning state."""
        return timedelta(minutes=self.warning_threshold_minutes)

    @property
    def extension_step(self) -> timedelta:
        """Increment added to the timeout by one "extend session" action."""
        return timedelta(minutes=self.extension_minutes)


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global _settings
    _settings = Settings()
    return _settings
