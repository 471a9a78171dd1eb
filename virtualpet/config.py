"""Configuration settings for the virtual pet service — loaded from environment variables."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Raised when the service cannot start because configuration is missing."""


class Settings(BaseSettings):
    """Application settings with env-driven overrides.

    Variables are read without a prefix so the Gemini credentials keep their
    usual names. Example: GEMINI_MODEL_NAME=gemini-1.5-flash sets gemini_model_name.
    """

    # Gemini generative language API
    gemini_api_key: str
    gemini_model_name: str
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_safety_threshold: str = "BLOCK_LOW_AND_ABOVE"
    llm_timeout_sec: Optional[float] = None  # None = wait for the model indefinitely

    # Pet
    pet_name: str = "Milo"

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000
    static_dir: str = "./public"

    log_level: str = "info"

    @field_validator("log_level")
    @classmethod
    def lowercase_log_level(cls, value: str) -> str:
        # uvicorn only knows lowercase level names
        return value.lower()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def require_env_file(env_file: str | Path) -> Path:
    """Ensure the .env file exists.

    Raises:
        ConfigurationError: If the file is absent.
    """
    path = Path(env_file)
    if not path.is_file():
        raise ConfigurationError(f"Error loading {path} file")
    return path


def load_settings(env_file: str | Path = ".env") -> Settings:
    """Load settings from the given .env file and the process environment.

    Args:
        env_file: Path of the .env file, which must exist.

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If the file is missing or a required variable is unset.
    """
    path = require_env_file(env_file)

    try:
        return Settings(_env_file=path)  # type: ignore[call-arg]
    except ValidationError as exc:
        missing = [".".join(str(part) for part in err["loc"]) for err in exc.errors()]
        raise ConfigurationError(
            f"Invalid or missing configuration: {', '.join(missing)}"
        ) from exc
