"""
Settings for the triage desk service.

Values come from environment variables prefixed with TRIAGE_DESK_, after
loading a .env file from the working directory if one exists.
"""

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

from triage_desk.exceptions import ConfigurationError

ENV_PREFIX = "TRIAGE_DESK_"

DEFAULT_SAMPLE_DATA_PATH = Path(__file__).parent.parent / "sample_data.json"

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseModel):
    log_level: str = "INFO"
    # Shared secret the registration form must present
    register_patient_secret: str | None = None
    sample_data_path: Path = DEFAULT_SAMPLE_DATA_PATH

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if value not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(sorted(VALID_LOG_LEVELS))}"
            )
        return value


def _from_environ() -> dict[str, str]:
    values = {}
    for name in Settings.model_fields:
        raw = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None and raw != "":
            values[name] = raw
    return values


def load_settings() -> Settings:
    """
    Build settings from the environment.

    Raises ConfigurationError if any value fails validation.
    """
    load_dotenv()
    try:
        return Settings(**_from_environ())
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def reset_settings() -> None:
    get_settings.cache_clear()
