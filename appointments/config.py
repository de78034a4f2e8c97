"""Runtime settings loaded from the environment.

Values come from ``APPOINTMENTS_*`` environment variables, optionally read
from a ``.env`` file first.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator


class Settings(BaseModel):
    """Application settings.

    Args:
        log_level: Root logging level name.
        default_page_size: Page size used when a listing request gives none.
        max_page_size: Largest page size a listing request may ask for.
    """

    log_level: str = Field(default="INFO", description="Logging level")
    default_page_size: int = Field(default=50, ge=1, description="Default page size")
    max_page_size: int = Field(default=100, ge=1, description="Maximum page size")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, level: str) -> str:
        """Normalize and check the logging level name.

        Raises:
            ValueError: If the level is not a standard logging level.
        """
        level = level.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {level}")
        return level

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``APPOINTMENTS_*`` environment variables."""
        load_dotenv()
        values = {}
        for field in ("log_level", "default_page_size", "max_page_size"):
            value = os.environ.get(f"APPOINTMENTS_{field.upper()}")
            if value is not None:
                values[field] = value
        return cls(**values)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    return Settings.from_env()
