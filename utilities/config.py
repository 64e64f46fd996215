"""
Configuration management using environment variables.
Handles database, seeding and logging settings with validation and defaults.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class LibraryConfig(BaseSettings):
    """
    Configuration class for the book catalog.
    Uses pydantic BaseSettings for environment variable management.
    """

    # MongoDB Configuration
    mongodb_url: str = Field(default="mongodb://localhost:27017")
    mongodb_database: str = Field(default="bookdb")
    mongodb_collection: str = Field(default="books")
    mongodb_timeout_ms: int = Field(default=5000)

    # Seed Data
    seed_on_startup: bool = Field(default=True)
    seed_file: str = Field(default="data/books.json")

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    log_file: Optional[str] = Field(default=None)

    # Development/Testing
    debug: bool = Field(default=False)

    @field_validator('mongodb_timeout_ms')
    @classmethod
    def validate_timeout(cls, v):
        """Ensure timeout is reasonable."""
        if v < 100 or v > 120000:
            raise ValueError('mongodb_timeout_ms must be between 100 and 120000')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"  # Ignore extra fields from .env
    }

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def get_seed_file_path(self) -> Path:
        """Get seed file path as Path object."""
        return Path(self.seed_file)


# Global configuration instance
config = LibraryConfig()
