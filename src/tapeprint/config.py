"""Configuration management for tapeprint."""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

from tapeprint.models.printer import PrinterConfig

logger = logging.getLogger(__name__)


class AppConfig(BaseModel):
    """Application configuration loaded from tapeprint.yaml."""

    printer: PrinterConfig | None = None
    # Tape width in mm used when none is given on the command line
    default_width_mm: int | None = None
    preview_path: Path = Path("preview.png")


class Settings(BaseSettings):
    """Environment-based settings."""

    model_config = SettingsConfigDict(
        env_prefix="TAPEPRINT_",
        env_file=".env",
        extra="ignore",
    )

    config_file: Path = Path("tapeprint.yaml")
    debug: bool = False


def load_config(config_path: Path) -> AppConfig:
    """Load application configuration from YAML file."""
    if not config_path.exists():
        logger.debug(f"No config file at {config_path}, using defaults")
        return AppConfig()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return AppConfig.model_validate(data)


# Global settings instance
settings = Settings()
