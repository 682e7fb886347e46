"""
Trade Journal Configuration

Runtime settings for the journal using pydantic-settings for environment
variable management, with optional overrides from a YAML file.
"""

import logging
import os
import sys
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

APP_NAME = "TradingJournal"
APP_VERSION = "1.0.0"


def default_base_dir() -> Path:
    """Per-user application directory, following each platform's convention."""
    if sys.platform == "win32":
        root = os.environ.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
        return Path(root) / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    return Path.home() / ".trading-journal"


class JournalSettings(BaseSettings):
    """
    Journal configuration settings.

    Every field can be overridden with a TRADEJOURNAL_-prefixed environment
    variable, e.g. TRADEJOURNAL_BASE_DIR=/tmp/journal.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TRADEJOURNAL_",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    BASE_DIR: Path = Field(
        default_factory=default_base_dir,
        description="Directory holding the data/ tree.",
    )

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Root log level.",
    )
    JSON_LOGS: bool = Field(
        default=False,
        description="Emit JSON structured logs instead of console format.",
    )
    LOG_FILE: Optional[Path] = Field(
        default=None,
        description="Optional file receiving JSON logs.",
    )

    # Trade list view
    PAGE_SIZE: int = Field(
        default=25,
        ge=1,
        description="Default number of trades per page.",
    )
    MAX_PAGE_SIZE: int = Field(
        default=500,
        ge=1,
        description="Largest page size a caller may request.",
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("BASE_DIR", mode="after")
    @classmethod
    def expand_base_dir(cls, v: Path) -> Path:
        return v.expanduser()

    @model_validator(mode="after")
    def check_page_size(self) -> "JournalSettings":
        if self.PAGE_SIZE > self.MAX_PAGE_SIZE:
            raise ValueError(
                f"PAGE_SIZE ({self.PAGE_SIZE}) exceeds MAX_PAGE_SIZE ({self.MAX_PAGE_SIZE})"
            )
        return self

    @property
    def data_dir(self) -> Path:
        return self.BASE_DIR / "data"


def read_config_file(config_file: Union[str, Path]) -> Dict[str, Any]:
    """
    Read settings overrides from a YAML file.

    Keys are matched case-insensitively against JournalSettings fields; a
    missing file yields no overrides.
    """
    path = Path(config_file)
    if not path.exists():
        logger.debug(f"No config file at {path}")
        return {}

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(raw).__name__}")

    return {str(key).upper(): value for key, value in raw.items()}


def load_settings(config_file: Optional[Union[str, Path]] = None, **overrides: Any) -> JournalSettings:
    """
    Build settings from environment, an optional YAML file and explicit overrides.

    Args:
        config_file: Optional YAML file, applied over environment values
        **overrides: Field values applied last

    Returns:
        JournalSettings instance
    """
    values: Dict[str, Any] = {}
    if config_file is not None:
        values.update(read_config_file(config_file))
    values.update({key.upper(): value for key, value in overrides.items()})
    return JournalSettings(**values)


@lru_cache()
def get_settings() -> JournalSettings:
    """
    Get cached journal settings instance.

    Reads the YAML file named by TRADEJOURNAL_CONFIG_FILE, if set.

    Returns:
        JournalSettings instance with values from environment.
    """
    return load_settings(os.environ.get("TRADEJOURNAL_CONFIG_FILE"))
