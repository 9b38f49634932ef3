"""Settings for gfsretain.

This module defines the pydantic model holding the run configuration
(candidate backup folders, filename format, retention windows, dry-run and
logging options) and loads it from a JSON settings file.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..error_handling import ConfigurationError

DEFAULT_CANDIDATE_FOLDERS = [
    "Machines",
    "~/Google Drive/My Drive/Backups/Machines",
]
DEFAULT_IGNORED_NAMES = [".DS_Store"]


class RetentionSettings(BaseModel):
    """Model holding the configuration of a retention run."""
    candidate_folders: List[str] = Field(default_factory=lambda: list(DEFAULT_CANDIDATE_FOLDERS))
    ignored_names: List[str] = Field(default_factory=lambda: list(DEFAULT_IGNORED_NAMES))
    delimiter: str = "-"
    recent_days: int = Field(default=7, gt=0)
    daily_days: int = Field(default=90, gt=0)
    max_age_days: int = Field(default=365, gt=0)
    keep_first: bool = False
    dry_run: bool = True
    log_level: str = "info"
    log_dir: Optional[str] = None

    model_config = {
        "extra": "forbid",
        "json_schema_extra": {
            "example": {
                "candidate_folders": ["/srv/backups/machines"],
                "ignored_names": [".DS_Store"],
                "recent_days": 7,
                "daily_days": 90,
                "max_age_days": 365,
                "keep_first": False,
                "dry_run": True,
                "log_level": "info",
                "log_dir": "~/.gfsretain/logs"
            }
        }
    }

    @field_validator("delimiter")
    @classmethod
    def validate_delimiter(cls, v):
        if len(v) != 1:
            raise ValueError("delimiter must be a single character")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        if v.lower() not in ("debug", "info", "warning", "error", "critical"):
            raise ValueError(f"unknown log level: {v}")
        return v.lower()

    @model_validator(mode="after")
    def validate_windows(self):
        if not self.recent_days < self.daily_days < self.max_age_days:
            raise ValueError("retention windows must satisfy recent_days < daily_days < max_age_days")
        return self

    def logging_settings(self) -> Dict[str, Any]:
        """Settings dictionary understood by LoggingManager.configure()."""
        return {"console_level": self.log_level, "log_dir": self.log_dir}


def load_settings(path: Optional[Union[str, Path]] = None) -> RetentionSettings:
    """Load settings from a JSON file.

    Args:
        path: Settings file; defaults are returned when None

    Returns:
        RetentionSettings: Validated settings

    Raises:
        ConfigurationError: If the file is missing or unreadable, not JSON, or fails validation
    """
    if path is None:
        return RetentionSettings()

    path = Path(path).expanduser()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigurationError(f"Settings file not found: {path}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read settings file {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise ConfigurationError(f"Settings file {path} is not UTF-8 text: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Settings file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a JSON object")

    try:
        return RetentionSettings(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings in {path}: {e}") from e


def apply_overrides(settings: RetentionSettings, **overrides) -> RetentionSettings:
    """Return a copy of settings with the non-None overrides applied and revalidated.

    Raises:
        ConfigurationError: If the resulting settings are invalid
    """
    update = {key: value for key, value in overrides.items() if value is not None}
    if not update:
        return settings
    try:
        return RetentionSettings(**{**settings.model_dump(), **update})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e
