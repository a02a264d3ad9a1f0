"""Settings file loading (cadence_config.yaml)."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError, ValidationError
from .scheduler.config import SchedulingConfig

DEFAULT_SETTINGS_FILE = "cadence_config.yaml"


class Settings(BaseModel):
    """Everything a settings file can configure."""

    scheduler: SchedulingConfig = Field(default_factory=SchedulingConfig)


def load_settings(config_path: Path | str) -> Settings:
    """Load settings from a YAML file.

    Raises:
        ParseError: If the file is missing, not YAML, or not a mapping
        ValidationError: If a section fails validation
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ParseError(f"Config file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse YAML: {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ParseError("Config must contain a mapping at the root level")

    try:
        return Settings.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid config: {e}") from e


def discover_settings(
    snapshot_path: Path | None = None, config_path: Path | None = None
) -> Settings:
    """Find and load settings, falling back to defaults.

    Search order:
    1. Explicit config_path argument
    2. snapshot directory / cadence_config.yaml
    3. Current directory / cadence_config.yaml
    """
    if config_path is not None:
        return load_settings(config_path)

    candidates: list[Path] = []
    if snapshot_path is not None:
        candidates.append(Path(snapshot_path).parent / DEFAULT_SETTINGS_FILE)
    candidates.append(Path(DEFAULT_SETTINGS_FILE))

    for candidate in candidates:
        if candidate.exists():
            return load_settings(candidate)
    return Settings()
