"""Snapshot loading from YAML or JSON files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError, ValidationError
from .models import Snapshot

SNAPSHOT_SECTIONS = ("projects", "workers", "users", "tasks")


def parse_snapshot(data: Any) -> Snapshot:
    """Validate already-parsed snapshot data.

    Raises:
        ParseError: If the data is not a mapping
        ValidationError: If a record cannot be normalized
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ParseError("Snapshot must contain a mapping at the root level")

    unknown = [key for key in data if key not in SNAPSHOT_SECTIONS]  # type: ignore[misc]
    if unknown:
        raise ParseError(f"Unknown snapshot section(s): {', '.join(map(str, unknown))}")

    try:
        return Snapshot.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid snapshot: {e}") from e


def load_snapshot(file_path: Path | str) -> Snapshot:
    """Load a snapshot file (JSON is accepted as a YAML subset).

    Raises:
        ParseError: If the file is missing or not valid YAML
        ValidationError: If a record cannot be normalized
    """
    path = Path(file_path)
    if not path.exists():
        raise ParseError(f"File not found: {file_path}")

    try:
        with path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse YAML: {e}") from e

    return parse_snapshot(data)
