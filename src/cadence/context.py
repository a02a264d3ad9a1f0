"""Global application context and state management."""

from __future__ import annotations

from pathlib import Path


class _Context:
    """Process-wide CLI state set by the global options callback."""

    def __init__(self) -> None:
        self.config_path: Path | None = None


# Singleton instance
_context = _Context()


def get_config_path() -> Path | None:
    """Get the settings file path given with --config."""
    return _context.config_path


def set_config_path(path: Path | None) -> None:
    """Set the settings file path given with --config."""
    _context.config_path = path
