"""Scheduling trace output with three verbosity levels.

Level 1 (CHANGES) reports placements and aborted projects, level 2 (CHECKS)
adds candidate evaluation and skipped tasks, level 3 (DEBUG) adds each day's
allocation. Caller-visible problems always go into the returned warnings;
this output is for people reading along.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

CHANGES_LEVEL = 25  # Between INFO and WARNING
CHECKS_LEVEL = 15  # Between DEBUG and INFO

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

LOGGER_NAME = "cadence"

# -v count -> logger level
_VERBOSITY_LEVELS = (logging.ERROR, CHANGES_LEVEL, CHECKS_LEVEL, logging.DEBUG)


class CadenceLogger(logging.Logger):
    """Logger with ``changes()`` and ``checks()`` for the custom levels."""

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


def get_logger() -> CadenceLogger:
    """Return the shared ``cadence`` logger."""
    logging.setLoggerClass(CadenceLogger)
    logger = logging.getLogger(LOGGER_NAME)
    assert isinstance(logger, CadenceLogger)
    return logger


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Send trace output at ``verbosity`` (0-3) to ``stream`` (stderr by default).

    Out-of-range values are clamped. Calling again replaces the handler.
    """
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(_VERBOSITY_LEVELS[max(0, min(verbosity, len(_VERBOSITY_LEVELS) - 1))])

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Drop handlers and go back to errors only."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.ERROR)


def debug_enabled() -> bool:
    """True at verbosity 3, for output that is costly to format."""
    return get_logger().isEnabledFor(logging.DEBUG)
