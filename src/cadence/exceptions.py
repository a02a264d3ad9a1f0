"""Custom exceptions for Cadence."""


class CadenceError(Exception):
    """Base exception for all Cadence errors."""

    pass


class ValidationError(CadenceError):
    """Raised when snapshot data cannot be normalized."""

    pass


class CircularDependencyError(ValidationError):
    """Raised when a dependency cycle is detected.

    The offending cycle is available as ``cycle``: task IDs in path order,
    with the first ID repeated at the end.
    """

    def __init__(self, cycle: list[str], message: str | None = None) -> None:
        self.cycle = cycle
        super().__init__(message or f"Circular dependency: {' -> '.join(cycle)}")


class ParseError(CadenceError):
    """Raised when a snapshot or settings file cannot be parsed."""

    pass
