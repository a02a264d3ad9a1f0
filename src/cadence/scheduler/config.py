"""Configuration classes for the scheduling system."""

from pydantic import BaseModel, model_validator


class DelayConfig(BaseModel):
    """Thresholds for in-flight delay tracking."""

    warning_days: float = 1.0  # Delay at or above this is a warning
    danger_days: float = 2.0  # Delay at or above this is dangerous
    workday_start_hour: int = 9  # Hour the working day starts (fractional last day)
    workday_hours: int = 8  # Length of a working day in hours

    @model_validator(mode="after")
    def validate_thresholds(self) -> "DelayConfig":
        """Ensure thresholds are ordered and the working day is non-empty."""
        if self.danger_days < self.warning_days:
            raise ValueError("danger_days must be >= warning_days")
        if self.workday_hours <= 0:
            raise ValueError("workday_hours must be positive")
        return self


class SchedulingConfig(BaseModel):
    """Configuration for capacity allocation and worker selection."""

    # Search bounds
    max_allocation_days: int = 365  # Calendar days walked before a task is unschedulable
    working_day_search_days: int = 14  # Days scanned for a first working day

    # Worker selection for unassigned tasks
    prefer_project_workers: bool = True  # Try the project's pool before everyone
    warn_on_simulated_assignment: bool = True  # Report every best-fit assignment

    delay: DelayConfig = DelayConfig()

    @model_validator(mode="after")
    def validate_bounds(self) -> "SchedulingConfig":
        """Ensure search bounds are positive."""
        if self.max_allocation_days <= 0:
            raise ValueError("max_allocation_days must be positive")
        if self.working_day_search_days <= 0:
            raise ValueError("working_day_search_days must be positive")
        return self
