"""Input snapshot models.

Projects, workers and tasks arrive as read-only snapshots from an external
data layer. These pydantic models are the single normalization point: once a
snapshot is validated, scheduling code never re-checks whether an optional
field is present.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

ALL_WEEKDAYS = (1, 2, 3, 4, 5, 6, 7)

# Effort at or below this is float residue, not work
POINTS_EPSILON = 1e-9


class TaskStatus(str, Enum):
    """Scheduling-relevant task status."""

    NOT_STARTED = "not-started"
    ACTIVE = "active"
    IN_REVIEW = "in-review"
    DONE = "done"
    OTHER = "other"  # Domain-specific statuses, scheduled like not-started


# Spellings used by older boards
_STATUS_ALIASES = {
    "pending": TaskStatus.NOT_STARTED,
    "todo": TaskStatus.NOT_STARTED,
    "in-progress": TaskStatus.ACTIVE,
    "in_progress": TaskStatus.ACTIVE,
    "qa": TaskStatus.IN_REVIEW,
    "review": TaskStatus.IN_REVIEW,
    "in_review": TaskStatus.IN_REVIEW,
    "completed": TaskStatus.DONE,
    "not_started": TaskStatus.NOT_STARTED,
}


def normalize_status(value: Any) -> TaskStatus:
    """Map a raw status value onto TaskStatus (unknown values become OTHER)."""
    if isinstance(value, TaskStatus):
        return value
    if value is None:
        return TaskStatus.NOT_STARTED
    text = str(value).strip().lower()
    try:
        return TaskStatus(text)
    except ValueError:
        return _STATUS_ALIASES.get(text, TaskStatus.OTHER)


def naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC (naive values are assumed UTC already)."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class _SnapshotModel(BaseModel):
    """Base for snapshot records: frozen, accepts snake_case or camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("id", "project_id", mode="before", check_fields=False)
    @classmethod
    def coerce_identifier(cls, v: Any) -> Any:
        """Numeric identifiers from YAML or JSON are compared as strings."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class Movement(_SnapshotModel):
    """A single status transition in a task's movement log."""

    from_status: TaskStatus | None = Field(default=None, alias="from")
    to_status: TaskStatus | None = Field(default=None, alias="to")
    timestamp: datetime
    type: str | None = None  # "assignment_change" entries are not status transitions

    @field_validator("from_status", "to_status", mode="before")
    @classmethod
    def coerce_status(cls, v: Any) -> TaskStatus | None:
        """Accept legacy status spellings."""
        if v is None:
            return None
        return normalize_status(v)

    @field_validator("timestamp", mode="after")
    @classmethod
    def strip_timezone(cls, v: datetime) -> datetime:
        """Store timestamps as naive UTC so they always compare."""
        return naive_utc(v)

    @property
    def is_status_change(self) -> bool:
        """True unless the entry only records a reassignment."""
        return self.type != "assignment_change"


class Worker(_SnapshotModel):
    """A worker with a daily point budget and a weekly calendar."""

    id: str
    name: str | None = Field(default=None, alias="displayName")
    daily_capacity: float = 0.0
    working_days: list[int] = Field(default_factory=list)

    @field_validator("daily_capacity", mode="before")
    @classmethod
    def coerce_capacity(cls, v: Any) -> float:
        """Missing or non-numeric capacity means the worker cannot be allocated."""
        if v is None or isinstance(v, bool):
            return 0.0
        try:
            return max(0.0, float(v))
        except (TypeError, ValueError):
            return 0.0

    @field_validator("working_days", mode="before")
    @classmethod
    def coerce_working_days(cls, v: Any) -> list[int]:
        """Keep valid ISO weekday numbers (1=Monday..7=Sunday), sorted and unique."""
        if v is None:
            return []
        if not isinstance(v, (list, tuple, set)):
            v = [v]
        days: set[int] = set()
        for item in v:  # type: ignore[union-attr]
            try:
                day = int(item)  # type: ignore[arg-type]
            except (TypeError, ValueError):
                continue
            if day in ALL_WEEKDAYS:
                days.add(day)
        return sorted(days)

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def is_schedulable(self) -> bool:
        """True if the worker can receive real or simulated allocation."""
        return self.daily_capacity > 0 and bool(self.working_days)


class Project(_SnapshotModel):
    """A project with a start date and a preferred worker pool."""

    id: str
    name: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    assigned_users: list[str] = Field(default_factory=list)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> date | None:
        """Accept dates, datetimes and ISO strings; anything unreadable becomes None.

        A project without a usable start date is reported and skipped by the
        scheduler instead of rejecting the whole snapshot.
        """
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, date):
            return v
        if isinstance(v, str):
            try:
                return date.fromisoformat(v.strip()[:10])
            except ValueError:
                return None
        return None

    @field_validator("assigned_users", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [str(item) for item in v]  # type: ignore[misc]
        return [str(v)]

    @property
    def display_name(self) -> str:
        return self.name or self.id


class Task(_SnapshotModel):
    """A unit of estimated work inside a project."""

    id: str
    project_id: str
    title: str | None = None
    story_points: float = 0.0
    dependencies: list[str] = Field(default_factory=list)
    assigned_to: str | None = None
    status: TaskStatus = TaskStatus.NOT_STARTED
    priority: float | None = None
    created_at: datetime | None = None
    movement_history: list[Movement] = Field(default_factory=list)

    @field_validator("story_points", mode="before")
    @classmethod
    def coerce_points(cls, v: Any) -> float:
        """Absent, negative or non-numeric effort counts as unestimated (0)."""
        if v is None or isinstance(v, bool):
            return 0.0
        try:
            return max(0.0, float(v))
        except (TypeError, ValueError):
            return 0.0

    @field_validator("dependencies", mode="before")
    @classmethod
    def coerce_dependencies(cls, v: Any) -> list[str]:
        """Dependencies are an order-irrelevant set; drop blanks and duplicates."""
        if v is None:
            return []
        if not isinstance(v, (list, tuple, set)):
            v = [v]
        seen: dict[str, None] = {}
        for item in v:  # type: ignore[union-attr]
            if item is None or str(item).strip() == "":
                continue
            seen.setdefault(str(item).strip(), None)
        return list(seen)

    @field_validator("assigned_to", mode="before")
    @classmethod
    def coerce_assignee(cls, v: Any) -> str | None:
        if v is None or str(v).strip() == "":
            return None
        return str(v).strip()

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, v: Any) -> TaskStatus:
        return normalize_status(v)

    @field_validator("priority", mode="before")
    @classmethod
    def coerce_priority(cls, v: Any) -> float | None:
        """Only real numbers are priorities; anything else sorts last."""
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return None
        if v != v:  # NaN
            return None
        return float(v)

    @field_validator("created_at", mode="after")
    @classmethod
    def strip_timezone(cls, v: datetime | None) -> datetime | None:
        return naive_utc(v) if v is not None else None

    @field_validator("movement_history", mode="before")
    @classmethod
    def drop_unreadable_movements(cls, v: Any) -> list[Any]:
        """Skip log entries that cannot be validated (e.g. without a timestamp).

        A task whose log loses the transitions it needs falls back to simulation.
        """
        if v is None:
            return []
        if not isinstance(v, (list, tuple)):
            v = [v]
        kept: list[Any] = []
        for item in v:  # type: ignore[union-attr]
            if isinstance(item, Movement):
                kept.append(item)
                continue
            try:
                kept.append(Movement.model_validate(item))
            except PydanticValidationError:
                continue
        return kept

    @property
    def display_name(self) -> str:
        return self.title or self.id

    @property
    def is_estimated(self) -> bool:
        return self.story_points > POINTS_EPSILON

    @property
    def has_started(self) -> bool:
        """True for statuses whose dates come from history, not simulation."""
        return self.status in (TaskStatus.ACTIVE, TaskStatus.IN_REVIEW, TaskStatus.DONE)


class Snapshot(_SnapshotModel):
    """Everything one scheduling run reads."""

    projects: list[Project] = Field(default_factory=list)
    workers: list[Worker] = Field(default_factory=list, alias="users")
    tasks: list[Task] = Field(default_factory=list)
