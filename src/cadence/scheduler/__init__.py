"""Scheduler package - capacity-aware, dependency-respecting task scheduling.

This package provides:
- Calendar arithmetic over per-worker working-day sets
- Cycle detection and priority-aware topological ordering
- A shared capacity ledger with greedy per-worker allocation
- Best-fit worker search for unassigned tasks
- Reconciliation of in-flight tasks with their status history
- SchedulingService, which runs all of the above across projects

Main entry points:
- SchedulingService: Schedule a whole Snapshot
- calculate_all_projects_schedules: Functional wrapper around SchedulingService
"""

from .assignment import WorkerChoice, find_best_available_worker
from .calendar import (
    compare_dates,
    count_working_days,
    first_working_day,
    is_working_day,
    max_date,
    next_working_day,
)
from .capacity import CapacityStatus, WorkerUtilization, period_capacity, worker_utilization
from .config import DelayConfig, SchedulingConfig
from .core import ProjectSchedule, ScheduledInterval, ScheduleEntry, ScheduleResult
from .delay import DelayReport, DelayStatus, calculate_delay
from .graph import build_dependency_graph, detect_cycle, ensure_acyclic
from .history import RealInterval, real_interval
from .ledger import (
    Allocation,
    CapacityLedger,
    allocate_capacity,
    debit_interval,
    plan_allocation,
    schedule_on_worker,
)
from .ordering import sort_by_priority, topological_sort
from .service import SchedulingService, calculate_all_projects_schedules
from .validator import SchedulerInputValidator

__all__ = [
    # Results
    "ScheduleEntry",
    "ScheduledInterval",
    "ProjectSchedule",
    "ScheduleResult",
    # Configuration
    "SchedulingConfig",
    "DelayConfig",
    # Service
    "SchedulingService",
    "calculate_all_projects_schedules",
    "SchedulerInputValidator",
    # Calendar
    "is_working_day",
    "next_working_day",
    "first_working_day",
    "compare_dates",
    "max_date",
    "count_working_days",
    # Graph and ordering
    "build_dependency_graph",
    "detect_cycle",
    "ensure_acyclic",
    "topological_sort",
    "sort_by_priority",
    # History
    "RealInterval",
    "real_interval",
    # Capacity
    "Allocation",
    "CapacityLedger",
    "allocate_capacity",
    "plan_allocation",
    "schedule_on_worker",
    "debit_interval",
    "WorkerChoice",
    "find_best_available_worker",
    # Reporting
    "DelayReport",
    "DelayStatus",
    "calculate_delay",
    "CapacityStatus",
    "WorkerUtilization",
    "period_capacity",
    "worker_utilization",
]
