"""Background scheduling of maintenance jobs."""

from .service import ScheduledJob, SchedulerService
from .tasks import DAILY_RESET, KEEP_ALIVE, MEMBERSHIP_SWEEP, SESSION_PURGE, MaintenanceTasks

__all__ = [
    "SchedulerService",
    "ScheduledJob",
    "MaintenanceTasks",
    "KEEP_ALIVE",
    "DAILY_RESET",
    "MEMBERSHIP_SWEEP",
    "SESSION_PURGE",
]
