"""Periodic maintenance: session keep-alive, daily counter reset, membership expiry."""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from skillbridge.auth import AuthService
from skillbridge.config.models import AppConfig
from skillbridge.logging import get_logger
from skillbridge.persistence import PersistenceError, ProfileRepository, get_session
from skillbridge.utils import utc_now

from .service import ScheduledJob

logger = get_logger(__name__, component="maintenance")

KEEP_ALIVE = "session-keep-alive"
DAILY_RESET = "daily-counter-reset"
MEMBERSHIP_SWEEP = "membership-expiry-sweep"
SESSION_PURGE = "session-purge"


class MaintenanceTasks:
    """Job bodies for the scheduler.

    Each task logs and swallows persistence failures so one bad run does not
    kill the scheduler thread; the next interval simply tries again.
    """

    def __init__(
        self,
        auth_service: AuthService,
        clock: Callable[[], datetime] = utc_now,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.auth_service = auth_service
        self.clock = clock
        self.logger = logger_instance or logger

    def keep_sessions_alive(self) -> int:
        try:
            return self.auth_service.keep_alive()
        except PersistenceError as e:
            self.logger.error(
                f"Session keep-alive failed: {e}", extra={"event": "maintenance.keepalive.failed"}
            )
            return 0

    def reset_daily_counters(self) -> int:
        now = self.clock()
        try:
            with get_session() as session:
                reset = ProfileRepository(session).reset_daily_counters(now.date(), now)
        except PersistenceError as e:
            self.logger.error(
                f"Daily counter reset failed: {e}", extra={"event": "maintenance.daily_reset.failed"}
            )
            return 0
        self.logger.info(
            f"Reset daily task counters on {reset} profiles",
            extra={"event": "maintenance.daily_reset.completed", "profiles": reset},
        )
        return reset

    def expire_memberships(self) -> int:
        now = self.clock()
        try:
            with get_session() as session:
                expired = ProfileRepository(session).expire_memberships(now)
        except PersistenceError as e:
            self.logger.error(
                f"Membership expiry sweep failed: {e}",
                extra={"event": "maintenance.membership_sweep.failed"},
            )
            return 0
        self.logger.info(
            f"Expired {expired} memberships",
            extra={"event": "maintenance.membership_sweep.completed", "expired": expired},
        )
        return expired

    def purge_sessions(self) -> int:
        try:
            return self.auth_service.purge_dead_sessions()
        except PersistenceError as e:
            self.logger.error(
                f"Session purge failed: {e}", extra={"event": "maintenance.session_purge.failed"}
            )
            return 0

    def run_all(self) -> Dict[str, int]:
        """Run every task once, in order; used by the CLI."""
        return {
            KEEP_ALIVE: self.keep_sessions_alive(),
            DAILY_RESET: self.reset_daily_counters(),
            MEMBERSHIP_SWEEP: self.expire_memberships(),
            SESSION_PURGE: self.purge_sessions(),
        }

    def scheduled_jobs(self, config: AppConfig) -> List[ScheduledJob]:
        return [
            ScheduledJob(
                job_id=KEEP_ALIVE,
                name="Session keep-alive",
                func=self.keep_sessions_alive,
                interval_seconds=config.auth.keep_alive_interval_seconds,
            ),
            ScheduledJob(
                job_id=DAILY_RESET,
                name="Daily task counter reset",
                func=self.reset_daily_counters,
                interval_seconds=config.scheduler.daily_reset_interval_seconds,
                run_immediately=True,
            ),
            ScheduledJob(
                job_id=MEMBERSHIP_SWEEP,
                name="Membership expiry sweep",
                func=self.expire_memberships,
                interval_seconds=config.scheduler.membership_sweep_interval_seconds,
                run_immediately=True,
            ),
            ScheduledJob(
                job_id=SESSION_PURGE,
                name="Dead session purge",
                func=self.purge_sessions,
                interval_seconds=config.scheduler.daily_reset_interval_seconds,
            ),
        ]
