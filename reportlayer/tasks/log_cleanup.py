"""Scheduled cleanup of old log records created by CLI scripts and course restores."""

import logging
import time
from dataclasses import dataclass
from typing import Callable

from reportlayer.core.identifiers import validate_table_prefix
from reportlayer.db.base import BaseDatabaseAdapter

logger = logging.getLogger(__name__)

DAY = 24 * 3600

# Stop starting new batches after this many seconds
TIME_LIMIT = 20 * 60

ELIGIBLE = "timecreated < ? AND origin IN ('cli', 'restore')"


@dataclass
class CleanupResult:
    """Outcome of one cleanup run."""

    batches: int = 0
    completed: bool = True


class LogCleanupTask:
    """Delete standard log records with origin 'cli' or 'restore' older than the log lifetime.

    Records are deleted one day at a time, oldest first, each day as its own
    statement. A run stops once nothing eligible remains or the time limit
    has passed; the next scheduled run picks up the remaining rows. Database
    errors propagate so the scheduler can retry later.
    """

    def __init__(
        self,
        adapter: BaseDatabaseAdapter,
        log_lifetime_days: int | None,
        table_prefix: str = "",
        time_limit: float = TIME_LIMIT,
        batch_size: int = DAY,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize task.

        Args:
            adapter: Database adapter
            log_lifetime_days: Keep records newer than this many days; empty or
                non-positive disables the cleanup
            table_prefix: Prefix of physical table names
            time_limit: Seconds after which no new batch is started
            batch_size: Seconds of log history deleted per statement
            clock: Returns the current unix time
        """
        self.adapter = adapter
        self.log_lifetime_days = log_lifetime_days
        self.table = f"{validate_table_prefix(table_prefix)}logstore_standard_log"
        self.time_limit = time_limit
        self.batch_size = batch_size
        self.clock = clock

    def execute(self) -> CleanupResult:
        if not self.log_lifetime_days or self.log_lifetime_days < 0:
            logger.info("Log cleanup disabled, no log lifetime configured")
            return CleanupResult(batches=0, completed=True)

        start = self.clock()
        cutoff = int(start) - int(self.log_lifetime_days) * DAY
        result = CleanupResult(batches=0, completed=False)

        while True:
            oldest = self.adapter.fetchone(
                self.adapter.execute(f"SELECT MIN(timecreated) FROM {self.table} WHERE {ELIGIBLE}", [cutoff])
            )
            if oldest is None or oldest[0] is None:
                result.completed = True
                break

            ceiling = min(int(oldest[0]) + self.batch_size, cutoff)
            self.adapter.execute(f"DELETE FROM {self.table} WHERE {ELIGIBLE}", [ceiling])
            result.batches += 1

            if self.clock() > start + self.time_limit:
                # Leave the rest for the next run
                logger.info("Log cleanup stopped after %d batches, time limit reached", result.batches)
                break

        logger.info("Deleted old log records with origin restore and cli from standard store")
        return result
