"""Scheduled tasks."""

from reportlayer.tasks.log_cleanup import CleanupResult, LogCleanupTask

__all__ = ["CleanupResult", "LogCleanupTask"]
