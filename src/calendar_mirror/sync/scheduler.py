"""Periodic sync registration using APScheduler."""

import logging
from typing import Callable

from apscheduler.schedulers.base import BaseScheduler

from ..config import ALLOWED_INTERVALS
from ..utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SYNC_JOB_ID = "calendar_mirror_sync"


def remove_periodic_sync(scheduler: BaseScheduler) -> int:
    """Remove every registration of the sync job. Returns how many were removed."""
    removed = 0
    for job in scheduler.get_jobs():
        if job.id == SYNC_JOB_ID or job.id.startswith(f"{SYNC_JOB_ID}:"):
            scheduler.remove_job(job.id)
            removed += 1
    if removed:
        logger.info(f"Removed {removed} existing sync registration(s)")
    return removed


def register_periodic_sync(
    scheduler: BaseScheduler,
    sync_func: Callable[[], object],
    interval_minutes: int = 15,
):
    """
    Register ``sync_func`` to run every ``interval_minutes``.

    Existing registrations are cleared first so at most one is ever active.
    The job never overlaps itself and missed ticks collapse into one run.

    Raises:
        ConfigurationError: If the interval is not 15 or 60 minutes
    """
    if interval_minutes not in ALLOWED_INTERVALS:
        raise ConfigurationError(
            f"Sync interval must be one of {ALLOWED_INTERVALS} minutes, got {interval_minutes}"
        )

    remove_periodic_sync(scheduler)
    job = scheduler.add_job(
        sync_func,
        "interval",
        minutes=interval_minutes,
        id=SYNC_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    logger.info(f"Calendar sync scheduled every {interval_minutes} minutes")
    return job
