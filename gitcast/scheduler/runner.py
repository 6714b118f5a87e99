"""APScheduler process firing the refresh triggers on their cron schedules.

Run with::

    gitcast-scheduler

"""

from __future__ import annotations

import asyncio
import os
import typing as typ

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from gitcast.config import PipelineConfig
from gitcast.farcaster.client import WarpcastClient, WarpcastConfig
from gitcast.logging import configure_logging, get_logger, log_info, log_warning
from gitcast.pipeline.broker import ensure_broker_configured
from gitcast.pipeline.factory import create_session_factory
from gitcast.pipeline.publisher import DramatiqTaskPublisher
from gitcast.store.gateway import StoreGateway

from .refresh import RefreshScheduler, TriggerName

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)

SCHEDULE_TIMEZONE = "UTC"

TRIGGER_SCHEDULES: dict[TriggerName, str] = {
    TriggerName.VERIFICATION_REFRESH: "0 0 */2 * *",
    TriggerName.ACTIVITY_REFRESH: "*/30 * * * *",
    TriggerName.STAR_REFRESH: "0 12 * * *",
    TriggerName.RETENTION_SWEEP: "0 0 * * *",
}


def build_scheduler(
    refresh: RefreshScheduler,
    *,
    schedules: cabc.Mapping[TriggerName, str] | None = None,
) -> AsyncIOScheduler:
    """Return a scheduler with one cron job per trigger.

    Parameters
    ----------
    refresh
        Trigger implementation invoked by each job.
    schedules
        Crontab expressions keyed by trigger; defaults to
        :data:`TRIGGER_SCHEDULES`.

    Returns
    -------
    AsyncIOScheduler
        An unstarted scheduler; call ``start()`` inside a running loop.

    """
    scheduler = AsyncIOScheduler(timezone=SCHEDULE_TIMEZONE)
    for trigger, expression in (schedules or TRIGGER_SCHEDULES).items():
        scheduler.add_job(
            refresh.run,
            CronTrigger.from_crontab(expression, timezone=SCHEDULE_TIMEZONE),
            args=[[trigger]],
            id=trigger.value,
            name=trigger.value,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
    return scheduler


def create_refresh_scheduler() -> RefreshScheduler:
    """Create a :class:`RefreshScheduler` from environment configuration."""
    ensure_broker_configured()
    return RefreshScheduler(
        store=StoreGateway(create_session_factory()),
        directory=WarpcastClient(WarpcastConfig.from_env()),
        publisher=DramatiqTaskPublisher(),
        config=PipelineConfig.from_env(),
    )


async def _serve() -> None:
    scheduler = build_scheduler(create_refresh_scheduler())
    scheduler.start()
    for job in scheduler.get_jobs():
        log_info(logger, "Scheduled %s: next run at %s", job.id, job.next_run_time)
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)


def main() -> None:
    """Run the scheduler process until interrupted."""
    level, invalid = configure_logging(os.environ.get("GITCAST_LOG_LEVEL"))
    if invalid:
        log_warning(
            logger,
            "Invalid GITCAST_LOG_LEVEL value %r; using %s",
            os.environ.get("GITCAST_LOG_LEVEL"),
            level,
        )
    asyncio.run(_serve())


__all__ = ["TRIGGER_SCHEDULES", "build_scheduler", "create_refresh_scheduler", "main"]
