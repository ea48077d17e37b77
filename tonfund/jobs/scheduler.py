"""APScheduler setup and job registration."""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from tonfund.config import settings
from tonfund.jobs.reconcile_burns import reconcile_unverified_burns
from tonfund.jobs.refund_rejections import refund_eligible_rejections

scheduler = AsyncIOScheduler(timezone=settings.timezone)


def register_jobs() -> None:
    """Register all periodic jobs if not already present."""
    if scheduler.get_job("refund_rejections") is None:
        scheduler.add_job(
            refund_eligible_rejections,
            CronTrigger(minute=settings.refund_job_minute, timezone=settings.timezone),
            id="refund_rejections",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    if scheduler.get_job("reconcile_burns") is None:
        scheduler.add_job(
            reconcile_unverified_burns,
            CronTrigger(minute=settings.burn_job_minute, timezone=settings.timezone),
            id="reconcile_burns",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
