"""Periodic reconciliation sweep on an APScheduler AsyncIOScheduler."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config.settings import settings
from src.sc_admin.application.service import ReconciliationService

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone="UTC")

_service = ReconciliationService()


async def reconcile_job() -> None:
    try:
        await _service.reconcile_stale_plays()
    except Exception:
        logger.exception("[reconcile_job] sweep failed")


def start_scheduler() -> None:
    if not settings.RECONCILE_ENABLED:
        logger.info("Reconciliation sweep disabled")
        return

    scheduler.add_job(
        reconcile_job,
        "interval",
        seconds=settings.RECONCILE_INTERVAL_SECONDS,
        id="reconcile_stale_plays",
        replace_existing=True,
        coalesce=True,
        max_instances=1,  # two sweeps must never race on the same play
        misfire_grace_time=30,
    )
    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started (reconcile every %ds)", settings.RECONCILE_INTERVAL_SECONDS)


def shutdown_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
