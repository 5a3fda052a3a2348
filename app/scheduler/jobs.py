"""APScheduler job definitions and scheduler management.

The scheduler always starts with the application so ``/health`` can report
it.  The ``embedding_backfill`` job is only registered when
``EMBEDDING_BACKFILL_INTERVAL_MINUTES`` is positive.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings
from app.core.dependencies import get_ingestion_pipeline
from app.scheduler.lock import acquire_run_lock, get_current_run, release_run_lock

logger = logging.getLogger(__name__)

BACKFILL_JOB_ID = "embedding_backfill"

# Module-level scheduler instance (singleton)
scheduler = AsyncIOScheduler()


async def embedding_backfill_job() -> None:
    """Enrich one batch of unembedded candidates unless another run is active."""
    if not acquire_run_lock(BACKFILL_JOB_ID):
        logger.info(
            "embedding_backfill_skipped",
            extra={"active_run": get_current_run()},
        )
        return

    try:
        pipeline = get_ingestion_pipeline()
        await pipeline.backfill_embeddings(settings.EMBEDDING_BACKFILL_BATCH_SIZE)
    except Exception as exc:
        logger.error("embedding_backfill_failed", extra={"error_message": str(exc)})
    finally:
        release_run_lock()


def start_scheduler() -> None:
    """Register the backfill job (when enabled) and start the scheduler.

    Must be called from within a running event loop (the FastAPI lifespan).
    """
    interval = settings.EMBEDDING_BACKFILL_INTERVAL_MINUTES
    if interval > 0:
        scheduler.add_job(
            embedding_backfill_job,
            IntervalTrigger(minutes=interval),
            id=BACKFILL_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
    scheduler.start()
    logger.info(
        "scheduler_started",
        extra={
            "backfill_interval_minutes": interval,
            "backfill_batch_size": settings.EMBEDDING_BACKFILL_BATCH_SIZE,
        },
    )


def shutdown_scheduler() -> None:
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("scheduler_stopped")


def is_scheduler_running() -> bool:
    """Check if the scheduler is currently running."""
    return scheduler.running
