"""Admin migration endpoints.

POST /api/v1/admin/migration/preview             -- read-only plan (JSON)
POST /api/v1/admin/migration/transfer            -- streamed NDJSON progress
POST /api/v1/admin/migration/enrich              -- streamed NDJSON progress
POST /api/v1/admin/migration/backfill-embeddings -- one backfill batch (JSON)

Admin only.  Transfer, enrich and backfill share the run lock: a second run
while one is active gets 409.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator

import httpx
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from app.core.auth import require_admin
from app.core.dependencies import get_ingestion_pipeline
from app.models.ingestion import (
    BackfillRequest,
    BackfillResult,
    DateRange,
    PreviewReport,
    StreamEvent,
)
from app.models.user import AuthenticatedUser
from app.scheduler.lock import acquire_run_lock, get_current_run, release_run_lock
from app.services.ingestion import IngestionPipeline, SchemaDriftError
from app.services.progress import NDJSON_MEDIA_TYPE, stream_ndjson

logger = logging.getLogger(__name__)

router = APIRouter()


def _acquire_or_conflict(run_name: str) -> None:
    if not acquire_run_lock(run_name):
        active = get_current_run()
        logger.warning(
            "migration_already_running",
            extra={"requested": run_name, "active_run": active},
        )
        raise HTTPException(
            status_code=409,
            detail=f"Migration run '{active}' is already in progress",
        )


class _RunLockedResponse(StreamingResponse):
    """Streams a migration run; the run lock is released when the ASGI call ends,
    including when the client leaves before the event generator starts.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            release_run_lock()


def _stream(events: AsyncIterator[StreamEvent]) -> StreamingResponse:
    return _RunLockedResponse(
        stream_ndjson(events),
        media_type=NDJSON_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache"},
    )


@router.post("/preview", response_model=PreviewReport)
async def preview_migration(
    date_range: DateRange,
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
    admin: AuthenticatedUser = Depends(require_admin),
) -> PreviewReport:
    """Partition source records in the window into new / already present."""
    try:
        return await pipeline.preview(date_range)
    except SchemaDriftError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except httpx.HTTPError as exc:
        logger.error("migration_preview_source_failed", extra={"error_message": str(exc)})
        raise HTTPException(status_code=502, detail=f"Source fetch failed: {exc}")
    except Exception as exc:
        logger.error("migration_preview_failed", extra={"error_message": str(exc)})
        raise HTTPException(status_code=500, detail=f"Preview failed: {exc}")


@router.post("/transfer")
async def transfer_migration(
    date_range: DateRange,
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
    admin: AuthenticatedUser = Depends(require_admin),
) -> StreamingResponse:
    """Upsert new source records in batches; progress streamed as NDJSON."""
    _acquire_or_conflict("transfer")
    logger.info("migration_transfer_started", extra={"user_id": admin.id})
    return _stream(pipeline.transfer(date_range))


@router.post("/enrich")
async def enrich_migration(
    date_range: DateRange,
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
    admin: AuthenticatedUser = Depends(require_admin),
) -> StreamingResponse:
    """Enrich unembedded candidates created in the window; NDJSON progress."""
    _acquire_or_conflict("enrich")
    logger.info("migration_enrich_started", extra={"user_id": admin.id})
    return _stream(pipeline.enrich(date_range))


@router.post("/backfill-embeddings", response_model=BackfillResult)
async def backfill_embeddings(
    body: BackfillRequest = BackfillRequest(),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
    admin: AuthenticatedUser = Depends(require_admin),
) -> BackfillResult:
    """Enrich up to ``limit`` candidates that still lack an embedding."""
    _acquire_or_conflict("backfill")
    try:
        return await pipeline.backfill_embeddings(body.limit)
    except Exception as exc:
        logger.error("migration_backfill_failed", extra={"error_message": str(exc)})
        raise HTTPException(status_code=500, detail=f"Backfill failed: {exc}")
    finally:
        release_run_lock()
