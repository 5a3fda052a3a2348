"""Health check endpoint.

Returns service status including database connectivity, scheduler state
and the migration run currently holding the run lock (if any).
"""

import logging
from typing import Any

from fastapi import APIRouter
from starlette.responses import JSONResponse

from app.core.constants import CANDIDATES_TABLE
from app.db.supabase import get_supabase
from app.scheduler.jobs import is_scheduler_running
from app.scheduler.lock import get_current_run

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check() -> Any:
    """Return 200 when the database answers, 503 otherwise."""
    db_status = "disconnected"

    try:
        client = await get_supabase()
        result = await client.table(CANDIDATES_TABLE).select("id").limit(1).execute()
        if result is not None:
            db_status = "connected"
    except Exception:
        logger.warning("Health check: Supabase connection failed", exc_info=True)

    scheduler_status = "running" if is_scheduler_running() else "stopped"

    payload: dict[str, str | None] = {
        "status": "ok" if db_status == "connected" else "degraded",
        "database": db_status,
        "scheduler": scheduler_status,
        "active_run": get_current_run(),
    }

    if db_status != "connected":
        return JSONResponse(status_code=503, content=payload)

    return payload
