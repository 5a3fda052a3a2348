"""Candidate CRUD and filter-option lookups for the dashboard."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from supabase import AsyncClient

from app.core.constants import (
    CANDIDATE_COLUMNS,
    CANDIDATES_TABLE,
    FILTER_OPTIONS_CAPS,
    FILTER_OPTIONS_SCAN_LIMIT,
)
from app.models.candidate import (
    Candidate,
    CandidateCreate,
    CandidateUpdate,
    FilterOptions,
    candidate_from_row,
)

logger = logging.getLogger(__name__)

# FilterOptions attribute -> candidates column
_FILTER_OPTION_COLUMNS: dict[str, str] = {
    "countries": "country",
    "statuses": "candidate_status",
    "accents": "english_accent",
    "industries": "industry",
}


async def get_candidate(client: AsyncClient, candidate_id: int | str) -> Candidate:
    """Fetch one candidate or raise ``LookupError``."""
    result = (
        await client.table(CANDIDATES_TABLE)
        .select(CANDIDATE_COLUMNS)
        .eq("id", candidate_id)
        .limit(1)
        .execute()
    )
    if not result.data:
        raise LookupError(f"Candidate {candidate_id} not found")
    return candidate_from_row(result.data[0])


async def create_candidate(
    client: AsyncClient,
    payload: CandidateCreate,
    user_id: str | None,
) -> Candidate:
    row = payload.model_dump(mode="json", exclude_none=True)
    row["last_updated_by"] = user_id

    result = await client.table(CANDIDATES_TABLE).insert(row).execute()
    if not result.data:
        raise RuntimeError("Candidate insert returned no row")

    candidate = candidate_from_row(result.data[0])
    logger.info("candidate_created", extra={"candidate_id": candidate.id, "user_id": user_id})
    return candidate


async def update_candidate(
    client: AsyncClient,
    candidate_id: int | str,
    payload: CandidateUpdate,
    user_id: str | None,
) -> Candidate:
    """Overwrite the fields present in *payload*.

    Raises:
        ValueError: the payload sets no field.
        LookupError: the candidate does not exist.
    """
    update: dict[str, Any] = payload.model_dump(mode="json", exclude_unset=True)
    if not update:
        raise ValueError("No fields to update")

    update["last_updated_by"] = user_id
    update["updated_at"] = datetime.now(timezone.utc).isoformat()
    # Edited rows become eligible for the embedding backfill again
    update["embedding_skipped_at"] = None

    result = (
        await client.table(CANDIDATES_TABLE)
        .update(update)
        .eq("id", candidate_id)
        .execute()
    )
    if not result.data:
        raise LookupError(f"Candidate {candidate_id} not found")

    logger.info(
        "candidate_updated",
        extra={"candidate_id": candidate_id, "fields": sorted(update), "user_id": user_id},
    )
    return candidate_from_row(result.data[0])


async def _distinct_values(client: AsyncClient, column: str, cap: int) -> list[str]:
    result = (
        await client.table(CANDIDATES_TABLE)
        .select(column)
        .not_.is_(column, "null")
        .limit(FILTER_OPTIONS_SCAN_LIMIT)
        .execute()
    )
    values = {row.get(column) for row in result.data or []}
    return sorted(v for v in values if v)[:cap]


async def get_filter_options(client: AsyncClient) -> FilterOptions:
    """Distinct non-null values for the dashboard filter dropdowns.

    Each column scans a bounded number of rows; on failure the options are
    empty rather than an error.
    """
    try:
        results = await asyncio.gather(
            *(
                _distinct_values(client, column, FILTER_OPTIONS_CAPS[key])
                for key, column in _FILTER_OPTION_COLUMNS.items()
            )
        )
    except Exception as exc:
        logger.error("filter_options_failed", extra={"error_message": str(exc)})
        return FilterOptions()

    return FilterOptions(**dict(zip(_FILTER_OPTION_COLUMNS, results)))
