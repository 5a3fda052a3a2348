"""Candidate search, CRUD and status endpoints.

GET   /api/v1/candidates                 -- browse / hybrid search
GET   /api/v1/candidates/filter-options  -- distinct filter values
GET   /api/v1/candidates/{id}
POST  /api/v1/candidates
PATCH /api/v1/candidates/{id}
POST  /api/v1/candidates/{id}/hired | /blacklist | /availability

All endpoints require an authenticated dashboard user.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from supabase import AsyncClient

from app.core.auth import get_current_user
from app.core.dependencies import get_search_engine
from app.db.supabase import get_supabase
from app.models.candidate import (
    AvailabilityUpdate,
    Candidate,
    CandidateCreate,
    CandidateUpdate,
    FilterOptions,
    FlagUpdate,
)
from app.models.enums import CandidateStatus, StatusAction
from app.models.search import SearchFilters, SearchQuery
from app.models.user import AuthenticatedUser
from app.services.candidates import create_candidate, get_candidate, update_candidate
from app.services.search import CandidateSearchEngine
from app.services.status import StatusTransitionError, apply_transition

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found(candidate_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Candidate {candidate_id} not found",
    )


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

@router.get("")
async def search_candidates(
    search: str = Query(default="", description="Free text; commas separate keywords"),
    country: str | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias="status"),
    job_roles: str | None = Query(default=None),
    accent: str | None = Query(default=None),
    industry: str | None = Query(default=None),
    has_resume: bool = Query(default=False),
    page: int = Query(default=1),
    page_size: int | None = Query(default=None, alias="pageSize"),
    engine: CandidateSearchEngine = Depends(get_search_engine),
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> dict[str, Any]:
    """Return ``{candidates, totalCount}`` for one page.

    A blank ``search`` browses newest first; otherwise results are ranked by
    semantic similarity plus keyword matches.  Datastore failures come back
    as an ``error`` field with an empty page.
    """
    query = SearchQuery(
        search=search,
        filters=SearchFilters(
            country=country or None,
            status=status_filter or None,
            job_roles=job_roles or None,
            accent=accent or None,
            industry=industry or None,
            has_resume=has_resume,
        ),
        page=page,
        page_size=page_size,
    )
    result = await engine.search(query)

    body = result.model_dump(mode="json", by_alias=True)
    if body.get("error") is None:
        body.pop("error", None)
    return body


@router.get("/filter-options", response_model=FilterOptions)
async def filter_options(
    engine: CandidateSearchEngine = Depends(get_search_engine),
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> FilterOptions:
    return await engine.get_filter_options()


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

@router.get("/{candidate_id}", response_model=Candidate)
async def read_candidate(
    candidate_id: str,
    client: AsyncClient = Depends(get_supabase),
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> Candidate:
    try:
        return await get_candidate(client, candidate_id)
    except LookupError:
        raise _not_found(candidate_id)


@router.post("", response_model=Candidate, status_code=201)
async def add_candidate(
    payload: CandidateCreate,
    client: AsyncClient = Depends(get_supabase),
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> Candidate:
    try:
        return await create_candidate(client, payload, current_user.id)
    except Exception as exc:
        logger.error("candidate_create_failed", extra={"error_message": str(exc)})
        raise HTTPException(status_code=500, detail=f"Failed to create candidate: {exc}")


@router.patch("/{candidate_id}", response_model=Candidate)
async def edit_candidate(
    candidate_id: str,
    payload: CandidateUpdate,
    client: AsyncClient = Depends(get_supabase),
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> Candidate:
    if not payload.model_fields_set:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        return await update_candidate(client, candidate_id, payload, current_user.id)
    except LookupError:
        raise _not_found(candidate_id)


# ---------------------------------------------------------------------------
# Status transitions
# ---------------------------------------------------------------------------

async def _transition(
    client: AsyncClient,
    candidate_id: str,
    action: StatusAction,
    target: bool | CandidateStatus,
    user: AuthenticatedUser,
) -> Candidate:
    try:
        return await apply_transition(client, candidate_id, action, target, user.id)
    except LookupError:
        raise _not_found(candidate_id)
    except StatusTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


@router.post("/{candidate_id}/hired", response_model=Candidate)
async def mark_hired(
    candidate_id: str,
    body: FlagUpdate = FlagUpdate(),
    client: AsyncClient = Depends(get_supabase),
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> Candidate:
    """Hire (``value=true``, allowed from any state) or un-hire a candidate."""
    return await _transition(client, candidate_id, StatusAction.hired, body.value, current_user)


@router.post("/{candidate_id}/blacklist", response_model=Candidate)
async def toggle_blacklist(
    candidate_id: str,
    body: FlagUpdate = FlagUpdate(),
    client: AsyncClient = Depends(get_supabase),
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> Candidate:
    """Blacklist or clear; 409 while the candidate is hired."""
    return await _transition(client, candidate_id, StatusAction.blacklist, body.value, current_user)


@router.post("/{candidate_id}/availability", response_model=Candidate)
async def set_availability(
    candidate_id: str,
    body: AvailabilityUpdate,
    client: AsyncClient = Depends(get_supabase),
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> Candidate:
    """Set Available / Not Available; 409 while blacklisted or hired."""
    return await _transition(
        client, candidate_id, StatusAction.availability, body.status, current_user
    )
