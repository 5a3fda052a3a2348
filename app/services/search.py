"""Hybrid candidate search and ranking.

One entry point, two modes selected by the free-text query:

* **browse** (blank query): filters only, newest first.  Page and total come
  from a single ``count="exact"`` request.
* **search** (non-blank query): the query is embedded and handed, together
  with its keywords and the filters, to the ``search_candidates`` Postgres
  function (``sql/search_candidates.sql``).  It fuses vector similarity with
  a keyword-match boost, breaks ties by recency and returns ``total_count``
  via a window over the same predicate, so the count never drifts from the
  page.

If the embedding provider fails, the function is called with a null query
vector and ranking falls back to keywords + recency.  Datastore failures are
reported on the result (``error``) instead of being raised.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from supabase import AsyncClient

from app.core.constants import (
    CANDIDATE_COLUMNS,
    CANDIDATES_TABLE,
    SEARCH_KEYWORD_WEIGHT,
    SEARCH_RPC_NAME,
    SEARCH_VECTOR_WEIGHT,
)
from app.models.candidate import FilterOptions, candidate_from_row
from app.models.search import CandidateHit, SearchFilters, SearchQuery, SearchResult
from app.services.candidates import get_filter_options as load_filter_options
from app.services.embedding import EmbeddingClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], Awaitable[AsyncClient]]


def parse_keywords(search: str) -> list[str]:
    """Comma-separated keywords, trimmed, blanks dropped."""
    return [keyword.strip() for keyword in search.split(",") if keyword.strip()]


def apply_filters(query: Any, filters: SearchFilters) -> Any:
    """Apply the structured filters to a PostgREST query builder.

    Mirrors the WHERE clause of ``search_candidates`` so both modes agree on
    which rows qualify.
    """
    if filters.country:
        query = query.eq("country", filters.country)
    if filters.status:
        query = query.eq("candidate_status", filters.status)
    if filters.job_roles:
        query = query.ilike("job_roles", f"%{filters.job_roles}%")
    if filters.accent:
        query = query.eq("english_accent", filters.accent)
    if filters.industry:
        query = query.eq("industry", filters.industry)
    if filters.has_resume:
        query = query.not_.is_("resume_text", "null")
    return query


def _hit_from_row(row: dict[str, Any]) -> CandidateHit:
    candidate = candidate_from_row(row)
    return CandidateHit(**candidate.model_dump(), score=row.get("score"))


class CandidateSearchEngine:
    """Resolve a ``SearchQuery`` into a ranked, paginated ``SearchResult``."""

    def __init__(
        self,
        client_factory: ClientFactory,
        embedder: EmbeddingClient,
        default_page_size: int = 20,
        max_page_size: int = 100,
        vector_weight: float = SEARCH_VECTOR_WEIGHT,
        keyword_weight: float = SEARCH_KEYWORD_WEIGHT,
    ) -> None:
        self.client_factory = client_factory
        self.embedder = embedder
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self.vector_weight = vector_weight
        self.keyword_weight = keyword_weight

    def normalize_paging(self, page: int | None, page_size: int | None) -> tuple[int, int]:
        """Clamp to ``page >= 1`` and ``1 <= page_size <= max_page_size``."""
        page = max(1, page or 1)
        size = page_size or self.default_page_size
        return page, max(1, min(size, self.max_page_size))

    async def search(self, query: SearchQuery) -> SearchResult:
        page, page_size = self.normalize_paging(query.page, query.page_size)
        offset = (page - 1) * page_size

        try:
            if query.is_search_mode:
                hits, total = await self._ranked(query, page_size, offset)
            else:
                hits, total = await self._browse(query.filters, page_size, offset)
        except Exception as exc:
            logger.error(
                "candidate_search_failed",
                extra={
                    "mode": "search" if query.is_search_mode else "browse",
                    "page": page,
                    "error_message": str(exc),
                },
            )
            return SearchResult(page=page, page_size=page_size, error=f"Search failed: {exc}")

        return SearchResult(candidates=hits, total_count=total, page=page, page_size=page_size)

    async def _browse(
        self, filters: SearchFilters, limit: int, offset: int
    ) -> tuple[list[CandidateHit], int]:
        client = await self.client_factory()
        query = client.table(CANDIDATES_TABLE).select(CANDIDATE_COLUMNS, count="exact")
        query = apply_filters(query, filters)
        result = await (
            query.order("created_at", desc=True)
            .order("id", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        rows = result.data or []
        return [_hit_from_row(row) for row in rows], int(result.count or 0)

    def build_rpc_params(
        self,
        query: SearchQuery,
        embedding: list[float] | None,
        limit: int,
        offset: int,
    ) -> dict[str, Any]:
        filters = query.filters
        return {
            "q_embedding": embedding or None,
            "keywords": parse_keywords(query.search),
            "f_country": filters.country or None,
            "f_status": filters.status or None,
            "f_job_roles": filters.job_roles or None,
            "f_accent": filters.accent or None,
            "f_industry": filters.industry or None,
            "f_has_resume": True if filters.has_resume else None,
            "vector_weight": self.vector_weight,
            "keyword_weight": self.keyword_weight,
            "limit_count": limit,
            "offset_count": offset,
        }

    async def _ranked(
        self, query: SearchQuery, limit: int, offset: int
    ) -> tuple[list[CandidateHit], int]:
        embedding = await self.embedder.embed(query.search.strip())
        if not embedding:
            logger.warning(
                "search_degraded_without_embedding",
                extra={"query_length": len(query.search)},
            )

        client = await self.client_factory()
        params = self.build_rpc_params(query, embedding, limit, offset)
        result = await client.rpc(SEARCH_RPC_NAME, params).execute()
        rows: list[dict[str, Any]] = result.data or []

        if rows:
            total = int(rows[0].get("total_count") or 0)
        elif offset > 0:
            # Past the last page: read the total from the first row of the same predicate
            count_result = await client.rpc(
                SEARCH_RPC_NAME, {**params, "limit_count": 1, "offset_count": 0}
            ).execute()
            count_rows = count_result.data or []
            total = int(count_rows[0].get("total_count") or 0) if count_rows else 0
        else:
            total = 0

        return [_hit_from_row(row) for row in rows], total

    async def get_filter_options(self) -> FilterOptions:
        """Distinct values for the filter panel."""
        return await load_filter_options(await self.client_factory())
