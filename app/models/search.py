"""Request / response models for candidate search.

``SearchQuery`` is transient and never persisted.  ``SearchResult`` is the
wire shape of ``GET /api/v1/candidates``: ``{candidates, totalCount}`` plus an
``error`` string when the datastore could not be queried.
"""

from pydantic import BaseModel, ConfigDict, Field

from app.models.candidate import Candidate


class SearchFilters(BaseModel):
    """Structured filters; ``None`` means unconstrained."""
    country: str | None = None
    status: str | None = None
    job_roles: str | None = None
    accent: str | None = None
    industry: str | None = None
    has_resume: bool = False


class SearchQuery(BaseModel):
    """Free text + filters + pagination cursor."""
    search: str = ""
    filters: SearchFilters = SearchFilters()
    page: int = 1
    page_size: int | None = None

    @property
    def is_search_mode(self) -> bool:
        """True when the free-text query carries any non-whitespace text."""
        return bool(self.search and self.search.strip())


class CandidateHit(Candidate):
    """A candidate row as returned by the ranking function."""
    score: float | None = None


class SearchResult(BaseModel):
    """One ranked page plus the total number of qualifying records."""
    model_config = ConfigDict(populate_by_name=True)

    candidates: list[CandidateHit] = []
    total_count: int = Field(default=0, serialization_alias="totalCount")
    page: int = 1
    page_size: int = Field(default=0, serialization_alias="pageSize")
    error: str | None = None
