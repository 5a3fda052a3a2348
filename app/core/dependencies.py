"""Service construction from ``settings``.

The only place that turns configuration into service instances.  Routers
receive the services through ``Depends`` so tests can swap them via
``app.dependency_overrides``.
"""

from app.core.config import settings
from app.db.supabase import get_supabase
from app.services.airtable import AirtableSource
from app.services.embedding import EmbeddingClient
from app.services.ingestion import IngestionPipeline
from app.services.llm_extraction import LLMExtractor
from app.services.search import CandidateSearchEngine


def get_embedding_client() -> EmbeddingClient:
    return EmbeddingClient(
        api_key=settings.OPENAI_API_KEY,
        base_url=settings.OPENAI_BASE_URL,
        model=settings.EMBEDDING_MODEL,
        dimensions=settings.EMBEDDING_DIMENSIONS,
    )


def get_llm_extractor() -> LLMExtractor:
    return LLMExtractor(
        api_key=settings.OPENAI_API_KEY,
        base_url=settings.OPENAI_BASE_URL,
        model=settings.LLM_MODEL,
        timeout=settings.LLM_TIMEOUT_SECONDS,
    )


def get_search_engine() -> CandidateSearchEngine:
    return CandidateSearchEngine(
        client_factory=get_supabase,
        embedder=get_embedding_client(),
        default_page_size=settings.SEARCH_DEFAULT_PAGE_SIZE,
        max_page_size=settings.SEARCH_MAX_PAGE_SIZE,
    )


def get_ingestion_pipeline() -> IngestionPipeline:
    return IngestionPipeline(
        client_factory=get_supabase,
        source=AirtableSource(
            api_key=settings.AIRTABLE_API_KEY,
            base_id=settings.AIRTABLE_BASE_ID,
            table_name=settings.AIRTABLE_TABLE_NAME,
        ),
        extractor=get_llm_extractor(),
        embedder=get_embedding_client(),
        batch_size=settings.INGEST_BATCH_SIZE,
        batch_delay=settings.INGEST_BATCH_DELAY_SECONDS,
        item_delay=settings.ENRICH_ITEM_DELAY_SECONDS,
    )
