"""Unit tests for content refinement, embedding input and candidate enrichment."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.services.enrichment import (
    build_embedding_input,
    clean_control_chars,
    enrich_candidate,
    refine_content,
)
from app.services.llm_extraction import empty_profile

FIXED_NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def _mock_extractor(profile: dict | None = None) -> MagicMock:
    extractor = MagicMock()
    extractor.extract_profile_fields = AsyncMock(return_value=profile or empty_profile())
    return extractor


def _mock_embedder(vector: list[float] | None = None) -> MagicMock:
    embedder = MagicMock()
    embedder.embed = AsyncMock(return_value=[0.1, 0.2] if vector is None else vector)
    return embedder


class TestRefineContent:

    def test_drops_boilerplate_and_short_lines(self) -> None:
        text = (
            "Name: Maria Santos\n"
            "Email: maria@example.com\n"
            "Short line\n"
            "Managed accounts payable for a mid-size logistics firm\n"
            "Reconciled bank statements monthly for three entities"
        )
        refined = refine_content(text)
        assert refined.splitlines() == [
            "Managed accounts payable for a mid-size logistics firm",
            "Reconciled bank statements monthly for three entities",
        ]

    def test_caps_at_twenty_lines(self) -> None:
        text = "\n".join(f"Meaningful resume line number {i:03d}" for i in range(30))
        assert len(refine_content(text).splitlines()) == 20

    def test_empty(self) -> None:
        assert refine_content(None) == ""
        assert refine_content("") == ""

    def test_control_characters_removed(self) -> None:
        assert clean_control_chars("  abc\x00def\x07\tghi\n ") == "abcdef\tghi"


class TestBuildEmbeddingInput:

    def test_labelled_lines_skip_empty_and_none(self) -> None:
        record = {
            "candidate_job_title": "Bookkeeper",
            "candidate_bio": "none",
            "country": "  ",
            "industry": "Finance",
            "persons_name": "Not embedded",
        }
        document = build_embedding_input(record)
        assert document == "Job Title: Bookkeeper\nIndustry: Finance"

    def test_metadata_appended(self) -> None:
        record = {
            "candidate_job_title": "Bookkeeper",
            "metadata": {
                "years_of_experience": 5,
                "skills_list": ["Excel", "", "QuickBooks"],
                "availability": "immediate",
                "certifications": ["CPA"],
            },
        }
        lines = build_embedding_input(record).splitlines()
        assert lines[1:] == [
            "Years of Experience: 5",
            "Skills: Excel, QuickBooks",
            "Availability: immediate",
            "Certifications: CPA",
        ]

    def test_nothing_qualifies(self) -> None:
        assert build_embedding_input({"persons_name": "Only a name", "country": "None"}) is None


class TestEnrichCandidate:

    @pytest.mark.asyncio
    async def test_full_enrichment(self) -> None:
        profile = {**empty_profile(), "Skills_Technical": "Excel, QuickBooks"}
        extractor = _mock_extractor(profile)
        embedder = _mock_embedder([0.3, 0.4])
        record = {
            "id": 7,
            "resume_text": "5 years experience in QuickBooks, Excel. Immediate availability.",
            "Experience_Role": "Existing role",
        }

        update = await enrich_candidate(record, extractor, embedder, now=FIXED_NOW)

        assert update["Skills_Technical"] == "Excel, QuickBooks"
        # Fields the model left empty keep their stored value
        assert "Experience_Role" not in update
        assert update["metadata"]["years_of_experience"] == 5
        assert update["embedding"] == [0.3, 0.4]
        document = embedder.embed.call_args.args[0]
        assert "Technical Skills: Excel, QuickBooks" in document
        assert "Experience: Existing role" in document

    @pytest.mark.asyncio
    async def test_no_resume_skips_extraction(self) -> None:
        extractor = _mock_extractor()
        embedder = _mock_embedder()
        update = await enrich_candidate(
            {"id": 1, "candidate_job_title": "Virtual Assistant"}, extractor, embedder
        )
        extractor.extract_profile_fields.assert_not_awaited()
        assert update == {"embedding": [0.1, 0.2]}

    @pytest.mark.asyncio
    async def test_empty_document_skips_embedding(self) -> None:
        embedder = _mock_embedder()
        update = await enrich_candidate({"id": 1, "persons_name": "Ann"}, _mock_extractor(), embedder)
        embedder.embed.assert_not_awaited()
        assert update == {}

    @pytest.mark.asyncio
    async def test_failed_embedding_not_stored(self) -> None:
        update = await enrich_candidate(
            {"id": 1, "candidate_job_title": "Designer"}, _mock_extractor(), _mock_embedder([])
        )
        assert "embedding" not in update
