"""Unit tests for regex / vocabulary metadata extraction."""

from __future__ import annotations

from datetime import datetime, timezone

from app.core.constants import COMMON_INDUSTRIES, MAX_INDUSTRIES
from app.services.metadata import (
    DEFAULT_EXTRACTORS,
    MetadataExtractor,
    extract_availability,
    extract_certifications,
    extract_desired_salary,
    extract_preferred_industries,
    extract_skills_list,
    extract_work_preferences,
    extract_years_of_experience,
    generate_metadata,
)

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class TestYearsOfExperience:

    def test_years_experience_phrase(self) -> None:
        assert extract_years_of_experience("I have 5 years of experience in payroll") == 5

    def test_labelled_form(self) -> None:
        assert extract_years_of_experience("Experience: 12 years") == 12

    def test_out_of_range_ignored(self) -> None:
        assert extract_years_of_experience("Company founded 120 years in business") is None

    def test_no_signal(self) -> None:
        assert extract_years_of_experience("Fresh graduate") is None


class TestSkills:

    def test_labelled_list_and_vocabulary(self) -> None:
        skills = extract_skills_list("Skills: Bookkeeping, Payroll; Reconciliation\nUsed Excel daily")
        assert skills[:3] == ["Bookkeeping", "Payroll", "Reconciliation"]
        assert "Excel" in skills

    def test_capped_at_twenty(self) -> None:
        items = ", ".join(f"Skill number {i}" for i in range(40))
        assert len(extract_skills_list(f"Skills: {items}")) == 20

    def test_vocabulary_is_case_insensitive(self) -> None:
        assert "QuickBooks" in extract_skills_list("daily work in quickbooks")


class TestOtherExtractors:

    def test_availability_label_before_terms(self) -> None:
        assert extract_availability("Availability: two weeks from offer") == "two weeks from offer"

    def test_availability_term_fallback(self) -> None:
        assert extract_availability("Can join immediately") == "immediate"

    def test_certifications_capped(self) -> None:
        certs = ", ".join(f"Certificate {i}" for i in range(15))
        assert len(extract_certifications(f"Certifications: {certs}")) == 10

    def test_desired_salary(self) -> None:
        assert extract_desired_salary("Desired salary: $1,500 per month") == "$1,500 per month"

    def test_preferred_industries(self) -> None:
        industries = extract_preferred_industries("Interested in: Healthcare, Real Estate")
        assert industries[:2] == ["Healthcare", "Real Estate"]

    def test_preferred_industries_capped(self) -> None:
        listed = ", ".join(COMMON_INDUSTRIES)
        industries = extract_preferred_industries(f"Industry preferences: {listed}")
        assert len(COMMON_INDUSTRIES) > MAX_INDUSTRIES
        assert len(industries) == MAX_INDUSTRIES

    def test_work_preferences_only_present_signals(self) -> None:
        prefs = extract_work_preferences("Looking for full-time remote work")
        assert prefs["remote_work"] is True
        assert prefs["work_schedule"] == "fulltime"
        assert "travel_preference" not in prefs

    def test_no_remote_signal_omits_key(self) -> None:
        assert "remote_work" not in extract_work_preferences("Office based role")


class TestGenerateMetadata:

    def test_empty_content(self) -> None:
        assert generate_metadata("") == {}
        assert generate_metadata(None) == {}

    def test_example_resume(self) -> None:
        metadata = generate_metadata(
            "5 years experience in QuickBooks, Excel. Immediate availability.",
            now=FIXED_NOW,
        )
        assert metadata["years_of_experience"] == 5
        assert {"QuickBooks", "Excel"} <= set(metadata["skills_list"])
        assert metadata["availability"] == "immediate"
        assert metadata["metadata_extracted_at"] == FIXED_NOW.isoformat()

    def test_absent_signals_are_omitted(self) -> None:
        metadata = generate_metadata("Plain text without any signal", now=FIXED_NOW)
        assert "years_of_experience" not in metadata
        assert "certifications" not in metadata
        assert "work_preferences" not in metadata
        assert None not in metadata.values()

    def test_custom_extractors(self) -> None:
        extractors = (MetadataExtractor("word_count", lambda text: len(text.split())),)
        metadata = generate_metadata("one two three", extractors=extractors, now=FIXED_NOW)
        assert metadata == {"word_count": 3, "metadata_extracted_at": FIXED_NOW.isoformat()}

    def test_default_registry_keys(self) -> None:
        keys = [extractor.key for extractor in DEFAULT_EXTRACTORS]
        assert keys == [
            "years_of_experience",
            "skills_list",
            "availability",
            "certifications",
            "desired_salary",
            "preferred_industries",
            "work_preferences",
        ]
