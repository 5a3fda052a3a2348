"""Per-candidate enrichment: profile extraction, refined content, metadata
and embedding.

``enrich_candidate`` produces the single update payload written back to the
``candidates`` row; the ingestion pipeline decides when and how to write it.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any

from app.core.constants import (
    BOILERPLATE_LABELS,
    EMBEDDING_FIELD_LABELS,
    REFINED_MAX_LINES,
    REFINED_MIN_LINE_LENGTH,
)
from app.services.embedding import EmbeddingClient
from app.services.llm_extraction import LLMExtractor
from app.services.metadata import generate_metadata

logger = logging.getLogger(__name__)

# C0 control characters except tab and newline
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")
_BOILERPLATE_LINE = re.compile(
    rf"^({'|'.join(BOILERPLATE_LABELS)}):\s*", re.IGNORECASE
)


def clean_control_chars(text: str) -> str:
    return _CONTROL_CHARS.sub("", text).strip()


def refine_content(original: str | None) -> str:
    """Condense raw resume text into the ``content`` column.

    Drops labelled boilerplate lines and short lines, then keeps the first
    ``REFINED_MAX_LINES`` remaining lines.
    """
    if not original:
        return ""

    kept = [
        line
        for line in original.split("\n")
        if len(line.strip()) > REFINED_MIN_LINE_LENGTH and not _BOILERPLATE_LINE.match(line)
    ]
    return clean_control_chars("\n".join(kept[:REFINED_MAX_LINES]))


def _usable(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip()) and value.strip().lower() != "none"


def build_embedding_input(record: dict[str, Any]) -> str | None:
    """Render the labelled ``Label: value`` document that gets embedded.

    Returns ``None`` when no field qualifies so that callers skip the
    embedding instead of embedding an empty document.
    """
    parts = [
        f"{label}: {record[field]}"
        for field, label in EMBEDDING_FIELD_LABELS.items()
        if _usable(record.get(field))
    ]

    metadata = record.get("metadata")
    if isinstance(metadata, dict):
        if metadata.get("years_of_experience"):
            parts.append(f"Years of Experience: {metadata['years_of_experience']}")
        skills = [s for s in metadata.get("skills_list") or [] if isinstance(s, str) and s.strip()]
        if skills:
            parts.append(f"Skills: {', '.join(skills)}")
        if metadata.get("availability"):
            parts.append(f"Availability: {metadata['availability']}")
        certifications = metadata.get("certifications")
        if certifications:
            if isinstance(certifications, list):
                certifications = ", ".join(str(c) for c in certifications)
            parts.append(f"Certifications: {certifications}")

    if not parts:
        return None
    return "\n".join(parts)


async def enrich_candidate(
    record: dict[str, Any],
    extractor: LLMExtractor,
    embedder: EmbeddingClient,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Compute the enrichment update for one ``candidates`` row.

    Steps: LLM profile fields, refined content and metadata (all from
    ``resume_text`` when present), then the embedding of the labelled
    document built from the record merged with those updates.
    """
    update: dict[str, Any] = {}
    resume_text = record.get("resume_text") or ""

    if resume_text:
        profile = await extractor.extract_profile_fields(resume_text)
        # A field the model could not fill leaves the stored value untouched
        update.update({field: value for field, value in profile.items() if value is not None})

        refined = refine_content(resume_text)
        if refined:
            update["content"] = refined

        metadata = generate_metadata(resume_text, now=now)
        if metadata:
            update["metadata"] = metadata

    document = build_embedding_input({**record, **update})
    if document is None:
        logger.info(
            "embedding_skipped_empty_document",
            extra={"candidate_id": record.get("id")},
        )
        return update

    embedding = await embedder.embed(document)
    if embedding:
        update["embedding"] = embedding
    return update
