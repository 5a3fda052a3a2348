"""LLM-based profile extraction from resume text.

Asks a chat-completions model for eight categorical summaries of a resume,
returned as one pipe-separated line.  Resumes longer than
``EXTRACTION_INPUT_LIMIT`` characters are processed chunk by chunk and the
per-chunk answers are merged field by field.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.core.constants import EXTRACTION_INPUT_LIMIT, PROFILE_FIELDS

logger = logging.getLogger(__name__)

NULL_TOKEN = "null"

EXTRACTION_PROMPT_TEMPLATE = """\
You are analyzing a candidate's resume content. Extract information for these 8 specific categories. Look through the ENTIRE content and find ALL relevant items for each category.

Content to analyze:
{content}

Extract the following 8 categories and return as pipe-separated values (|):

1. Skills_Technical: Find ALL technical skills, software, tools, systems, platforms
2. Experience_Role: Find ALL job titles, positions, years of experience, roles
3. Language_Proficiency: Find ALL languages mentioned with proficiency levels
4. Communication_Skills: Find ALL communication-related skills
5. Industry_Background: Find ALL industries, sectors, business areas
6. Location_Timezone: Find ALL location information
7. Education_Certifications: Find ALL educational qualifications, certifications, courses
8. Work_Style: Find ALL work preferences, availability, work arrangements

CRITICAL INSTRUCTIONS:
- Extract EVERY item you find for each category, separated by commas within each field
- Use pipe (|) to separate the 8 categories
- If no information found for a category, write "null"
- Be comprehensive - include everything relevant you find

Your response:"""


def empty_profile() -> dict[str, str | None]:
    """All eight profile fields set to ``None``."""
    return {field: None for field in PROFILE_FIELDS}


def build_prompt(chunk: str) -> str:
    return EXTRACTION_PROMPT_TEMPLATE.format(content=chunk)


def parse_pipe_response(text: str | None) -> dict[str, str | None]:
    """Parse ``a | b | null | ...`` into the eight profile fields.

    Values are trimmed; ``null`` (any case) and empty strings become ``None``.
    Missing trailing values are padded with ``None`` and extra values dropped.
    """
    values = [v.strip() for v in (text or "").strip().split("|")]
    values = (values + [NULL_TOKEN] * len(PROFILE_FIELDS))[: len(PROFILE_FIELDS)]
    return {
        field: (None if not value or value.lower() == NULL_TOKEN else value)
        for field, value in zip(PROFILE_FIELDS, values)
    }


def chunk_text(text: str, size: int = EXTRACTION_INPUT_LIMIT) -> list[str]:
    """Split *text* into sequential fixed-size chunks."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [text[i : i + size] for i in range(0, len(text), size)]


def merge_chunk_results(results: list[dict[str, str | None]]) -> dict[str, str | None]:
    """Merge per-chunk answers into one profile.

    For each field the non-null values are split on commas, blanks dropped,
    exact repeats removed (first occurrence wins) and the rest joined with
    ``", "``.
    """
    merged: dict[str, list[str]] = {field: [] for field in PROFILE_FIELDS}

    for result in results:
        for field in PROFILE_FIELDS:
            value = result.get(field)
            if not value or value.lower() == NULL_TOKEN:
                continue
            merged[field].extend(item.strip() for item in value.split(",") if item.strip())

    return {
        field: (", ".join(dict.fromkeys(items)) if items else None)
        for field, items in merged.items()
    }


class LLMExtractor:
    """Chat-completions client dedicated to profile extraction."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        timeout: float = 60.0,
        chunk_size: int = EXTRACTION_INPUT_LIMIT,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.chunk_size = chunk_size

    async def complete(self, prompt: str) -> str:
        """Send a single-message completion request and return the text."""
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "messages": [{"role": "user", "content": prompt}],
                    "max_tokens": 4000,
                    "temperature": 0.1,
                },
            )
            response.raise_for_status()
            data: dict[str, Any] = response.json()
        return str(data["choices"][0]["message"]["content"]).strip()

    async def extract_chunk(self, chunk: str) -> dict[str, str | None]:
        return parse_pipe_response(await self.complete(build_prompt(chunk)))

    async def extract_profile_fields(self, text: str) -> dict[str, str | None]:
        """Return the eight profile fields for *text*.

        Provider failures are logged and yield an all-``None`` profile so the
        rest of the enrichment can still run.
        """
        if not text or not text.strip():
            return empty_profile()

        try:
            if len(text) <= self.chunk_size:
                return await self.extract_chunk(text)

            chunks = chunk_text(text, self.chunk_size)
            logger.info(
                "profile_extraction_chunked",
                extra={"chunks": len(chunks), "text_length": len(text)},
            )
            results = []
            for chunk in chunks:
                results.append(await self.extract_chunk(chunk))
            return merge_chunk_results(results)
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning(
                "profile_extraction_failed",
                extra={"model": self.model, "error_message": str(exc)},
            )
            return empty_profile()
