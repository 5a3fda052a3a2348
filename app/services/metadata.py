"""Regex / vocabulary heuristics that derive ``candidates.metadata``.

Each fact has its own extractor function so patterns can be added or tuned
without touching the others.  Extractors are registered in
``DEFAULT_EXTRACTORS``; ``generate_metadata`` runs them in order and keeps
only the keys that produced a signal.

Within an extractor, labelled patterns ("Availability: ...") are tried before
the fixed vocabulary fallbacks.  All extractors are deterministic.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, NamedTuple

from app.core.constants import (
    AVAILABILITY_TERMS,
    COMMON_CERTIFICATIONS,
    COMMON_INDUSTRIES,
    MAX_CERTIFICATIONS,
    MAX_INDUSTRIES,
    MAX_SKILLS,
    MAX_YEARS_OF_EXPERIENCE,
    TECH_TOOLS,
)

_LIST_SEPARATORS = re.compile(r"[,;|•·\n]")


def _compile(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


def _vocabulary_pattern(term: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE)


_YEARS_PATTERNS = _compile(
    r"(\d+)\s*\+?\s*years?\s+(?:of\s+)?experience",
    r"experience:\s*(\d+)\s*\+?\s*years?",
    r"(\d+)\s*\+?\s*years?\s+in",
    r"over\s+(\d+)\s*years?",
    r"more\s+than\s+(\d+)\s*years?",
)

_SKILL_PATTERNS = _compile(
    r"skills?:\s*([^\n]+)",
    r"proficient\s+(?:in|with):\s*([^\n]+)",
    r"experience\s+(?:in|with):\s*([^\n]+)",
    r"knowledge\s+of:\s*([^\n]+)",
    r"familiar\s+with:\s*([^\n]+)",
)

_AVAILABILITY_PATTERNS = _compile(
    r"availability:\s*([^\n]+)",
    r"available:\s*([^\n]+)",
    r"start\s+date:\s*([^\n]+)",
    r"can\s+start:\s*([^\n]+)",
    r"notice\s+period:\s*([^\n]+)",
)

_CERTIFICATION_PATTERNS = _compile(
    r"certifications?:\s*([^\n]+)",
    r"certified\s+in:\s*([^\n]+)",
    r"licenses?:\s*([^\n]+)",
    r"credentials?:\s*([^\n]+)",
)

_SALARY_PATTERNS = _compile(
    r"salary\s+expectations?:\s*([^\n]+)",
    r"desired\s+salary:\s*([^\n]+)",
    r"expected\s+salary:\s*([^\n]+)",
    r"salary\s+range:\s*([^\n]+)",
    r"compensation:\s*([^\n]+)",
    r"rate:\s*\$?(\d+(?:,\d{3})*(?:\.\d{2})?)",
    r"\$(\d+(?:,\d{3})*(?:\.\d{2})?)\s*(?:per\s+)?(?:hour|hr|annual|yearly|month)?",
)

_INDUSTRY_PATTERNS = _compile(
    r"industry\s+preferences?:\s*([^\n]+)",
    r"interested\s+in:\s*([^\n]+)",
    r"looking\s+for:\s*([^\n]+)",
    r"seeking\s+opportunities\s+in:\s*([^\n]+)",
)

_REMOTE_PATTERNS = _compile(
    r"remote\s+work",
    r"work\s+from\s+home",
    r"telecommute",
    r"distributed\s+team",
)

_SCHEDULE_PATTERNS = _compile(
    r"full.?time",
    r"part.?time",
    r"contract",
    r"freelance",
    r"temporary",
    r"permanent",
)

_TRAVEL_PATTERNS = _compile(
    r"willing\s+to\s+travel",
    r"travel\s+up\s+to",
    r"no\s+travel",
    r"minimal\s+travel",
    r"extensive\s+travel",
)

_TECH_TOOL_PATTERNS = tuple((tool, _vocabulary_pattern(tool)) for tool in TECH_TOOLS)
_CERTIFICATION_TERM_PATTERNS = tuple(
    (cert, _vocabulary_pattern(cert)) for cert in COMMON_CERTIFICATIONS
)
_INDUSTRY_TERM_PATTERNS = tuple(
    (industry, _vocabulary_pattern(industry)) for industry in COMMON_INDUSTRIES
)
_AVAILABILITY_TERM_PATTERNS = tuple(
    (term, re.compile(re.escape(term), re.IGNORECASE)) for term in AVAILABILITY_TERMS
)


def _collect_listed(
    content: str,
    patterns: Iterable[re.Pattern[str]],
    min_len: int,
    max_len: int,
) -> dict[str, None]:
    """Split every labelled list match into items, keeping insertion order."""
    items: dict[str, None] = {}
    for pattern in patterns:
        for match in pattern.finditer(content):
            for item in _LIST_SEPARATORS.split(match.group(1)):
                item = item.strip()
                if min_len < len(item) < max_len:
                    items.setdefault(item)
    return items


def _add_vocabulary(
    content: str,
    items: dict[str, None],
    vocabulary: Iterable[tuple[str, re.Pattern[str]]],
) -> None:
    for term, pattern in vocabulary:
        if pattern.search(content):
            items.setdefault(term)


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------


def extract_years_of_experience(content: str) -> int | None:
    """First integer in ``[0, 50]`` matched by the experience phrases."""
    for pattern in _YEARS_PATTERNS:
        for match in pattern.finditer(content):
            years = int(match.group(1))
            if 0 <= years <= MAX_YEARS_OF_EXPERIENCE:
                return years
    return None


def extract_skills_list(content: str) -> list[str]:
    """Labelled skill lists plus known tools, at most ``MAX_SKILLS``."""
    skills = _collect_listed(content, _SKILL_PATTERNS, min_len=2, max_len=50)
    _add_vocabulary(content, skills, _TECH_TOOL_PATTERNS)
    return list(skills)[:MAX_SKILLS]


def extract_availability(content: str) -> str | None:
    for pattern in _AVAILABILITY_PATTERNS:
        for match in pattern.finditer(content):
            availability = match.group(1).strip()
            if 3 < len(availability) < 100:
                return availability

    for term, pattern in _AVAILABILITY_TERM_PATTERNS:
        if pattern.search(content):
            return term
    return None


def extract_certifications(content: str) -> list[str]:
    """Labelled certifications plus well-known ones, at most ``MAX_CERTIFICATIONS``."""
    certifications = _collect_listed(content, _CERTIFICATION_PATTERNS, min_len=3, max_len=100)
    _add_vocabulary(content, certifications, _CERTIFICATION_TERM_PATTERNS)
    return list(certifications)[:MAX_CERTIFICATIONS]


def extract_desired_salary(content: str) -> str | None:
    for pattern in _SALARY_PATTERNS:
        for match in pattern.finditer(content):
            salary = match.group(1).strip()
            if 1 < len(salary) < 50:
                return salary
    return None


def extract_preferred_industries(content: str) -> list[str]:
    industries = _collect_listed(content, _INDUSTRY_PATTERNS, min_len=3, max_len=50)
    _add_vocabulary(content, industries, _INDUSTRY_TERM_PATTERNS)
    return list(industries)[:MAX_INDUSTRIES]


def extract_work_preferences(content: str) -> dict[str, Any]:
    """Remote / schedule / travel signals; keys without a signal are omitted."""
    preferences: dict[str, Any] = {}

    if any(pattern.search(content) for pattern in _REMOTE_PATTERNS):
        preferences["remote_work"] = True

    for pattern in _SCHEDULE_PATTERNS:
        match = pattern.search(content)
        if match:
            preferences["work_schedule"] = re.sub(r"[^\w]", "", match.group(0).lower())
            break

    for pattern in _TRAVEL_PATTERNS:
        match = pattern.search(content)
        if match:
            preferences["travel_preference"] = match.group(0)
            break

    return preferences


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class MetadataExtractor(NamedTuple):
    """Binds a metadata key to the function that derives it."""
    key: str
    extract: Callable[[str], Any]


DEFAULT_EXTRACTORS: tuple[MetadataExtractor, ...] = (
    MetadataExtractor("years_of_experience", extract_years_of_experience),
    MetadataExtractor("skills_list", extract_skills_list),
    MetadataExtractor("availability", extract_availability),
    MetadataExtractor("certifications", extract_certifications),
    MetadataExtractor("desired_salary", extract_desired_salary),
    MetadataExtractor("preferred_industries", extract_preferred_industries),
    MetadataExtractor("work_preferences", extract_work_preferences),
)


def generate_metadata(
    content: str | None,
    extractors: Iterable[MetadataExtractor] = DEFAULT_EXTRACTORS,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Run *extractors* over *content* and stamp the extraction time.

    Empty content yields ``{}``.  A key is present only when its extractor
    returned something other than ``None`` or an empty collection.
    """
    if not content or not isinstance(content, str):
        return {}

    metadata: dict[str, Any] = {}
    for extractor in extractors:
        value = extractor.extract(content)
        if value is None or (isinstance(value, (list, dict)) and not value):
            continue
        metadata[extractor.key] = value

    metadata["metadata_extracted_at"] = (now or datetime.now(timezone.utc)).isoformat()
    return metadata
