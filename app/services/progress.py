"""Newline-delimited JSON progress protocol for long-running migrations.

The server writes one JSON object per line as work progresses; clients read
line by line and ignore anything they cannot decode, so a truncated or
interleaved line never aborts a run.
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Iterable, Iterator

from app.models.enums import ProgressEventType
from app.models.ingestion import StreamEvent

logger = logging.getLogger(__name__)

NDJSON_MEDIA_TYPE = "application/x-ndjson"

_KNOWN_TYPES = {event_type.value for event_type in ProgressEventType}


def encode_event(event: StreamEvent) -> str:
    """Serialize *event* as one camelCase JSON line (``None`` fields omitted)."""
    return event.model_dump_json(by_alias=True, exclude_none=True) + "\n"


async def stream_ndjson(events: AsyncIterator[StreamEvent]) -> AsyncIterator[str]:
    """Encode each event as soon as it is produced."""
    async for event in events:
        yield encode_event(event)


def parse_progress_line(line: str | bytes) -> dict[str, Any] | None:
    """Decode one protocol line, or ``None`` if it should be ignored."""
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    line = line.strip()
    if not line:
        return None

    try:
        payload = json.loads(line)
    except json.JSONDecodeError:
        logger.debug("progress_line_malformed", extra={"line": line[:200]})
        return None

    if not isinstance(payload, dict) or payload.get("type") not in _KNOWN_TYPES:
        return None
    return payload


def iter_progress_events(lines: Iterable[str | bytes]) -> Iterator[dict[str, Any]]:
    """Yield the decodable events of a line stream, skipping the rest."""
    for line in lines:
        event = parse_progress_line(line)
        if event is not None:
            yield event
