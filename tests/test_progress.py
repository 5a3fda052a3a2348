"""Unit tests for the NDJSON progress protocol."""

from __future__ import annotations

import json

import pytest

from app.models.ingestion import CompleteEvent, ErrorEvent, ProgressEvent
from app.services.progress import (
    encode_event,
    iter_progress_events,
    parse_progress_line,
    stream_ndjson,
)


class TestEncode:

    def test_progress_event_camel_case_without_nulls(self) -> None:
        line = encode_event(
            ProgressEvent(completed=25, total=60, batch_index=1, batch_count=3, inserted=25)
        )
        assert line.endswith("\n")
        assert line.count("\n") == 1
        assert json.loads(line) == {
            "type": "progress",
            "completed": 25,
            "total": 60,
            "batchIndex": 1,
            "batchCount": 3,
            "inserted": 25,
        }

    def test_complete_event(self) -> None:
        payload = json.loads(encode_event(CompleteEvent(total_processed=3, total_failed=1)))
        assert payload == {"type": "complete", "totalProcessed": 3, "totalFailed": 1}

    @pytest.mark.asyncio
    async def test_stream_yields_one_line_per_event(self) -> None:
        async def events():
            yield ProgressEvent(completed=1, total=2)
            yield ErrorEvent(message="Batch 2 failed: boom")
            yield CompleteEvent(total_processed=1)

        lines = [line async for line in stream_ndjson(events())]
        assert [json.loads(line)["type"] for line in lines] == ["progress", "error", "complete"]


class TestParse:

    def test_valid_line(self) -> None:
        assert parse_progress_line('{"type": "error", "message": "x"}') == {
            "type": "error",
            "message": "x",
        }

    def test_bytes_line(self) -> None:
        assert parse_progress_line(b'{"type": "complete", "totalProcessed": 0}\n')["type"] == "complete"

    @pytest.mark.parametrize(
        "line",
        ["", "   ", "{not json", "[1, 2]", '"text"', '{"type": "unknown"}', '{"completed": 1}'],
    )
    def test_ignored_lines(self, line: str) -> None:
        assert parse_progress_line(line) is None

    def test_iter_skips_malformed_and_keeps_order(self) -> None:
        lines = [
            '{"type": "progress", "completed": 1, "total": 2}',
            '{"type": "progr',
            "",
            '{"type": "progress", "completed": 2, "total": 2}',
            '{"type": "complete", "totalProcessed": 2}',
        ]
        events = list(iter_progress_events(lines))
        assert [e.get("completed") for e in events] == [1, 2, None]
        assert events[-1]["type"] == "complete"
