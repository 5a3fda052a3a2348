"""Unit tests for the Airtable source client."""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from app.models.ingestion import DateRange
from app.services.airtable import AirtableSource, created_between_formula

JANUARY = DateRange(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))


def _page(records: list[dict], offset: str | None = None) -> MagicMock:
    response = MagicMock()
    response.raise_for_status = MagicMock()
    body: dict = {"records": records}
    if offset:
        body["offset"] = offset
    response.json.return_value = body
    return response


def _mock_http(*responses: MagicMock) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client.get = AsyncMock(side_effect=list(responses))
    return mock_client


def test_formula_covers_whole_end_day() -> None:
    formula = created_between_formula(JANUARY)
    assert formula.startswith("AND(")
    assert '"2024-01-01T00:00:00+00:00"' in formula
    assert '"2024-01-31T23:59:59+00:00"' in formula
    assert "{Created Time}" in formula


@pytest.mark.asyncio
async def test_follows_offset_and_sorts_by_id() -> None:
    mock_client = _mock_http(
        _page([{"id": "recB", "fields": {"Name": "B"}}], offset="page2"),
        _page([{"id": "recA", "createdTime": "2024-01-02T00:00:00.000Z", "fields": {"Name": "A"}}]),
    )
    source = AirtableSource(api_key="key", base_id="app123", table_name="Candidates")

    with patch("httpx.AsyncClient", return_value=mock_client):
        records = await source.fetch_records(JANUARY)

    assert [r.id for r in records] == ["recA", "recB"]
    assert records[0].created_time is not None
    assert mock_client.get.await_count == 2

    first_call, second_call = mock_client.get.call_args_list
    assert first_call.args[0] == "https://api.airtable.com/v0/app123/Candidates"
    assert first_call.kwargs["headers"] == {"Authorization": "Bearer key"}
    assert "offset" not in first_call.kwargs["params"]
    assert second_call.kwargs["params"]["offset"] == "page2"
    assert second_call.kwargs["params"]["pageSize"] == 100


@pytest.mark.asyncio
async def test_http_error_propagates() -> None:
    failing = MagicMock()
    failing.raise_for_status = MagicMock(
        side_effect=httpx.HTTPStatusError("503", request=MagicMock(), response=MagicMock())
    )
    mock_client = _mock_http(failing)
    source = AirtableSource(api_key="key", base_id="app123", table_name="Candidates")

    with patch("httpx.AsyncClient", return_value=mock_client):
        with pytest.raises(httpx.HTTPStatusError):
            await source.fetch_records(JANUARY)
