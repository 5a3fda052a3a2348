"""Airtable REST client used as the external candidate source."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.models.ingestion import DateRange, SourceRecord

logger = logging.getLogger(__name__)

AIRTABLE_API_URL = "https://api.airtable.com/v0"
CREATED_TIME_FIELD = "Created Time"
PAGE_SIZE = 100


def created_between_formula(date_range: DateRange) -> str:
    """``filterByFormula`` selecting records created inside *date_range*."""
    start = date_range.start.isoformat()
    end = date_range.end.isoformat()
    return (
        "AND("
        f'DATETIME_PARSE({{{CREATED_TIME_FIELD}}}) >= DATETIME_PARSE("{start}"), '
        f'DATETIME_PARSE({{{CREATED_TIME_FIELD}}}) <= DATETIME_PARSE("{end}")'
        ")"
    )


def _record_from_payload(payload: dict[str, Any]) -> SourceRecord:
    return SourceRecord(
        id=payload["id"],
        created_time=payload.get("createdTime"),
        fields=payload.get("fields") or {},
    )


class AirtableSource:
    """Read-only access to one Airtable table."""

    def __init__(
        self,
        api_key: str,
        base_id: str,
        table_name: str,
        base_url: str = AIRTABLE_API_URL,
        timeout: float = 30.0,
    ) -> None:
        self.api_key = api_key
        self.base_id = base_id
        self.table_name = table_name
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def table_url(self) -> str:
        return f"{self.base_url}/{self.base_id}/{self.table_name}"

    async def fetch_records(
        self,
        date_range: DateRange,
        fields: list[str] | None = None,
    ) -> list[SourceRecord]:
        """Fetch every record created in *date_range*, ordered by record id.

        Follows the ``offset`` cursor until Airtable stops returning one.
        HTTP errors propagate to the caller.
        """
        params: dict[str, Any] = {
            "filterByFormula": created_between_formula(date_range),
            "pageSize": PAGE_SIZE,
        }
        if fields:
            params["fields[]"] = fields

        records: list[SourceRecord] = []
        offset: str | None = None

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while True:
                page_params = {**params, "offset": offset} if offset else params
                response = await client.get(
                    self.table_url,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    params=page_params,
                )
                response.raise_for_status()
                data = response.json()

                records.extend(_record_from_payload(item) for item in data.get("records", []))
                offset = data.get("offset")
                if not offset:
                    break

        logger.info(
            "airtable_records_fetched",
            extra={
                "table": self.table_name,
                "start_date": str(date_range.start_date),
                "end_date": str(date_range.end_date),
                "count": len(records),
            },
        )
        return sorted(records, key=lambda record: record.id)
