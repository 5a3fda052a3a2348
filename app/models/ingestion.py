"""Models for the Airtable -> Supabase migration and its progress stream.

Wire payloads use camelCase keys (``totalRecords``, ``batchIndex`` ...) to
match the admin migration page; Python code uses snake_case attributes.
"""

from datetime import date, datetime, time, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DateRange(CamelModel):
    """Inclusive creation-date window (``{startDate, endDate}``)."""
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.start_date > self.end_date:
            raise ValueError("startDate must be on or before endDate")
        return self

    @property
    def start(self) -> datetime:
        return datetime.combine(self.start_date, time.min, tzinfo=timezone.utc)

    @property
    def end(self) -> datetime:
        """End of the last day (23:59:59) so the end date is inclusive."""
        return datetime.combine(self.end_date, time(23, 59, 59), tzinfo=timezone.utc)


class SourceRecord(BaseModel):
    """One row of the external table: its id, creation time and raw fields."""
    id: str
    created_time: datetime | None = None
    fields: dict[str, Any] = {}


class RecordExample(CamelModel):
    """Short description of a record, used in preview samples."""
    airtable_id: str
    name: str | None = None
    email: str | None = None
    created_time: str | None = None
    has_resume: bool | None = None


class DuplicateInfo(CamelModel):
    email_duplicates: list[RecordExample] = []
    airtable_id_duplicates: list[RecordExample] = []
    total_email_duplicates: int = 0
    total_airtable_id_duplicates: int = 0


class PreviewSummary(CamelModel):
    will_process: int = 0
    will_skip_email_duplicates: int = 0
    will_skip_airtable_id_duplicates: int = 0
    processing_efficiency: int = 0


class PreviewReport(CamelModel):
    """Read-only plan returned by the preview phase."""
    total_records: int = 0
    valid_records: int = 0
    records_with_resume: int = 0
    records_with_email: int = 0
    new_records: int = 0
    duplicate_emails: int = 0
    duplicate_airtable_ids: int = 0
    estimated_time: int = 0
    date_range: DateRange
    sample_record: RecordExample | None = None
    duplicate_info: DuplicateInfo = DuplicateInfo()
    summary: PreviewSummary = PreviewSummary()


# ---------------------------------------------------------------------------
# Streamed progress protocol
# ---------------------------------------------------------------------------


class ProgressEvent(CamelModel):
    """``{"type": "progress", "completed": N, "total": N, ...}``."""
    type: Literal["progress"] = "progress"
    completed: int
    total: int
    batch_index: int | None = None
    batch_count: int | None = None
    inserted: int | None = None
    skipped: int | None = None
    successful: int | None = None
    current_candidate: str | None = None


class ErrorEvent(CamelModel):
    """``{"type": "error", "message": "..."}``."""
    type: Literal["error"] = "error"
    message: str


class CompleteEvent(CamelModel):
    """``{"type": "complete", "totalProcessed": N, ...}``."""
    type: Literal["complete"] = "complete"
    total_processed: int
    total_records: int | None = None
    total_successful: int | None = None
    total_failed: int | None = None
    total_skipped: int | None = None


StreamEvent = ProgressEvent | ErrorEvent | CompleteEvent


class BackfillResult(BaseModel):
    """Outcome of one embedding backfill batch."""
    processed: int = 0
    successful: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[dict[str, Any]] = Field(default_factory=list)


class BackfillRequest(BaseModel):
    """Body of the manual embedding backfill endpoint."""
    limit: int = Field(default=10, ge=1, le=100)
