"""Airtable -> Supabase candidate migration.

Three phases, each scoped to a creation-date window:

A. ``preview``  read-only plan: which records are new, which are already
   present by source id or by email.
B. ``transfer`` upserts the new records in fixed-size batches keyed by
   ``talent_id`` (the source record id), streaming progress events.
C. ``enrich``   per-candidate LLM extraction, refined content, metadata and
   embedding for rows that still lack an embedding, streaming progress.

``backfill_embeddings`` runs phase C over any unenriched rows regardless of
date; the scheduler calls it on an interval when enabled.  Rows that come
out of enrichment without an embedding are counted as skipped and stamped
``embedding_skipped_at`` so the backfill moves on past them.

Streamed phases never raise once started: failures become ``error`` events
and the run continues with the next batch / record.
"""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, NamedTuple

from supabase import AsyncClient

from app.core.constants import (
    CANDIDATES_TABLE,
    DATASTORE_PAGE_SIZE,
    PREVIEW_EXAMPLE_LIMIT,
    PREVIEW_SECONDS_PER_THOUSAND,
)
from app.models.ingestion import (
    BackfillResult,
    CompleteEvent,
    DateRange,
    DuplicateInfo,
    ErrorEvent,
    PreviewReport,
    PreviewSummary,
    ProgressEvent,
    RecordExample,
    SourceRecord,
    StreamEvent,
)
from app.services.airtable import CREATED_TIME_FIELD, AirtableSource
from app.services.embedding import EmbeddingClient
from app.services.enrichment import clean_control_chars, enrich_candidate
from app.services.llm_extraction import LLMExtractor

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], Awaitable[AsyncClient]]

# ---------------------------------------------------------------------------
# Field mapping
# ---------------------------------------------------------------------------

# Bump whenever FIELD_MAPPING changes so drift reports name the mapping in use
FIELD_MAPPING_VERSION = "airtable-candidates-v1"

# Source field -> candidate column(s)
FIELD_MAPPING: dict[str, tuple[str, ...]] = {
    "Candidate Email": ("email",),
    "Candidate Country": ("country",),
    "Rate": ("desired_rate",),
    "Text Resume": ("content", "resume_text"),
    "Resume Link": ("resume_link",),
    "Candidate Summary": ("candidate_bio",),
    "Job Title Originally Applied To": ("job_applying_to", "candidate_job_title"),
    "Everything Field": ("everything_field",),
    "LinkedIn URL": ("linkedin_link",),
    "Video Introduction Google Drive": ("video_link",),
    "Voice Link Field": ("voice_link",),
}

# persons_name comes from the first of these that carries a value
NAME_SOURCE_FIELDS: tuple[str, ...] = ("Name", "Your Full Name")

EMAIL_SOURCE_FIELD = "Candidate Email"
RESUME_SOURCE_FIELDS: tuple[str, ...] = ("Resume Link", "Text Resume")

REQUIRED_SOURCE_FIELDS: tuple[str, ...] = (EMAIL_SOURCE_FIELD,)


class SchemaDriftError(ValueError):
    """The source no longer carries fields the mapping depends on."""

    def __init__(self, missing: list[str], version: str = FIELD_MAPPING_VERSION) -> None:
        self.missing = missing
        self.version = version
        super().__init__(
            f"Source records carry none of the required fields {missing} "
            f"(field mapping {version})"
        )


def check_schema_drift(records: list[SourceRecord]) -> None:
    """Raise ``SchemaDriftError`` if no fetched record has a required field."""
    if not records:
        return
    missing = [
        field
        for field in REQUIRED_SOURCE_FIELDS
        if not any(field in record.fields for record in records)
    ]
    if missing:
        raise SchemaDriftError(missing)


def normalize_value(value: Any) -> Any:
    """Map absent / blank source values to ``None``; clean text values."""
    if value is None:
        return None
    if isinstance(value, list):
        items = [str(item).strip() for item in value if item is not None and str(item).strip()]
        value = ", ".join(items)
    if isinstance(value, str):
        value = clean_control_chars(value)
        return value or None
    return value


def _source_value(record: SourceRecord, field: str) -> Any:
    return normalize_value(record.fields.get(field))


def _record_name(record: SourceRecord) -> str | None:
    for field in NAME_SOURCE_FIELDS:
        name = _source_value(record, field)
        if name:
            return str(name)
    return None


def _record_email(record: SourceRecord) -> str | None:
    email = _source_value(record, EMAIL_SOURCE_FIELD)
    return str(email).lower() if email else None


def _record_created_time(record: SourceRecord) -> str | None:
    created = record.fields.get(CREATED_TIME_FIELD)
    if created:
        return str(created)
    if record.created_time is not None:
        return record.created_time.isoformat()
    return None


def _has_resume(record: SourceRecord) -> bool:
    return any(_source_value(record, field) for field in RESUME_SOURCE_FIELDS)


def transform_record(record: SourceRecord, now: datetime | None = None) -> dict[str, Any]:
    """Map one source record to a ``candidates`` row.

    Every mapped column is present in the result (``None`` when the source
    has no value) so a batch upsert always writes a uniform column set.
    """
    row: dict[str, Any] = {
        "talent_id": record.id,
        "persons_name": _record_name(record),
    }
    for source_field, columns in FIELD_MAPPING.items():
        value = _source_value(record, source_field)
        for column in columns:
            row[column] = value

    # Dates the row by its source creation time so enrichment windows match
    row["created_at"] = (
        _record_created_time(record) or (now or datetime.now(timezone.utc)).isoformat()
    )
    return row


# ---------------------------------------------------------------------------
# Partitioning
# ---------------------------------------------------------------------------


class Partition(NamedTuple):
    new: list[SourceRecord]
    duplicate_ids: list[SourceRecord]
    duplicate_emails: list[SourceRecord]


def partition_records(
    records: Iterable[SourceRecord],
    existing_ids: set[str],
    existing_emails: set[str],
) -> Partition:
    """Split *records* into new / present-by-id / present-by-email.

    The id check wins over the email check.  *existing_emails* must already
    be lower-cased.
    """
    partition = Partition([], [], [])
    for record in records:
        if record.id in existing_ids:
            partition.duplicate_ids.append(record)
            continue
        email = _record_email(record)
        if email and email in existing_emails:
            partition.duplicate_emails.append(record)
            continue
        partition.new.append(record)
    return partition


def dedupe_by_email(records: Iterable[SourceRecord]) -> tuple[list[SourceRecord], list[SourceRecord]]:
    """Keep the first record per email; records without email are all kept."""
    seen: set[str] = set()
    kept: list[SourceRecord] = []
    dropped: list[SourceRecord] = []
    for record in records:
        email = _record_email(record)
        if email and email in seen:
            dropped.append(record)
            continue
        if email:
            seen.add(email)
        kept.append(record)
    return kept, dropped


def _example(record: SourceRecord) -> RecordExample:
    return RecordExample(
        airtable_id=record.id,
        name=_record_name(record),
        email=_source_value(record, EMAIL_SOURCE_FIELD),
        created_time=_record_created_time(record),
        has_resume=_has_resume(record),
    )


def build_preview_report(
    date_range: DateRange,
    records: list[SourceRecord],
    partition: Partition,
) -> PreviewReport:
    total = len(records)
    new_count = len(partition.new)

    with_email = sum(1 for r in records if _source_value(r, EMAIL_SOURCE_FIELD))
    valid = sum(1 for r in records if _source_value(r, EMAIL_SOURCE_FIELD) and _record_name(r))

    return PreviewReport(
        total_records=total,
        valid_records=valid,
        records_with_resume=sum(1 for r in records if _has_resume(r)),
        records_with_email=with_email,
        new_records=new_count,
        duplicate_emails=len(partition.duplicate_emails),
        duplicate_airtable_ids=len(partition.duplicate_ids),
        estimated_time=math.ceil(new_count / 1000 * PREVIEW_SECONDS_PER_THOUSAND),
        date_range=date_range,
        sample_record=_example(partition.new[0]) if partition.new else None,
        duplicate_info=DuplicateInfo(
            email_duplicates=[_example(r) for r in partition.duplicate_emails[:PREVIEW_EXAMPLE_LIMIT]],
            airtable_id_duplicates=[_example(r) for r in partition.duplicate_ids[:PREVIEW_EXAMPLE_LIMIT]],
            total_email_duplicates=len(partition.duplicate_emails),
            total_airtable_id_duplicates=len(partition.duplicate_ids),
        ),
        summary=PreviewSummary(
            will_process=new_count,
            will_skip_email_duplicates=len(partition.duplicate_emails),
            will_skip_airtable_id_duplicates=len(partition.duplicate_ids),
            processing_efficiency=round(new_count / total * 100) if total else 0,
        ),
    )


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class IngestionPipeline:
    """Preview, transfer and enrich candidates from an ``AirtableSource``."""

    def __init__(
        self,
        client_factory: ClientFactory,
        source: AirtableSource,
        extractor: LLMExtractor,
        embedder: EmbeddingClient,
        batch_size: int = 25,
        batch_delay: float = 0.5,
        item_delay: float = 1.0,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.client_factory = client_factory
        self.source = source
        self.extractor = extractor
        self.embedder = embedder
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.item_delay = item_delay

    # -- datastore helpers ---------------------------------------------------

    async def _fetch_all(self, build_query: Callable[[], Any]) -> list[dict[str, Any]]:
        """Page through a select until a short page comes back."""
        rows: list[dict[str, Any]] = []
        start = 0
        while True:
            result = await build_query().range(start, start + DATASTORE_PAGE_SIZE - 1).execute()
            page = result.data or []
            rows.extend(page)
            if len(page) < DATASTORE_PAGE_SIZE:
                return rows
            start += DATASTORE_PAGE_SIZE

    async def _existing_keys(self, client: AsyncClient) -> tuple[set[str], set[str]]:
        rows = await self._fetch_all(
            lambda: client.table(CANDIDATES_TABLE).select("id, talent_id, email").order("id")
        )
        ids = {row["talent_id"] for row in rows if row.get("talent_id")}
        emails = {row["email"].strip().lower() for row in rows if row.get("email")}
        return ids, emails

    async def _plan(self, date_range: DateRange) -> tuple[list[SourceRecord], Partition]:
        records = await self.source.fetch_records(date_range)
        check_schema_drift(records)
        client = await self.client_factory()
        existing_ids, existing_emails = await self._existing_keys(client)
        return records, partition_records(records, existing_ids, existing_emails)

    # -- phase A ---------------------------------------------------------------

    async def preview(self, date_range: DateRange) -> PreviewReport:
        """Read-only plan for *date_range*; performs no writes."""
        records, partition = await self._plan(date_range)
        report = build_preview_report(date_range, records, partition)
        logger.info(
            "migration_preview",
            extra={
                "total_records": report.total_records,
                "new_records": report.new_records,
                "duplicate_ids": report.duplicate_airtable_ids,
                "duplicate_emails": report.duplicate_emails,
            },
        )
        return report

    # -- phase B ---------------------------------------------------------------

    async def transfer(self, date_range: DateRange) -> AsyncIterator[StreamEvent]:
        """Upsert new records in batches, yielding progress events."""
        try:
            records, partition = await self._plan(date_range)
            client = await self.client_factory()
        except Exception as exc:
            logger.error("transfer_planning_failed", extra={"error_message": str(exc)})
            yield ErrorEvent(message=str(exc))
            return

        to_insert, run_duplicates = dedupe_by_email(partition.new)
        skipped = len(partition.duplicate_ids) + len(partition.duplicate_emails) + len(run_duplicates)
        total = len(to_insert)
        batches = [to_insert[i : i + self.batch_size] for i in range(0, total, self.batch_size)]

        logger.info(
            "transfer_start",
            extra={"total_records": len(records), "to_insert": total, "skipped": skipped},
        )

        processed = 0
        failed = 0
        for index, batch in enumerate(batches, start=1):
            try:
                rows = [transform_record(record) for record in batch]
                await (
                    client.table(CANDIDATES_TABLE)
                    .upsert(rows, on_conflict="talent_id")
                    .execute()
                )
            except Exception as exc:
                failed += len(batch)
                logger.error(
                    "transfer_batch_failed",
                    extra={"batch_index": index, "batch_size": len(batch), "error_message": str(exc)},
                )
                yield ErrorEvent(message=f"Batch {index} failed: {exc}")
            else:
                processed += len(batch)
                yield ProgressEvent(
                    completed=processed,
                    total=total,
                    batch_index=index,
                    batch_count=len(batches),
                    inserted=len(batch),
                    skipped=skipped,
                )

            if index < len(batches):
                await asyncio.sleep(self.batch_delay)

        logger.info(
            "transfer_complete",
            extra={"processed": processed, "failed": failed, "skipped": skipped},
        )
        yield CompleteEvent(
            total_processed=processed,
            total_records=len(records),
            total_failed=failed,
            total_skipped=skipped,
        )

    # -- phase C ---------------------------------------------------------------

    async def _enrich_row(self, client: AsyncClient, row: dict[str, Any]) -> bool:
        """Enrich one row and write the update; returns whether it got an embedding.

        Rows left without an embedding are stamped ``embedding_skipped_at`` so
        the backfill stops picking them up.
        """
        update = await enrich_candidate(row, self.extractor, self.embedder)
        now = datetime.now(timezone.utc).isoformat()
        embedded = "embedding" in update
        update["embedding_skipped_at"] = None if embedded else now
        update["updated_at"] = now
        await client.table(CANDIDATES_TABLE).update(update).eq("id", row["id"]).execute()
        return embedded

    async def enrich(self, date_range: DateRange) -> AsyncIterator[StreamEvent]:
        """Enrich unembedded candidates created in *date_range*, one at a time.

        Rows previously skipped by the backfill are retried here.
        """
        try:
            client = await self.client_factory()
            rows = await self._fetch_all(
                lambda: client.table(CANDIDATES_TABLE)
                .select("*")
                .gte("created_at", date_range.start.isoformat())
                .lte("created_at", date_range.end.isoformat())
                .is_("embedding", "null")
                .order("id")
            )
        except Exception as exc:
            logger.error("enrich_planning_failed", extra={"error_message": str(exc)})
            yield ErrorEvent(message=str(exc))
            return

        total = len(rows)
        successful = 0
        skipped = 0
        failed = 0
        logger.info("enrich_start", extra={"total": total})

        for index, row in enumerate(rows, start=1):
            name = row.get("persons_name") or f"Candidate {row.get('id')}"
            try:
                embedded = await self._enrich_row(client, row)
            except Exception as exc:
                failed += 1
                logger.error(
                    "enrich_candidate_failed",
                    extra={"candidate_id": row.get("id"), "error_message": str(exc)},
                )
                yield ErrorEvent(message=f"Failed to process {name}: {exc}")
            else:
                if embedded:
                    successful += 1
                else:
                    skipped += 1
                    logger.warning(
                        "enrich_candidate_not_embedded",
                        extra={"candidate_id": row.get("id")},
                    )
                    yield ErrorEvent(message=f"No embedding stored for {name}")

            yield ProgressEvent(
                completed=index,
                total=total,
                successful=successful,
                skipped=skipped,
                current_candidate=name,
            )

            if index < total:
                await asyncio.sleep(self.item_delay)

        logger.info(
            "enrich_complete",
            extra={"successful": successful, "skipped": skipped, "failed": failed},
        )
        yield CompleteEvent(
            total_processed=total,
            total_successful=successful,
            total_failed=failed,
            total_skipped=skipped,
        )

    async def backfill_embeddings(self, limit: int) -> BackfillResult:
        """Enrich up to *limit* candidates lacking an embedding, oldest id first.

        Rows already stamped ``embedding_skipped_at`` are left out.
        """
        if limit <= 0:
            raise ValueError("limit must be positive")

        client = await self.client_factory()
        result = await (
            client.table(CANDIDATES_TABLE)
            .select("*")
            .is_("embedding", "null")
            .is_("embedding_skipped_at", "null")
            .order("id")
            .limit(limit)
            .execute()
        )
        rows = result.data or []

        outcome = BackfillResult()
        for index, row in enumerate(rows, start=1):
            outcome.processed += 1
            try:
                embedded = await self._enrich_row(client, row)
            except Exception as exc:
                outcome.failed += 1
                outcome.errors.append({"id": row.get("id"), "error": str(exc)})
                logger.error(
                    "backfill_candidate_failed",
                    extra={"candidate_id": row.get("id"), "error_message": str(exc)},
                )
            else:
                if embedded:
                    outcome.successful += 1
                else:
                    outcome.skipped += 1

            if index < len(rows):
                await asyncio.sleep(self.item_delay)

        logger.info(
            "embedding_backfill_complete",
            extra={
                "processed": outcome.processed,
                "successful": outcome.successful,
                "skipped": outcome.skipped,
                "failed": outcome.failed,
            },
        )
        return outcome
