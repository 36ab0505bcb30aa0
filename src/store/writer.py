"""Reconciles freshly parsed jobs against the rows already in the sheet.

One JobReconciler owns one ExistingJobIndex for the length of a run:
  1. load_existing()          -- single read of the Jobs sheet
  2. classify_batch()         -- new / changed / unchanged by job_id
  3. needs_analysis()         -- jobs worth sending to the AI scorers
  4. apply_writes()           -- update changed rows, append new rows
  5. backfill_probabilities() -- score rows that were stored unscored

The index is updated after every write so later steps see the sheet as it
is now, not as it was at load time.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from types import MappingProxyType
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict

from src.core.schemas import JobRecord, JobStatus, MatchResult, ProviderScore
from src.store import schema
from src.store.base import Row, StoreTransport
from src.store.schema import cell, cell_range, rows_range, sanitize_cell_value

logger = logging.getLogger(__name__)

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class ExistingJob(BaseModel):
    """What the sheet currently holds for one job_id."""

    model_config = ConfigDict(frozen=True)

    row_number: int
    title: str = ""
    company: str = ""
    location: str = ""
    url: str = ""
    status: str = ""
    probability: int | None = None
    has_ai_scores: bool = False

    @property
    def awaiting_score(self) -> bool:
        """Stored without a score and not yet touched by a human."""
        return (
            self.probability is None
            and not self.has_ai_scores
            and self.status == JobStatus.NEW.value
        )


class BatchClassification(BaseModel):
    """Partition of a batch against the index."""

    new: list[JobRecord]
    to_update: list[tuple[JobRecord, int]]
    skipped: list[JobRecord]


class WriteResult(BaseModel):
    """Counts from apply_writes."""

    jobs_added: int = 0
    jobs_updated: int = 0
    jobs_skipped: int = 0


def _parse_probability(value: str) -> int | None:
    value = value.strip().rstrip("%")
    if not value:
        return None
    try:
        return int(round(float(value)))
    except (ValueError, OverflowError):
        return None


def _differs(stored: str, incoming: str) -> bool:
    return stored not in (incoming, sanitize_cell_value(incoming))


def _score_cells(score: ProviderScore | None) -> list[str]:
    if score is None:
        return ["", ""]
    return [str(score.probability), sanitize_cell_value(score.reasoning)]


def _requirement_cells(result: MatchResult | None) -> list[str]:
    if result is None:
        return ["", "", ""]
    met = result.requirements_met
    total = result.requirements_total
    gaps = result.requirements_gaps
    return [
        "" if met is None else str(met),
        "" if total is None else str(total),
        sanitize_cell_value("; ".join(gaps)) if gaps else "",
    ]


class JobReconciler:
    """Keeps the Jobs sheet consistent with parsed jobs and match results."""

    def __init__(
        self,
        store: StoreTransport,
        *,
        sheet: str = "Jobs",
        tz: str = "Pacific/Guam",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._sheet = sheet
        self._tz = ZoneInfo(tz)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._index: dict[str, ExistingJob] | None = None

    @property
    def index(self) -> Mapping[str, ExistingJob]:
        """Read-only view of the current index (loads it on first access)."""
        return MappingProxyType(self._require_index())

    def load_existing(self) -> int:
        """Read the whole Jobs sheet once and rebuild the index."""
        values = self._store.read_range(f"{self._sheet}!A:{schema.LAST_COLUMN}")
        index: dict[str, ExistingJob] = {}
        # Row 1 is the header; sheet rows are 1-based
        for offset, row in enumerate(values[1:], start=2):
            job_id = cell(row, schema.JOB_ID).strip()
            if not job_id:
                continue
            index[job_id] = ExistingJob(
                row_number=offset,
                title=cell(row, schema.JOB_TITLE),
                company=cell(row, schema.COMPANY),
                location=cell(row, schema.LOCATION),
                url=cell(row, schema.URL),
                status=cell(row, schema.STATUS).strip(),
                probability=_parse_probability(cell(row, schema.PROBABILITY)),
                has_ai_scores=bool(
                    cell(row, schema.PRIMARY_SCORE).strip()
                    or cell(row, schema.SECONDARY_SCORE).strip()
                ),
            )
        self._index = index
        logger.info("Loaded existing jobs: %d", len(index))
        return len(index)

    def classify_batch(self, records: Iterable[JobRecord]) -> BatchClassification:
        """Split records into new, changed (with row number) and unchanged."""
        index = self._require_index()
        new: list[JobRecord] = []
        to_update: list[tuple[JobRecord, int]] = []
        skipped: list[JobRecord] = []
        seen: set[str] = set()

        for record in records:
            if record.job_id in seen:
                logger.debug("Job %s repeated in batch, ignoring", record.job_id)
                continue
            seen.add(record.job_id)

            existing = index.get(record.job_id)
            if existing is None:
                new.append(record)
            elif self._has_changed(record, existing):
                to_update.append((record, existing.row_number))
            else:
                skipped.append(record)

        return BatchClassification(new=new, to_update=to_update, skipped=skipped)

    def needs_analysis(self, records: Iterable[JobRecord]) -> list[JobRecord]:
        """Records that are new or stored but still awaiting a score."""
        index = self._require_index()
        pending: list[JobRecord] = []
        seen: set[str] = set()
        for record in records:
            if record.job_id in seen:
                continue
            seen.add(record.job_id)
            existing = index.get(record.job_id)
            if existing is None or existing.awaiting_score:
                pending.append(record)
        return pending

    def apply_writes(
        self,
        records: Iterable[JobRecord],
        match_results: Mapping[str, MatchResult] | None = None,
    ) -> WriteResult:
        """Update changed rows and append new ones.

        Updates touch only date_modified and the comparable fields; status,
        scores, notes and date_added stay as they are in the sheet.
        """
        batch = self.classify_batch(records)
        results = match_results or {}

        if batch.skipped:
            logger.info("Skipping unchanged jobs: %d", len(batch.skipped))

        if batch.to_update:
            self._update_rows(batch.to_update)
            logger.info("Updated existing jobs: %d", len(batch.to_update))

        if batch.new:
            self._append_rows(batch.new, results)
            logger.info("Appended new jobs: %d", len(batch.new))
        else:
            logger.info("No new jobs to add")

        return WriteResult(
            jobs_added=len(batch.new),
            jobs_updated=len(batch.to_update),
            jobs_skipped=len(batch.skipped),
        )

    def backfill_probabilities(self, match_results: Mapping[str, MatchResult]) -> int:
        """Write scores into stored rows that were saved without one.

        Only rows still at NEW with no score are touched. Status moves from
        NEW to LOW MATCH when the fresh score says so and is otherwise left
        alone.
        """
        index = self._require_index()
        now = self._now()
        updates: list[tuple[str, list[Row]]] = []
        backfilled: list[tuple[ExistingJob, MatchResult]] = []

        for job_id, result in match_results.items():
            existing = index.get(job_id)
            if existing is None or result.probability is None or not existing.awaiting_score:
                continue
            row = existing.row_number
            if result.status is JobStatus.LOW_MATCH:
                updates.append(
                    (cell_range(self._sheet, row, schema.STATUS), [[result.status.value]])
                )
            updates.append(
                (
                    cell_range(self._sheet, row, schema.DATE_MODIFIED, schema.SECONDARY_ARGUMENT),
                    [[now, str(result.probability), *_score_cells(result.primary),
                      *_score_cells(result.secondary)]],
                )
            )
            updates.append(
                (
                    cell_range(self._sheet, row, schema.REQUIREMENTS_MET, schema.REQUIREMENTS_GAPS),
                    [_requirement_cells(result)],
                )
            )
            backfilled.append((existing, result))

        if not backfilled:
            return 0

        self._store.batch_write(updates)
        for existing, result in backfilled:
            status = (
                result.status.value
                if result.status is JobStatus.LOW_MATCH
                else existing.status
            )
            index[result.job_id] = existing.model_copy(
                update={
                    "probability": result.probability,
                    "status": status,
                    "has_ai_scores": (
                        existing.has_ai_scores
                        or result.primary is not None
                        or result.secondary is not None
                    ),
                }
            )
        logger.info("Backfilled probabilities for existing jobs: %d", len(backfilled))
        return len(backfilled)

    # --- Private helpers ---

    def _require_index(self) -> dict[str, ExistingJob]:
        if self._index is None:
            self.load_existing()
        assert self._index is not None
        return self._index

    def _now(self) -> str:
        return self._clock().astimezone(self._tz).strftime(_TIMESTAMP_FORMAT)

    @staticmethod
    def _has_changed(record: JobRecord, existing: ExistingJob) -> bool:
        return (
            _differs(existing.title, record.title)
            or _differs(existing.company, record.company)
            or _differs(existing.location, record.location)
            or _differs(existing.url, record.url)
        )

    def _update_rows(self, to_update: list[tuple[JobRecord, int]]) -> None:
        index = self._require_index()
        now = self._now()
        updates: list[tuple[str, list[Row]]] = []
        for record, row in to_update:
            updates.append((cell_range(self._sheet, row, schema.DATE_MODIFIED), [[now]]))
            updates.append(
                (
                    cell_range(self._sheet, row, schema.JOB_TITLE, schema.URL),
                    [[
                        sanitize_cell_value(record.title),
                        sanitize_cell_value(record.company),
                        sanitize_cell_value(record.location),
                        record.url,
                    ]],
                )
            )
        self._store.batch_write(updates)

        for record, _ in to_update:
            index[record.job_id] = index[record.job_id].model_copy(
                update={
                    "title": sanitize_cell_value(record.title),
                    "company": sanitize_cell_value(record.company),
                    "location": sanitize_cell_value(record.location),
                    "url": record.url,
                }
            )

    def _append_rows(self, records: list[JobRecord], results: Mapping[str, MatchResult]) -> None:
        index = self._require_index()
        now = self._now()
        rows = [self._build_row(record, results.get(record.job_id), now) for record in records]

        # Re-read right before appending so rows added by hand since
        # load_existing() are not overwritten.
        column_a = self._store.read_range(f"{self._sheet}!A:A")
        current_row_count = max(len(column_a), 1)
        first_row = current_row_count + 1
        self._store.write_range(rows_range(self._sheet, first_row, first_row + len(rows) - 1), rows)

        for offset, (record, row) in enumerate(zip(records, rows, strict=True)):
            index[record.job_id] = ExistingJob(
                row_number=first_row + offset,
                title=row[schema.JOB_TITLE],
                company=row[schema.COMPANY],
                location=row[schema.LOCATION],
                url=row[schema.URL],
                status=row[schema.STATUS],
                probability=_parse_probability(row[schema.PROBABILITY]),
                has_ai_scores=bool(row[schema.PRIMARY_SCORE] or row[schema.SECONDARY_SCORE]),
            )

    @staticmethod
    def _build_row(record: JobRecord, result: MatchResult | None, now: str) -> Row:
        row: Row = [""] * schema.TOTAL_COLUMNS
        row[schema.JOB_ID] = record.job_id
        row[schema.STATUS] = result.status.value if result else JobStatus.NEW.value
        row[schema.DATE_ADDED] = now
        row[schema.DATE_MODIFIED] = now

        probability = result.probability if result else record.probability
        row[schema.PROBABILITY] = "" if probability is None else str(probability)
        if result is not None:
            row[schema.PRIMARY_SCORE:schema.SECONDARY_ARGUMENT + 1] = [
                *_score_cells(result.primary),
                *_score_cells(result.secondary),
            ]
            row[schema.REQUIREMENTS_MET:schema.REQUIREMENTS_GAPS + 1] = _requirement_cells(result)

        row[schema.JOB_TITLE] = sanitize_cell_value(record.title)
        row[schema.COMPANY] = sanitize_cell_value(record.company)
        row[schema.LOCATION] = sanitize_cell_value(record.location)
        row[schema.URL] = record.url
        row[schema.NOTES] = ""
        return row
