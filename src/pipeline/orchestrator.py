"""Orchestrator: one end-to-end processing run over the alert mailbox.

Data flow:
  1. Ensure the sheet structure exists
  2. Fetch unread alert emails
  3. Parse job cards into records (deduplicated per email)
  4. Filter chain: dedup across emails, drop ignored companies
  5. Load the existing sheet rows, pick jobs that still need a score
  6. Score them (optional, needs a reference document)
  7. Write: update changed rows, append new rows, backfill scores
  8. Mark emails processed (only after every write succeeded)

Every blocking transport call runs in a worker thread via asyncio.to_thread.
"""

import asyncio
import logging
from collections.abc import Callable

from src.core.config import Settings
from src.core.log import bind_run_id, new_run_id, reset_run_id
from src.core.schemas import JobRecord, MatchResult, RunSummary
from src.pipeline.analyzer import JobMatchAnalyzer, summarize
from src.pipeline.matcher import (
    DeduplicationFilter,
    Filter,
    IgnoredCompaniesFilter,
    load_ignored_companies,
    run_filter_chain,
)
from src.pipeline.runtime import Runtime
from src.store.writer import JobReconciler

logger = logging.getLogger(__name__)


def _fetch_emails(runtime: Runtime, query: str) -> list[tuple[str, str]]:
    emails: list[tuple[str, str]] = []
    for message_id in runtime.mail.list_unread(query):
        body = runtime.mail.fetch_body(message_id)
        if body:
            emails.append((message_id, body))
    return emails


async def _analyze(
    settings: Settings,
    runtime: Runtime,
    pending: list[JobRecord],
    summary: RunSummary,
) -> dict[str, MatchResult]:
    document_id = settings.reference.document_id
    if not document_id or not settings.scoring.enabled:
        logger.info("No reference document configured, skipping match analysis")
        return {}
    if not pending:
        logger.info("No jobs need analysis")
        return {}

    analyzer = JobMatchAnalyzer(
        runtime.reference_source,
        runtime.primary,
        runtime.secondary,
        threshold=settings.scoring.low_match_threshold,
        concurrency=settings.scoring.concurrency,
    )
    try:
        await asyncio.to_thread(analyzer.load_reference, document_id)
    except Exception:
        logger.exception("Failed to load reference document, continuing without match scores")
        return {}

    results = await analyzer.score_batch(pending)
    stats = summarize(results)
    summary.jobs_analyzed = stats.analyzed
    summary.jobs_low_match = stats.low_match
    summary.jobs_not_available = stats.not_available
    return {r.job_id: r for r in results}


async def run_pipeline(settings: Settings, runtime: Runtime, summary: RunSummary) -> RunSummary:
    """Process all unread alert emails, filling ``summary`` as it goes.

    Transport and configuration errors propagate; counts gathered before
    the failure stay on ``summary``.
    """
    await asyncio.to_thread(runtime.store.ensure_schema)

    emails = await asyncio.to_thread(_fetch_emails, runtime, settings.mail.query)
    summary.emails_processed = len(emails)
    if not emails:
        logger.info("No new job alert emails found")
        summary.success = True
        return summary

    message_ids = [message_id for message_id, _ in emails]
    parsed: list[JobRecord] = []
    for _, body in emails:
        parsed.extend(runtime.parser.parse_email(body))
    summary.jobs_found = len(parsed)

    ignored = await asyncio.to_thread(
        load_ignored_companies, runtime.store, settings.store.config_sheet
    )
    ignore_filter = IgnoredCompaniesFilter(ignored)
    filters: list[Filter] = [DeduplicationFilter(), ignore_filter]
    records = run_filter_chain(parsed, filters)
    summary.jobs_ignored = ignore_filter.ignored_count
    logger.info(
        "Jobs after filtering: %d of %d (%d ignored)",
        len(records), len(parsed), ignore_filter.ignored_count,
    )

    if records:
        reconciler = JobReconciler(
            runtime.store,
            sheet=settings.store.jobs_sheet,
            tz=settings.store.timezone,
            clock=runtime.clock,
        )
        await asyncio.to_thread(reconciler.load_existing)
        pending = reconciler.needs_analysis(records)
        match_results = await _analyze(settings, runtime, pending, summary)

        written = await asyncio.to_thread(reconciler.apply_writes, records, match_results)
        summary.jobs_added = written.jobs_added
        summary.jobs_updated = written.jobs_updated
        summary.jobs_skipped = written.jobs_skipped

        if match_results:
            summary.probabilities_backfilled = await asyncio.to_thread(
                reconciler.backfill_probabilities, match_results
            )
    else:
        logger.info("No jobs extracted from emails")

    await asyncio.to_thread(runtime.mail.mark_processed, message_ids)
    summary.success = True
    logger.info(
        "Processing complete: %d emails, %d found, %d added, %d updated, %d skipped",
        summary.emails_processed,
        summary.jobs_found,
        summary.jobs_added,
        summary.jobs_updated,
        summary.jobs_skipped,
    )
    return summary


async def process_job_alerts(
    settings_factory: Callable[[], Settings],
    runtime_factory: Callable[[Settings], Runtime],
    run_id: str | None = None,
) -> RunSummary:
    """One run with error capture: never raises, reports failure in the summary."""
    summary = RunSummary(run_id=run_id or new_run_id())
    token = bind_run_id(summary.run_id)
    logger.info("Starting job alert processing")
    try:
        settings = settings_factory()
        runtime = runtime_factory(settings)
        await run_pipeline(settings, runtime, summary)
    except Exception as e:
        logger.exception("Job alert processing failed")
        summary.success = False
        summary.error = str(e) or type(e).__name__
    finally:
        reset_run_id(token)
    return summary
