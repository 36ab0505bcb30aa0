"""Match analysis: scores jobs against the reference resume.

Flow per job:
  1. primary provider scores the job (may also return the job description)
  2. secondary provider (dual mode) scores it, given that description
  3. probabilities are combined and mapped to a status by threshold

Jobs are scored concurrently by a fixed pool of workers. Provider calls are
blocking SDK calls and run in threads.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Protocol

from pydantic import BaseModel

from src.core.schemas import JobRecord, JobStatus, MatchResult, ProviderScore
from src.pipeline.llm_scorer import round_half_up
from src.profile.base import ReferenceSource

logger = logging.getLogger(__name__)

NOT_AVAILABLE_REASONING = (
    "Job posting could not be found or is no longer accepting applications"
)


class ScoringProvider(Protocol):
    """One model's opinion on how well a job matches the resume."""

    @property
    def provider_id(self) -> str: ...

    @property
    def display_name(self) -> str: ...

    def score(
        self,
        record: JobRecord,
        reference_text: str,
        job_description: str | None = None,
    ) -> ProviderScore | None: ...


class AnalysisStats(BaseModel):
    """Aggregate counts over one batch of match results."""

    total: int = 0
    analyzed: int = 0
    low_match: int = 0
    not_available: int = 0
    average_probability: int | None = None


def determine_status(probability: int | None, threshold: int) -> JobStatus:
    """Below the threshold is LOW MATCH; equal to it is not."""
    if probability is not None and probability < threshold:
        return JobStatus.LOW_MATCH
    return JobStatus.NEW


def summarize(results: Sequence[MatchResult]) -> AnalysisStats:
    probabilities = [r.probability for r in results if r.probability is not None]
    return AnalysisStats(
        total=len(results),
        analyzed=len(probabilities),
        low_match=sum(1 for r in results if r.status is JobStatus.LOW_MATCH),
        not_available=sum(1 for r in results if r.status is JobStatus.NOT_AVAILABLE),
        average_probability=(
            round_half_up(sum(probabilities) / len(probabilities)) if probabilities else None
        ),
    )


class JobMatchAnalyzer:
    """Scores jobs with one or two providers under a concurrency cap."""

    def __init__(
        self,
        reference_source: ReferenceSource | None,
        primary: ScoringProvider | None,
        secondary: ScoringProvider | None = None,
        *,
        threshold: int = 70,
        concurrency: int = 3,
    ) -> None:
        if concurrency < 1:
            msg = f"concurrency must be at least 1, got {concurrency}"
            raise ValueError(msg)
        self._reference_source = reference_source
        self._primary = primary
        self._secondary = secondary
        self._threshold = threshold
        self._concurrency = concurrency
        self._reference_text: str | None = None

    def load_reference(self, document_id: str) -> str:
        """Fetch the resume once; later calls reuse the cached text."""
        if self._reference_text is not None:
            return self._reference_text
        if self._reference_source is None:
            msg = "No reference source configured"
            raise ValueError(msg)
        text = self._reference_source.fetch_text(document_id)
        self._reference_text = text
        logger.info("Reference loaded (%d chars)", len(text))
        return text

    async def score_one(self, record: JobRecord) -> MatchResult:
        """Score a single job. Provider failures never raise."""
        reference = self._reference_text
        providers = [p for p in (self._primary, self._secondary) if p is not None]
        if reference is None or not providers:
            logger.debug("Nothing to score job %s with, using default result", record.job_id)
            return MatchResult(job_id=record.job_id)

        if len(providers) == 1:
            score = await self._call(providers[0], record, reference)
            if score is None:
                return self._not_available(record)
            return MatchResult(
                job_id=record.job_id,
                probability=score.probability,
                status=determine_status(score.probability, self._threshold),
                reasoning=score.reasoning,
                primary=score if providers[0] is self._primary else None,
                secondary=score if providers[0] is self._secondary else None,
            )

        assert self._primary is not None and self._secondary is not None
        primary = await self._call(self._primary, record, reference)
        description = primary.job_description if primary else None
        secondary = await self._call(self._secondary, record, reference, description)
        return self._combine(record, primary, secondary)

    async def score_batch(self, records: Sequence[JobRecord]) -> list[MatchResult]:
        """Score many jobs; results line up with ``records``."""
        if not records:
            return []
        if self._reference_text is None:
            logger.warning("Reference not loaded, returning default status for all jobs")

        logger.info(
            "Starting job analysis: %d jobs, %d workers", len(records), self._concurrency
        )
        results: list[MatchResult | None] = [None] * len(records)
        queue: asyncio.Queue[int] = asyncio.Queue()
        for i in range(len(records)):
            queue.put_nowait(i)

        async def worker() -> None:
            while True:
                try:
                    i = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                record = records[i]
                try:
                    results[i] = await self.score_one(record)
                except Exception:
                    logger.exception("Unexpected error scoring job %s", record.job_id)
                    results[i] = self._not_available(record)
                finally:
                    queue.task_done()

        workers = min(self._concurrency, len(records))
        await asyncio.gather(*(worker() for _ in range(workers)))

        final = [r if r is not None else MatchResult(job_id=rec.job_id) for r, rec in zip(results, records)]
        stats = summarize(final)
        logger.info(
            "Job analysis complete: %d analyzed, %d low match, %d not available, avg %s",
            stats.analyzed,
            stats.low_match,
            stats.not_available,
            stats.average_probability,
        )
        return final

    # --- Private helpers ---

    async def _call(
        self,
        provider: ScoringProvider,
        record: JobRecord,
        reference: str,
        job_description: str | None = None,
    ) -> ProviderScore | None:
        try:
            return await asyncio.to_thread(provider.score, record, reference, job_description)
        except Exception:
            logger.warning(
                "%s failed for job %s", provider.display_name, record.job_id, exc_info=True
            )
            return None

    def _not_available(self, record: JobRecord) -> MatchResult:
        logger.warning("Could not score job %s (%s), marking not available", record.job_id, record.title)
        return MatchResult(
            job_id=record.job_id,
            status=JobStatus.NOT_AVAILABLE,
            reasoning=NOT_AVAILABLE_REASONING,
        )

    def _combine(
        self,
        record: JobRecord,
        primary: ProviderScore | None,
        secondary: ProviderScore | None,
    ) -> MatchResult:
        if primary is None and secondary is None:
            return self._not_available(record)

        if primary is not None and secondary is not None:
            probability = round_half_up((primary.probability + secondary.probability) / 2)
            assert self._primary is not None and self._secondary is not None
            reasoning = (
                f"[{self._primary.display_name}] {primary.reasoning}\n\n"
                f"[{self._secondary.display_name}] {secondary.reasoning}"
            )
            logger.info(
                "Ensemble score for job %s: %d (%d / %d)",
                record.job_id,
                probability,
                primary.probability,
                secondary.probability,
            )
        else:
            only = primary if primary is not None else secondary
            assert only is not None
            probability = only.probability
            reasoning = only.reasoning

        return MatchResult(
            job_id=record.job_id,
            probability=probability,
            status=determine_status(probability, self._threshold),
            reasoning=reasoning,
            primary=primary,
            secondary=secondary,
        )
