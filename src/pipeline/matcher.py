"""Filter chain applied to parsed jobs before reconciliation.

Filter order:
  1. DeduplicationFilter     : in-memory within run, by job_id
  2. IgnoredCompaniesFilter  : case-insensitive exact match on company
"""

import logging
from collections.abc import Callable, Iterable

from src.core.schemas import JobRecord
from src.store import schema
from src.store.base import StoreTransport

logger = logging.getLogger(__name__)

# A filter is a callable that takes records and returns a subset.
Filter = Callable[[list[JobRecord]], list[JobRecord]]


def normalize_company_names(names: Iterable[str]) -> frozenset[str]:
    """Lowercased, trimmed, non-empty company names."""
    return frozenset(n.strip().lower() for n in names if n and n.strip())


def load_ignored_companies(store: StoreTransport, config_sheet: str = "_Config") -> frozenset[str]:
    """Read the ignore list below its header in the config sheet."""
    column = schema.column_letter(schema.IGNORED_COMPANIES_COLUMN)
    rows = store.read_range(f"{config_sheet}!{column}2:{column}")
    companies = normalize_company_names(row[0] for row in rows if row)
    logger.info("Loaded ignored companies: %d", len(companies))
    return companies


class DeduplicationFilter:
    """Remove records whose job_id was already seen, first occurrence wins.

    Stateful: tracks seen IDs across calls within the same filter instance.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def __call__(self, records: list[JobRecord]) -> list[JobRecord]:
        result: list[JobRecord] = []
        for r in records:
            if r.job_id not in self._seen:
                self._seen.add(r.job_id)
                result.append(r)
        deduped = len(records) - len(result)
        if deduped:
            logger.debug("DeduplicationFilter: removed %d duplicates", deduped)
        return result


class IgnoredCompaniesFilter:
    """Remove records from companies on the ignore list."""

    def __init__(self, ignored: Iterable[str]) -> None:
        self._ignored = normalize_company_names(ignored)
        self.ignored_count = 0

    def is_ignored(self, company: str) -> bool:
        return company.strip().lower() in self._ignored

    def __call__(self, records: list[JobRecord]) -> list[JobRecord]:
        if not self._ignored:
            return records
        result: list[JobRecord] = []
        for r in records:
            if self.is_ignored(r.company):
                logger.info("Job %s ignored, company in ignore list: %s", r.job_id, r.company)
                self.ignored_count += 1
            else:
                result.append(r)
        return result


def run_filter_chain(records: list[JobRecord], filters: list[Filter]) -> list[JobRecord]:
    """Apply filters in order, returning the surviving records."""
    result = records
    for f in filters:
        result = f(result)
    return result
