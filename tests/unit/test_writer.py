"""Tests for JobReconciler: index loading, classification, writes and backfill."""

from collections.abc import Callable
from datetime import datetime

import pytest

from src.core.schemas import JobStatus, MatchResult
from src.store import schema
from src.store.writer import ExistingJob, JobReconciler
from tests.fakes import FakeStore, make_record, make_score

NOW_GUAM = "2026-03-01 12:30:00"


def _stored_row(job_id: str, **fields: str) -> list[str]:
    row = [""] * schema.TOTAL_COLUMNS
    row[schema.JOB_ID] = job_id
    row[schema.STATUS] = fields.pop("status", "NEW")
    row[schema.DATE_ADDED] = fields.pop("date_added", "2026-01-01 09:00:00")
    row[schema.DATE_MODIFIED] = fields.pop("date_modified", "2026-01-01 09:00:00")
    row[schema.JOB_TITLE] = fields.pop("title", "Senior Python Engineer")
    row[schema.COMPANY] = fields.pop("company", "Acme Corp")
    row[schema.LOCATION] = fields.pop("location", "United States (Remote)")
    row[schema.URL] = fields.pop("url", f"https://www.linkedin.com/jobs/view/{job_id}")
    for name, value in fields.items():
        row[getattr(schema, name.upper())] = value
    return row


def _make_store(*rows: list[str]) -> FakeStore:
    return FakeStore({"Jobs": [list(schema.COLUMN_HEADERS), *rows]})


def _make_reconciler(store: FakeStore, clock: Callable[[], datetime]) -> JobReconciler:
    return JobReconciler(store, clock=clock)


# ---------------------------------------------------------------------------
# load_existing
# ---------------------------------------------------------------------------


class TestLoadExisting:
    def test_header_only(self, store: FakeStore, clock: Callable[[], datetime]) -> None:
        assert _make_reconciler(store, clock).load_existing() == 0

    def test_empty_sheet(self, clock: Callable[[], datetime]) -> None:
        assert _make_reconciler(FakeStore({"Jobs": []}), clock).load_existing() == 0

    def test_row_numbers_and_fields(self, clock: Callable[[], datetime]) -> None:
        store = _make_store(
            _stored_row("111", status="READ", probability="75"),
            ["", "NEW"],
            _stored_row("333", primary_score="40"),
        )
        reconciler = _make_reconciler(store, clock)
        assert reconciler.load_existing() == 2

        first = reconciler.index["111"]
        assert first.row_number == 2
        assert first.status == "READ"
        assert first.probability == 75
        assert first.has_ai_scores is False

        third = reconciler.index["333"]
        assert third.row_number == 4
        assert third.probability is None
        assert third.has_ai_scores is True

    @pytest.mark.parametrize(
        ("typed", "expected"),
        [
            ("82%", 82),
            ("64.5", 64),
            ("n/a", None),
            ("inf", None),
            ("-inf", None),
            ("1e400", None),
            ("nan", None),
        ],
    )
    def test_hand_typed_probability(
        self, typed: str, expected: int | None, clock: Callable[[], datetime]
    ) -> None:
        store = _make_store(_stored_row("111", probability=typed))
        reconciler = _make_reconciler(store, clock)
        assert reconciler.load_existing() == 1
        assert reconciler.index["111"].probability == expected

    def test_single_read(self, clock: Callable[[], datetime]) -> None:
        store = _make_store(_stored_row("111"))
        _make_reconciler(store, clock).load_existing()
        assert store.reads == ["Jobs!A:Q"]

    def test_index_is_read_only(self, store: FakeStore, clock: Callable[[], datetime]) -> None:
        reconciler = _make_reconciler(store, clock)
        with pytest.raises(TypeError):
            reconciler.index["1"] = ExistingJob(row_number=2)  # type: ignore[index]


class TestExistingJob:
    def test_awaiting_score(self) -> None:
        assert ExistingJob(row_number=2, status="NEW").awaiting_score is True

    @pytest.mark.parametrize(
        "overrides",
        [{"status": "READ"}, {"probability": 50}, {"has_ai_scores": True}, {"status": "LOW MATCH"}],
    )
    def test_not_awaiting(self, overrides: dict[str, object]) -> None:
        job = ExistingJob(row_number=2, **{"status": "NEW", **overrides})  # type: ignore[arg-type]
        assert job.awaiting_score is False


# ---------------------------------------------------------------------------
# classify_batch / needs_analysis
# ---------------------------------------------------------------------------


class TestClassifyBatch:
    def test_partition(self, clock: Callable[[], datetime]) -> None:
        store = _make_store(_stored_row("111"), _stored_row("222", title="Old Title"))
        reconciler = _make_reconciler(store, clock)
        batch = reconciler.classify_batch([
            make_record("111"),
            make_record("222", title="New Title"),
            make_record("333"),
        ])
        assert [r.job_id for r in batch.new] == ["333"]
        assert [(r.job_id, row) for r, row in batch.to_update] == [("222", 3)]
        assert [r.job_id for r in batch.skipped] == ["111"]

    def test_repeat_in_batch_counted_once(self, store: FakeStore, clock: Callable[[], datetime]) -> None:
        batch = _make_reconciler(store, clock).classify_batch(
            [make_record("1"), make_record("1", title="Other")]
        )
        assert len(batch.new) == 1
        assert batch.new[0].title == "Senior Python Engineer"

    def test_sanitized_cell_is_not_a_change(self, clock: Callable[[], datetime]) -> None:
        store = _make_store(_stored_row("111", company="'=Acme"))
        batch = _make_reconciler(store, clock).classify_batch([make_record("111", company="=Acme")])
        assert batch.skipped and not batch.to_update

    def test_unchanged_store_twice(self, clock: Callable[[], datetime]) -> None:
        store = _make_store(_stored_row("111"), _stored_row("222"))
        reconciler = _make_reconciler(store, clock)
        records = [make_record("111"), make_record("222")]
        assert reconciler.classify_batch(records).to_update == []
        assert reconciler.classify_batch(records).to_update == []

    def test_location_change_detected(self, clock: Callable[[], datetime]) -> None:
        store = _make_store(_stored_row("111"))
        batch = _make_reconciler(store, clock).classify_batch(
            [make_record("111", location="Boston, MA (Hybrid)")]
        )
        assert len(batch.to_update) == 1


class TestNeedsAnalysis:
    def test_selection(self, clock: Callable[[], datetime]) -> None:
        store = _make_store(
            _stored_row("awaiting"),
            _stored_row("scored", probability="80"),
            _stored_row("human", status="INTERESTED"),
        )
        pending = _make_reconciler(store, clock).needs_analysis([
            make_record("awaiting"),
            make_record("scored"),
            make_record("human"),
            make_record("brand-new"),
            make_record("brand-new"),
        ])
        assert [r.job_id for r in pending] == ["awaiting", "brand-new"]


# ---------------------------------------------------------------------------
# apply_writes
# ---------------------------------------------------------------------------


class TestApplyWrites:
    def test_appends_to_empty_store(self, store: FakeStore, clock: Callable[[], datetime]) -> None:
        reconciler = _make_reconciler(store, clock)
        result = reconciler.apply_writes([make_record("1"), make_record("2"), make_record("3")])

        assert (result.jobs_added, result.jobs_updated, result.jobs_skipped) == (3, 0, 0)
        assert store.writes[-1][0] == "Jobs!A2:Q4"
        row = store.row("Jobs", 2)
        assert row[schema.JOB_ID] == "1"
        assert row[schema.STATUS] == "NEW"
        assert row[schema.DATE_ADDED] == NOW_GUAM
        assert row[schema.DATE_MODIFIED] == NOW_GUAM
        assert row[schema.PROBABILITY] == ""
        assert row[schema.URL] == "https://www.linkedin.com/jobs/view/1"
        assert row[schema.NOTES] == ""
        assert reconciler.index["3"].row_number == 4

    def test_rerun_skips_everything(self, store: FakeStore, clock: Callable[[], datetime]) -> None:
        records = [make_record("1"), make_record("2"), make_record("3")]
        _make_reconciler(store, clock).apply_writes(records)

        result = _make_reconciler(store, clock).apply_writes(records)
        assert (result.jobs_added, result.jobs_updated, result.jobs_skipped) == (0, 0, 3)

    def test_same_instance_sees_its_own_appends(
        self, store: FakeStore, clock: Callable[[], datetime]
    ) -> None:
        reconciler = _make_reconciler(store, clock)
        reconciler.apply_writes([make_record("1")])
        result = reconciler.apply_writes([make_record("1")])
        assert result.jobs_skipped == 1
        assert len(store.sheets["Jobs"]) == 2

    def test_append_after_rows_added_by_hand(self, clock: Callable[[], datetime]) -> None:
        store = _make_store(_stored_row("111"))
        reconciler = _make_reconciler(store, clock)
        reconciler.load_existing()
        store.sheets["Jobs"].append(_stored_row("manual"))

        reconciler.apply_writes([make_record("999")])
        assert store.row("Jobs", 3)[schema.JOB_ID] == "manual"
        assert store.row("Jobs", 4)[schema.JOB_ID] == "999"

    def test_text_sanitized(self, store: FakeStore, clock: Callable[[], datetime]) -> None:
        _make_reconciler(store, clock).apply_writes(
            [make_record("1", title="=HYPERLINK(\"x\")", company="@Evil", location="-1")]
        )
        row = store.row("Jobs", 2)
        assert row[schema.JOB_TITLE] == "'=HYPERLINK(\"x\")"
        assert row[schema.COMPANY] == "'@Evil"
        assert row[schema.LOCATION] == "'-1"

    def test_new_row_with_match_result(self, store: FakeStore, clock: Callable[[], datetime]) -> None:
        result = MatchResult(
            job_id="1",
            probability=55,
            status=JobStatus.LOW_MATCH,
            reasoning="combined",
            primary=make_score(60, reasoning="primary says", requirements_met=3,
                               requirements_total=5, requirements_gaps=["Go", "=Kafka"]),
            secondary=make_score(50, reasoning="secondary says"),
        )
        _make_reconciler(store, clock).apply_writes([make_record("1")], {"1": result})

        row = store.row("Jobs", 2)
        assert row[schema.STATUS] == "LOW MATCH"
        assert row[schema.PROBABILITY] == "55"
        assert row[schema.PRIMARY_SCORE:schema.SECONDARY_ARGUMENT + 1] == [
            "60", "primary says", "50", "secondary says",
        ]
        assert row[schema.REQUIREMENTS_MET] == "3"
        assert row[schema.REQUIREMENTS_TOTAL] == "5"
        assert row[schema.REQUIREMENTS_GAPS] == "Go; =Kafka"

    def test_not_available_result(self, store: FakeStore, clock: Callable[[], datetime]) -> None:
        result = MatchResult(job_id="1", status=JobStatus.NOT_AVAILABLE, reasoning="gone")
        _make_reconciler(store, clock).apply_writes([make_record("1")], {"1": result})
        row = store.row("Jobs", 2)
        assert row[schema.STATUS] == "NOT AVAILABLE"
        assert row[schema.PROBABILITY] == ""

    def test_update_touches_only_comparable_fields(self, clock: Callable[[], datetime]) -> None:
        store = _make_store(
            _stored_row("111", status="APPLIED", probability="82", primary_score="82",
                        notes="call back", title="Old Title")
        )
        result = _make_reconciler(store, clock).apply_writes([make_record("111", title="New Title")])

        assert result.jobs_updated == 1
        assert store.batch_calls == 1
        assert [r for r, _ in store.writes] == ["Jobs!D2", "Jobs!J2:M2"]
        row = store.row("Jobs", 2)
        assert row[schema.JOB_TITLE] == "New Title"
        assert row[schema.DATE_MODIFIED] == NOW_GUAM
        assert row[schema.DATE_ADDED] == "2026-01-01 09:00:00"
        assert row[schema.STATUS] == "APPLIED"
        assert row[schema.PROBABILITY] == "82"
        assert row[schema.NOTES] == "call back"

    def test_update_ignores_match_result(self, clock: Callable[[], datetime]) -> None:
        store = _make_store(_stored_row("111", status="READ", title="Old Title"))
        low = MatchResult(job_id="111", probability=10, status=JobStatus.LOW_MATCH)
        _make_reconciler(store, clock).apply_writes([make_record("111", title="New")], {"111": low})
        assert store.row("Jobs", 2)[schema.STATUS] == "READ"

    def test_nothing_to_write(self, store: FakeStore, clock: Callable[[], datetime]) -> None:
        result = _make_reconciler(store, clock).apply_writes([])
        assert result.jobs_added == 0
        assert store.writes == []


# ---------------------------------------------------------------------------
# backfill_probabilities
# ---------------------------------------------------------------------------


class TestBackfillProbabilities:
    def test_low_match_advances_status(self, clock: Callable[[], datetime]) -> None:
        store = _make_store(_stored_row("111"))
        reconciler = _make_reconciler(store, clock)
        result = MatchResult(
            job_id="111",
            probability=40,
            status=JobStatus.LOW_MATCH,
            primary=make_score(40, reasoning="weak", requirements_met=1, requirements_total=4,
                               requirements_gaps=["Rust"]),
        )
        assert reconciler.backfill_probabilities({"111": result}) == 1

        row = store.row("Jobs", 2)
        assert row[schema.STATUS] == "LOW MATCH"
        assert row[schema.DATE_MODIFIED] == NOW_GUAM
        assert row[schema.PROBABILITY] == "40"
        assert row[schema.PRIMARY_SCORE] == "40"
        assert row[schema.PRIMARY_ARGUMENT] == "weak"
        assert row[schema.SECONDARY_SCORE] == ""
        assert row[schema.REQUIREMENTS_GAPS] == "Rust"
        assert reconciler.index["111"].status == "LOW MATCH"
        assert reconciler.index["111"].probability == 40

    def test_high_score_keeps_new(self, clock: Callable[[], datetime]) -> None:
        store = _make_store(_stored_row("111"))
        reconciler = _make_reconciler(store, clock)
        result = MatchResult(job_id="111", probability=85, status=JobStatus.NEW,
                             primary=make_score(85))
        reconciler.backfill_probabilities({"111": result})

        assert [r for r, _ in store.writes] == ["Jobs!D2:I2", "Jobs!N2:P2"]
        assert store.row("Jobs", 2)[schema.STATUS] == "NEW"
        assert store.row("Jobs", 2)[schema.PROBABILITY] == "85"

    def test_human_status_untouched(self, clock: Callable[[], datetime]) -> None:
        store = _make_store(_stored_row("111", status="INTERESTED"))
        result = MatchResult(job_id="111", probability=20, status=JobStatus.LOW_MATCH)
        assert _make_reconciler(store, clock).backfill_probabilities({"111": result}) == 0
        assert store.writes == []

    def test_already_scored_untouched(self, clock: Callable[[], datetime]) -> None:
        store = _make_store(_stored_row("111", probability="77"))
        result = MatchResult(job_id="111", probability=20, status=JobStatus.LOW_MATCH)
        assert _make_reconciler(store, clock).backfill_probabilities({"111": result}) == 0

    def test_null_probability_skipped(self, clock: Callable[[], datetime]) -> None:
        store = _make_store(_stored_row("111"))
        result = MatchResult(job_id="111", status=JobStatus.NOT_AVAILABLE)
        assert _make_reconciler(store, clock).backfill_probabilities({"111": result}) == 0

    def test_unknown_job_skipped(self, store: FakeStore, clock: Callable[[], datetime]) -> None:
        result = MatchResult(job_id="404", probability=90)
        assert _make_reconciler(store, clock).backfill_probabilities({"404": result}) == 0

    def test_fresh_appends_not_backfilled(self, store: FakeStore, clock: Callable[[], datetime]) -> None:
        reconciler = _make_reconciler(store, clock)
        result = MatchResult(job_id="1", probability=90, primary=make_score(90))
        reconciler.apply_writes([make_record("1")], {"1": result})
        assert reconciler.backfill_probabilities({"1": result}) == 0

    def test_second_backfill_is_noop(self, clock: Callable[[], datetime]) -> None:
        store = _make_store(_stored_row("111"))
        reconciler = _make_reconciler(store, clock)
        result = MatchResult(job_id="111", probability=90, primary=make_score(90))
        assert reconciler.backfill_probabilities({"111": result}) == 1
        assert reconciler.backfill_probabilities({"111": result}) == 0
