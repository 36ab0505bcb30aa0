"""Tests for LinkedIn job URL normalisation."""

import pytest

from src.platforms.linkedin.urls import canonical_job_url, clean_job_url, extract_job_id


class TestCleanJobUrl:
    def test_plain_url_unchanged(self) -> None:
        url = "https://www.linkedin.com/jobs/view/1234567890"
        assert clean_job_url(url) == url

    def test_comm_variant_with_tracking(self) -> None:
        dirty = "https://www.linkedin.com/comm/jobs/view/1234567890?trackingId=abc&refId=xyz"
        assert clean_job_url(dirty) == clean_job_url("https://www.linkedin.com/jobs/view/1234567890")

    def test_fragment_and_trailing_slash(self) -> None:
        assert (
            clean_job_url("https://linkedin.com/jobs/view/42/#details")
            == "https://www.linkedin.com/jobs/view/42"
        )

    def test_relative(self) -> None:
        assert clean_job_url("/jobs/view/42?x=1") == "https://www.linkedin.com/jobs/view/42"

    def test_no_id_returned_unchanged(self) -> None:
        href = "https://www.linkedin.com/jobs/view/?trk=1"
        assert clean_job_url(href) == href

    def test_whitespace_trimmed(self) -> None:
        assert clean_job_url("  https://www.linkedin.com/jobs/view/7  ").endswith("/7")


class TestExtractJobId:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://www.linkedin.com/jobs/view/1234567890", "1234567890"),
            ("https://linkedin.com/jobs/view/42", "42"),
        ],
    )
    def test_canonical(self, url: str, expected: str) -> None:
        assert extract_job_id(url) == expected

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.linkedin.com/jobs/view/",
            "https://www.linkedin.com/jobs/view/abc",
            "https://www.linkedin.com/jobs/search/?currentJobId=42",
            "https://www.linkedin.com/jobs/view/42?trk=1",
            "http://www.linkedin.com/jobs/view/42",
        ],
    )
    def test_rejected(self, url: str) -> None:
        assert extract_job_id(url) is None

    def test_round_trip_with_canonical(self) -> None:
        assert extract_job_id(canonical_job_url("99")) == "99"
