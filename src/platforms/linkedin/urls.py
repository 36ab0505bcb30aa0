"""LinkedIn job URL normalisation."""

import re
from urllib.parse import urlparse

LINKEDIN_BASE = "https://www.linkedin.com"

# Handles both /jobs/view/<id> and /comm/jobs/view/<id>
JOB_ID_PATTERN = re.compile(r"/(?:comm/)?jobs/view/(\d+)")

# Cleaned URLs must match exactly, id included
CANONICAL_JOB_URL_PATTERN = re.compile(r"^https://(?:www\.)?linkedin\.com/jobs/view/\d+$")


def canonical_job_url(job_id: str) -> str:
    return f"{LINKEDIN_BASE}/jobs/view/{job_id}"


def clean_job_url(href: str) -> str:
    """Strip tracking params and the comm/ prefix from a job-view href.

    Hrefs whose path carries no numeric job id are returned unchanged so that
    canonical validation rejects them.
    """
    href = href.strip()
    if href.startswith("/"):
        href = f"{LINKEDIN_BASE}{href}"
    try:
        path = urlparse(href).path
    except ValueError:
        return href
    match = JOB_ID_PATTERN.search(path)
    if match is None:
        return href
    return canonical_job_url(match.group(1))


def extract_job_id(url: str) -> str | None:
    """Return the numeric id of a canonical job URL, or None."""
    if not CANONICAL_JOB_URL_PATTERN.match(url):
        return None
    match = JOB_ID_PATTERN.search(url)
    return match.group(1) if match else None
