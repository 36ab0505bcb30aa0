"""Core data models for the job alert pipeline."""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

LINKEDIN_JOB_URL_PATTERN = re.compile(r"^https://(?:www\.)?linkedin\.com/jobs/view/\d+")

# "Boston, MA (Hybrid)" -> ("Boston, MA", "Hybrid")
_WORK_TYPE_PATTERN = re.compile(r"^(.+?)\s*\((Remote|On-site|Hybrid)\)$", re.IGNORECASE)
_WORK_TYPES = {"remote": "Remote", "on-site": "On-site", "hybrid": "Hybrid"}


class JobStatus(str, Enum):
    """Lifecycle status of a stored job row.

    The pipeline only ever writes NEW, LOW_MATCH and NOT_AVAILABLE.
    Everything else is set by a human editing the sheet.
    """

    NEW = "NEW"
    LOW_MATCH = "LOW MATCH"
    NOT_AVAILABLE = "NOT AVAILABLE"
    READ = "READ"
    INTERESTED = "INTERESTED"
    NOT_INTERESTED = "NOT INTERESTED"
    APPLIED = "APPLIED"
    INTERVIEW_SCHEDULED = "INTERVIEW SCHEDULED"
    DECLINED = "DECLINED"
    ACCEPTED = "ACCEPTED"


class JobRecord(BaseModel):
    """A job posting extracted from an alert email.

    Frozen: reconciliation builds new values instead of mutating records.
    """

    model_config = ConfigDict(frozen=True)

    job_id: str
    title: str
    company: str
    location: str = ""
    url: str
    probability: int | None = None

    @field_validator("job_id", "title", "company")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return v

    @field_validator("url")
    @classmethod
    def linkedin_job_url(cls, v: str) -> str:
        if not LINKEDIN_JOB_URL_PATTERN.match(v):
            msg = "must be a LinkedIn job URL (https://www.linkedin.com/jobs/view/<id>)"
            raise ValueError(msg)
        return v

    @field_validator("probability", mode="before")
    @classmethod
    def probability_in_range(cls, v: object) -> object:
        if v is None:
            return v
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            msg = "must be a number or null"
            raise ValueError(msg)
        if not 0 <= v <= 100:
            msg = "must be between 0 and 100"
            raise ValueError(msg)
        return v

    @property
    def office_location(self) -> str:
        match = _WORK_TYPE_PATTERN.match(self.location)
        return match.group(1).strip() if match else self.location

    @property
    def work_type(self) -> str:
        """Remote / On-site / Hybrid from the location suffix, or ""."""
        match = _WORK_TYPE_PATTERN.match(self.location)
        return _WORK_TYPES[match.group(2).lower()] if match else ""


class ProviderScore(BaseModel):
    """One scoring provider's validated answer for a single job."""

    model_config = ConfigDict(frozen=True)

    provider_id: str = ""
    probability: int = Field(ge=0, le=100)
    reasoning: str = ""
    job_description: str | None = None
    requirements_met: int | None = None
    requirements_total: int | None = None
    requirements_gaps: list[str] | None = None


class MatchResult(BaseModel):
    """Outcome of analysing one job against the reference resume."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    probability: int | None = None
    status: JobStatus = JobStatus.NEW
    reasoning: str = ""
    primary: ProviderScore | None = None
    secondary: ProviderScore | None = None

    def _requirements_source(self) -> ProviderScore | None:
        for score in (self.primary, self.secondary):
            if score is not None and score.requirements_total is not None:
                return score
        return None

    @property
    def requirements_met(self) -> int | None:
        source = self._requirements_source()
        return source.requirements_met if source else None

    @property
    def requirements_total(self) -> int | None:
        source = self._requirements_source()
        return source.requirements_total if source else None

    @property
    def requirements_gaps(self) -> list[str] | None:
        source = self._requirements_source()
        return source.requirements_gaps if source else None


class RunSummary(BaseModel):
    """JSON summary returned by a single pipeline run."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    emails_processed: int = Field(default=0, alias="emailsProcessed")
    jobs_found: int = Field(default=0, alias="jobsFound")
    jobs_ignored: int = Field(default=0, alias="jobsIgnored")
    jobs_analyzed: int = Field(default=0, alias="jobsAnalyzed")
    jobs_low_match: int = Field(default=0, alias="jobsLowMatch")
    jobs_not_available: int = Field(default=0, alias="jobsNotAvailable")
    jobs_added: int = Field(default=0, alias="jobsAdded")
    jobs_updated: int = Field(default=0, alias="jobsUpdated")
    jobs_skipped: int = Field(default=0, alias="jobsSkipped")
    probabilities_backfilled: int = Field(default=0, alias="probabilitiesBackfilled")
    error: str | None = None
    run_id: str = Field(alias="runId")

    def to_payload(self) -> dict[str, object]:
        """camelCase dict for the HTTP response, without an empty error."""
        return self.model_dump(by_alias=True, exclude_none=True)
