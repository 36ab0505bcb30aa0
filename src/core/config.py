"""Configuration models, YAML loader and environment overlay."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

# Environment variable names read by Settings.from_env
ENV_PROJECT_ID = "GCP_PROJECT_ID"
ENV_SPREADSHEET_ID = "SPREADSHEET_ID"
ENV_RESUME_DOC_ID = "RESUME_DOC_ID"
ENV_ENABLE_DUAL_MODEL = "ENABLE_DUAL_MODEL"

_TRUTHY = {"1", "true", "yes", "on"}

DEFAULT_ALERT_SENDERS = [
    "jobalerts-noreply@linkedin.com",
    "jobs-noreply@linkedin.com",
    "jobs-listings@linkedin.com",
]


class MailConfig(BaseModel):
    """Which emails are picked up and how they are marked afterwards."""

    senders: list[str] = Field(default_factory=lambda: list(DEFAULT_ALERT_SENDERS))
    processed_label: str = "Jobs/LinkedIn"

    @field_validator("senders")
    @classmethod
    def at_least_one_sender(cls, v: list[str]) -> list[str]:
        cleaned = [s.strip().lower() for s in v if s.strip()]
        if not cleaned:
            msg = "at least one sender must be configured"
            raise ValueError(msg)
        return cleaned

    @property
    def query(self) -> str:
        """Gmail search query for unread alert emails."""
        senders = " OR ".join(f"from:{s}" for s in self.senders)
        return f"({senders}) is:unread"


class StoreConfig(BaseModel):
    """Spreadsheet layout and timestamp settings."""

    spreadsheet_id: str = ""
    jobs_sheet: str = "Jobs"
    config_sheet: str = "_Config"
    timezone: str = "Pacific/Guam"


class ScoringConfig(BaseModel):
    """AI match scoring: providers, models, threshold and parallelism."""

    enabled: bool = True
    dual_model: bool = False
    primary_provider: str = "gemini"
    primary_model: str | None = None
    secondary_provider: str = "anthropic"
    secondary_model: str | None = None
    low_match_threshold: int = Field(default=70, ge=0, le=100)
    concurrency: int = Field(default=3, ge=1, le=20)


class ReferenceConfig(BaseModel):
    """Where the candidate resume is read from."""

    document_id: str | None = None
    source: str = "google-docs"

    @field_validator("source")
    @classmethod
    def known_source(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in {"google-docs", "file"}:
            msg = f"reference source must be 'google-docs' or 'file', got '{v}'"
            raise ValueError(msg)
        return v


class Settings(BaseModel):
    """Top-level settings for one pipeline run."""

    project_id: str = ""
    mail: MailConfig = Field(default_factory=MailConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    reference: ReferenceConfig = Field(default_factory=ReferenceConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        config_path: str | Path | None = None,
    ) -> "Settings":
        """Build settings from the environment, optionally on top of a YAML file.

        GCP_PROJECT_ID and SPREADSHEET_ID are required; RESUME_DOC_ID and
        ENABLE_DUAL_MODEL are optional.
        """
        env = os.environ if environ is None else environ
        base = cls.from_yaml(config_path) if config_path else cls()

        project_id = _required(env, ENV_PROJECT_ID)
        spreadsheet_id = _required(env, ENV_SPREADSHEET_ID)

        store = base.store.model_copy(update={"spreadsheet_id": spreadsheet_id})
        reference = base.reference
        doc_id = env.get(ENV_RESUME_DOC_ID, "").strip()
        if doc_id:
            reference = reference.model_copy(update={"document_id": doc_id})
        scoring = base.scoring
        if ENV_ENABLE_DUAL_MODEL in env:
            dual = env[ENV_ENABLE_DUAL_MODEL].strip().lower() in _TRUTHY
            scoring = scoring.model_copy(update={"dual_model": dual})

        return base.model_copy(
            update={
                "project_id": project_id,
                "store": store,
                "reference": reference,
                "scoring": scoring,
            }
        )


def _required(env: Mapping[str, str], name: str) -> str:
    value = env.get(name, "").strip()
    if not value:
        msg = f"Missing required environment variable: {name}"
        raise ValueError(msg)
    return value
