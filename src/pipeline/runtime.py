"""Run-scoped collaborators and their construction from settings."""

import logging
from collections.abc import Callable
from datetime import datetime

from src.core.config import Settings
from src.core.secrets import PROVIDER_SECRETS, SecretManagerStore, SecretStore
from src.mail.base import MailTransport
from src.pipeline.analyzer import ScoringProvider
from src.platforms.base import AlertEmailParser
from src.platforms.linkedin.parser import LinkedInEmailParser
from src.profile.base import ReferenceSource
from src.store.base import StoreTransport

logger = logging.getLogger(__name__)


class Runtime:
    """Everything one pipeline run talks to. Built fresh for every run."""

    def __init__(
        self,
        mail: MailTransport,
        store: StoreTransport,
        parser: AlertEmailParser | None = None,
        reference_source: ReferenceSource | None = None,
        primary: ScoringProvider | None = None,
        secondary: ScoringProvider | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.mail = mail
        self.store = store
        self.parser = parser or LinkedInEmailParser()
        self.reference_source = reference_source
        self.primary = primary
        self.secondary = secondary
        self.clock = clock


def _build_scorer(
    secret_store: SecretStore,
    provider_name: str,
    model: str | None,
    role: str,
) -> ScoringProvider:
    from src.llm import get_provider
    from src.pipeline.llm_scorer import LLMMatchScorer

    secret_name = PROVIDER_SECRETS.get(provider_name)
    api_key = secret_store.get(secret_name) if secret_name else None
    provider = get_provider(provider_name, api_key=api_key)
    return LLMMatchScorer(provider, model, role=role)  # type: ignore[arg-type]


def build_google_runtime(
    settings: Settings,
    secret_store: SecretStore | None = None,
) -> Runtime:
    """Gmail + Sheets + Docs runtime with OAuth credentials from secrets."""
    from src.core.google_auth import build_credentials
    from src.mail.gmail import GmailMailbox
    from src.profile.docs import GoogleDocsReference
    from src.profile.extractor import LocalFileReference
    from src.store.sheets import GoogleSheetsStore

    secrets = secret_store or SecretManagerStore(settings.project_id)
    credentials = build_credentials(secrets)

    mail = GmailMailbox(
        credentials,
        senders=settings.mail.senders,
        processed_label=settings.mail.processed_label,
    )
    store = GoogleSheetsStore(
        settings.store.spreadsheet_id,
        credentials,
        jobs_sheet=settings.store.jobs_sheet,
        config_sheet=settings.store.config_sheet,
    )

    reference: ReferenceSource | None = None
    primary = secondary = None
    if settings.reference.document_id:
        if settings.reference.source == "file":
            reference = LocalFileReference()
        else:
            reference = GoogleDocsReference(credentials)

        scoring = settings.scoring
        if scoring.enabled:
            primary = _build_scorer(
                secrets, scoring.primary_provider, scoring.primary_model, "primary"
            )
            if scoring.dual_model:
                secondary = _build_scorer(
                    secrets, scoring.secondary_provider, scoring.secondary_model, "secondary"
                )
            logger.info(
                "Scoring with %s%s",
                scoring.primary_provider,
                f" + {scoring.secondary_provider}" if scoring.dual_model else "",
            )

    return Runtime(
        mail=mail,
        store=store,
        reference_source=reference,
        primary=primary,
        secondary=secondary,
    )
