"""Abstract base class for alert-email parsers."""

from abc import ABC, abstractmethod

from src.core.schemas import JobRecord


class AlertEmailParser(ABC):
    """Base class that every job-alert email parser must implement."""

    @property
    @abstractmethod
    def platform_id(self) -> str:
        """Unique identifier for the sending platform (e.g. 'linkedin')."""

    @abstractmethod
    def parse_email(self, html_body: str) -> list[JobRecord]:
        """Return the unique, validated job records found in one email body."""
