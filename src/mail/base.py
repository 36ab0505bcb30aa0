"""Mailbox interface used by the pipeline."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class MailTransport(Protocol):
    """Source of job alert emails.

    Message ids are opaque strings. ``fetch_body`` returns None for messages
    that should be skipped (wrong sender, no HTML part).
    """

    def list_unread(self, query: str) -> list[str]: ...
    def fetch_body(self, message_id: str) -> str | None: ...
    def mark_processed(self, message_ids: list[str]) -> None: ...
