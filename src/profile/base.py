"""Reference document (resume) interface."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ReferenceSource(Protocol):
    """Returns the plain text of a reference document by id."""

    def fetch_text(self, document_id: str) -> str: ...
