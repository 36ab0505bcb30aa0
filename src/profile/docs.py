"""Google Docs implementation of ReferenceSource."""

import logging
from typing import Any

from src.core.google_auth import build_service

logger = logging.getLogger(__name__)

CELL_SEPARATOR = " | "


def mask_document_id(document_id: str) -> str:
    """Keep only the ends of a document id for log lines."""
    if len(document_id) <= 8:
        return "****"
    return f"{document_id[:4]}...{document_id[-4:]}"


def _paragraph_text(paragraph: dict[str, Any]) -> str:
    return "".join(
        element["textRun"]["content"]
        for element in paragraph.get("elements", [])
        if element.get("textRun", {}).get("content")
    )


def _table_text(table: dict[str, Any]) -> str:
    rows: list[str] = []
    for row in table.get("tableRows", []):
        cells = row.get("tableCells")
        if not cells:
            continue
        rows.append(
            CELL_SEPARATOR.join(
                flatten_document(c["content"]).strip() for c in cells if c.get("content")
            )
        )
    return "\n".join(rows)


def flatten_document(content: list[dict[str, Any]]) -> str:
    """Plain text of a Docs ``body.content`` list.

    Paragraph text runs are concatenated as-is, table rows become lines of
    cells joined by `` | ``, and section breaks become newlines.
    """
    parts: list[str] = []
    for element in content:
        if "paragraph" in element:
            text = _paragraph_text(element["paragraph"])
        elif "table" in element:
            text = _table_text(element["table"])
        elif "sectionBreak" in element:
            text = "\n"
        else:
            continue
        if text:
            parts.append(text)
    return "".join(parts).strip()


class GoogleDocsReference:
    """Reads a resume kept as a Google Doc."""

    def __init__(self, credentials: Any = None, *, service: Any = None) -> None:
        self._credentials = credentials
        self._service = service

    def _api(self) -> Any:
        if self._service is None:
            self._service = build_service("docs", "v1", self._credentials)
        return self._service.documents()

    def fetch_text(self, document_id: str) -> str:
        masked = mask_document_id(document_id)
        logger.info("Fetching document %s", masked)
        document = self._api().get(documentId=document_id).execute()
        content = (document.get("body") or {}).get("content")
        if not content:
            msg = "Document has no content"
            raise ValueError(msg)
        text = flatten_document(content)
        logger.info("Fetched document %s (%d chars)", masked, len(text))
        return text
