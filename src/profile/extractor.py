"""Resume text from local files (PDF via pymupdf, anything else as text)."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def extract_text_from_pdf(path: str | Path) -> str:
    """Extract plain text from every page of a PDF file.

    Raises:
        FileNotFoundError: If the PDF file does not exist.
        ImportError: If pymupdf is not installed.
    """
    path = Path(path)
    if not path.exists():
        msg = f"PDF file not found: {path}"
        raise FileNotFoundError(msg)

    try:
        import pymupdf
    except ImportError:
        msg = (
            "pymupdf is required for PDF extraction. "
            "Install with: pip install 'linkedin-job-alerts[profile]'"
        )
        raise ImportError(msg) from None

    doc = pymupdf.open(str(path))
    try:
        pages = [page.get_text() for page in doc]
    finally:
        doc.close()
    return "\n".join(pages)


class LocalFileReference:
    """ReferenceSource where the document id is a file path."""

    def fetch_text(self, document_id: str) -> str:
        path = Path(document_id)
        if path.suffix.lower() == ".pdf":
            text = extract_text_from_pdf(path)
        else:
            if not path.exists():
                msg = f"Reference file not found: {path}"
                raise FileNotFoundError(msg)
            text = path.read_text(encoding="utf-8")

        text = text.strip()
        if not text:
            msg = f"Reference file is empty: {path}"
            raise ValueError(msg)
        logger.info("Loaded reference file %s (%d chars)", path.name, len(text))
        return text
