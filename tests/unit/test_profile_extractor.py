"""Tests for resume text loaded from local files."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from src.profile.extractor import LocalFileReference, extract_text_from_pdf


def _mock_pymupdf(*page_texts: str) -> tuple[MagicMock, MagicMock]:
    pages = []
    for text in page_texts:
        page = MagicMock()
        page.get_text.return_value = text
        pages.append(page)
    doc = MagicMock()
    doc.__iter__ = MagicMock(return_value=iter(pages))
    module = MagicMock()
    module.open.return_value = doc
    return module, doc


class TestExtractTextFromPdf:
    def test_file_not_found(self) -> None:
        with pytest.raises(FileNotFoundError, match="PDF file not found"):
            extract_text_from_pdf("/nonexistent/resume.pdf")

    def test_missing_pymupdf_import(self, tmp_path: Path) -> None:
        pdf_path = tmp_path / "resume.pdf"
        pdf_path.write_bytes(b"%PDF-1.4 fake")

        with (
            patch.dict("sys.modules", {"pymupdf": None}),
            pytest.raises(ImportError, match="pymupdf is required"),
        ):
            extract_text_from_pdf(pdf_path)

    def test_pages_joined(self, tmp_path: Path) -> None:
        pdf_path = tmp_path / "resume.pdf"
        pdf_path.write_bytes(b"%PDF-1.4 fake")
        module, doc = _mock_pymupdf("Jane Doe", "Senior Python Engineer")

        with patch.dict("sys.modules", {"pymupdf": module}):
            result = extract_text_from_pdf(pdf_path)

        assert result == "Jane Doe\nSenior Python Engineer"
        module.open.assert_called_once_with(str(pdf_path))
        doc.close.assert_called_once()

    def test_closed_on_error(self, tmp_path: Path) -> None:
        pdf_path = tmp_path / "resume.pdf"
        pdf_path.write_bytes(b"%PDF-1.4 fake")
        module, doc = _mock_pymupdf()
        doc.__iter__ = MagicMock(side_effect=RuntimeError("corrupt"))

        with patch.dict("sys.modules", {"pymupdf": module}), pytest.raises(RuntimeError):
            extract_text_from_pdf(pdf_path)
        doc.close.assert_called_once()


class TestLocalFileReference:
    def test_text_file(self, tmp_path: Path) -> None:
        path = tmp_path / "resume.md"
        path.write_text("\n  # Jane Doe\nPython, GCP  \n", encoding="utf-8")
        assert LocalFileReference().fetch_text(str(path)) == "# Jane Doe\nPython, GCP"

    def test_pdf_uses_pymupdf(self, tmp_path: Path) -> None:
        path = tmp_path / "Resume.PDF"
        path.write_bytes(b"%PDF-1.4 fake")
        module, _ = _mock_pymupdf("Jane Doe")
        with patch.dict("sys.modules", {"pymupdf": module}):
            assert LocalFileReference().fetch_text(str(path)) == "Jane Doe"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Reference file not found"):
            LocalFileReference().fetch_text(str(tmp_path / "missing.txt"))

    def test_blank_file(self, tmp_path: Path) -> None:
        path = tmp_path / "resume.txt"
        path.write_text("   \n\t\n")
        with pytest.raises(ValueError, match="Reference file is empty"):
            LocalFileReference().fetch_text(str(path))
