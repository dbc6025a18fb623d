"""
Tests for DocumentLoader.

Tests cover:
- .txt and .md loading with cleaning applied
- PDF extraction through pdfplumber (mocked)
- InvalidPath, UnsupportedFormat and ExtractionError cases
"""

from unittest.mock import MagicMock, patch

import pytest

from docreader.exceptions import ExtractionError, InvalidPath, UnsupportedFormat
from docreader.extraction import DocumentLoader, load_document


class TestTextFiles:
    """Tests for plain text and markdown documents."""

    def test_loads_and_strips_txt(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("\n\n  The committee met on Tuesday to review the budget.  \n\n", encoding="utf-8")
        assert DocumentLoader().load(path) == "The committee met on Tuesday to review the budget."

    def test_loads_markdown(self, tmp_path):
        path = tmp_path / "README.md"
        path.write_text("# Title\n\nThe project ships a command line tool.", encoding="utf-8")
        text = load_document(path)
        assert "command line tool" in text

    def test_applies_cleaning(self, tmp_path):
        path = tmp_path / "paper.txt"
        path.write_text(
            "Our method improves recall considerably.\nPage 2\n\nReferences\n[1] Someone.",
            encoding="utf-8",
        )
        text = DocumentLoader().load(path)
        assert "Page 2" not in text
        assert "Someone" not in text

    def test_extension_is_case_insensitive(self, tmp_path):
        path = tmp_path / "NOTES.TXT"
        path.write_text("Enough readable text to pass the length check.", encoding="utf-8")
        assert DocumentLoader().load(path).startswith("Enough")


class TestPdfFiles:
    """Tests for PDF extraction."""

    def _fake_pdf(self, page_texts):
        pages = []
        for text in page_texts:
            page = MagicMock()
            page.extract_text.return_value = text
            pages.append(page)
        pdf = MagicMock()
        pdf.pages = pages
        pdf.__enter__.return_value = pdf
        pdf.__exit__.return_value = False
        return pdf

    def test_joins_pages_with_blank_line(self, tmp_path):
        path = tmp_path / "report.pdf"
        path.write_bytes(b"%PDF-1.4")
        fake = self._fake_pdf(["First page has enough words.", None, "Third page text."])

        with patch("docreader.extraction.document_loader.pdfplumber.open", return_value=fake):
            text = DocumentLoader().load(path)

        assert text == "First page has enough words.\n\nThird page text."

    def test_pdf_failure_becomes_extraction_error(self, tmp_path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"not a pdf")

        with patch("docreader.extraction.document_loader.pdfplumber.open", side_effect=RuntimeError("bad xref")):
            with pytest.raises(ExtractionError, match="bad xref"):
                DocumentLoader().load(path)

    def test_scanned_pdf_is_too_short(self, tmp_path):
        path = tmp_path / "scan.pdf"
        path.write_bytes(b"%PDF-1.4")
        fake = self._fake_pdf([None, ""])

        with patch("docreader.extraction.document_loader.pdfplumber.open", return_value=fake):
            with pytest.raises(ExtractionError):
                DocumentLoader().load(path)


class TestLoaderErrors:
    """Tests for rejected inputs."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidPath):
            DocumentLoader().load(tmp_path / "missing.txt")

    def test_directory_is_invalid(self, tmp_path):
        with pytest.raises(InvalidPath):
            DocumentLoader().load(tmp_path)

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "sheet.xlsx"
        path.write_bytes(b"data")
        with pytest.raises(UnsupportedFormat):
            DocumentLoader().load(path)

    def test_unsupported_is_an_extraction_error(self):
        assert issubclass(UnsupportedFormat, ExtractionError)

    def test_too_little_text(self, tmp_path):
        path = tmp_path / "tiny.txt"
        path.write_text("Hi there", encoding="utf-8")
        with pytest.raises(ExtractionError, match="very little text"):
            DocumentLoader().load(path)

    def test_length_checked_after_cleaning(self, tmp_path):
        """A document of nothing but links is empty once cleaned."""
        path = tmp_path / "links.txt"
        path.write_text("https://example.com/a/very/long/path/indeed", encoding="utf-8")
        with pytest.raises(ExtractionError):
            DocumentLoader().load(path)
