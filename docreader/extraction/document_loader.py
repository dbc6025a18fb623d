"""
Document Loader

Turns a file path into cleaned text ready for chunking:
- Step 1: Extract raw text (.txt/.md read directly, .pdf via pdfplumber)
- Step 2: Strip surrounding whitespace
- Step 3: Run the cleaning pipeline (optional character normalization,
  page numbers, captions, links, reference section)
- Step 4: Reject documents with too little readable text

Errors are raised, not returned: InvalidPath for a missing file,
UnsupportedFormat for an unknown extension and ExtractionError for
unreadable or near-empty documents.
"""

from pathlib import Path

import pdfplumber

from docreader.config import MIN_EXTRACTED_CHARS
from docreader.exceptions import ExtractionError, InvalidPath, UnsupportedFormat
from docreader.logging_config import Timer, debug_log, error, info
from docreader.preprocessing import PreprocessingPipeline, create_default_pipeline

TEXT_EXTENSIONS = ('.txt', '.md')
PDF_EXTENSIONS = ('.pdf',)
SUPPORTED_EXTENSIONS = TEXT_EXTENSIONS + PDF_EXTENSIONS


class DocumentLoader:
    """
    Loads and cleans a document.

    Args:
        remove_special_chars: Replace non-text characters with spaces
        remove_numbers: Replace digit runs with spaces
        pipeline: Custom cleaning pipeline (overrides the two flags above)

    Example:
        loader = DocumentLoader()
        text = loader.load("reports/q3.pdf")
    """

    def __init__(
        self,
        remove_special_chars: bool = True,
        remove_numbers: bool = False,
        pipeline: PreprocessingPipeline | None = None,
    ):
        self.pipeline = pipeline or create_default_pipeline(
            remove_special_chars=remove_special_chars,
            remove_numbers=remove_numbers,
        )

    def load(self, file_path: str | Path) -> str:
        """
        Extract and clean the text of a document.

        Args:
            file_path: Path to a .txt, .md or .pdf file

        Returns:
            Cleaned document text

        Raises:
            InvalidPath: If the file does not exist
            UnsupportedFormat: If the extension has no loader
            ExtractionError: If the file cannot be read or yields fewer than
                MIN_EXTRACTED_CHARS non-whitespace characters after cleaning
        """
        file_path = Path(file_path)
        if not file_path.is_file():
            raise InvalidPath(f"File does not exist: {file_path}")

        extension = file_path.suffix.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            raise UnsupportedFormat(
                f"Unsupported file type: {extension or '(none)'}. "
                f"Supported formats: {', '.join(SUPPORTED_EXTENSIONS)}"
            )

        info(f"[Loader] Loading document: {file_path.name}")
        with Timer(f"Loading {file_path.name}"):
            if extension in PDF_EXTENSIONS:
                raw_text = self._read_pdf(file_path)
            else:
                raw_text = self._read_text_file(file_path)

            text = self.pipeline.process(raw_text.strip())

        readable_chars = sum(1 for ch in text if not ch.isspace())
        if readable_chars < MIN_EXTRACTED_CHARS:
            raise ExtractionError(
                "Extracted very little text from the document. "
                "It might be empty or not readable."
            )

        debug_log(f"[Loader] {file_path.name}: {len(raw_text)} raw chars -> {len(text)} cleaned chars")
        return text

    def _read_text_file(self, file_path: Path) -> str:
        try:
            with open(file_path, 'r', encoding='utf-8', errors='ignore') as f:
                return f.read()
        except OSError as e:
            raise ExtractionError(f"Failed to read text file: {e}") from e

    def _read_pdf(self, file_path: Path) -> str:
        """Extract digital text from every page; scanned PDFs yield nothing."""
        pages = []
        try:
            with pdfplumber.open(file_path) as pdf:
                debug_log(f"[Loader] PDF has {len(pdf.pages)} pages")
                for page in pdf.pages:
                    page_text = page.extract_text()
                    if page_text:
                        pages.append(page_text)
        except Exception as e:
            error(f"[Loader] Failed to extract PDF text from {file_path.name}: {e}")
            raise ExtractionError(f"Error during file parsing: {e}") from e

        return "\n\n".join(pages)


def load_document(file_path: str | Path, **loader_options) -> str:
    """Convenience wrapper: DocumentLoader(**loader_options).load(file_path)."""
    return DocumentLoader(**loader_options).load(file_path)
