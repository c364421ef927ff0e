"""
PDF parser for bank statements.

Handles:
- Text extraction from every page with pdfplumber
- Image-based or empty PDFs (no text, reported as a warning)
- Handing the text to an LLM extractor to recover structured fields
"""
import io
import logging
from dataclasses import dataclass
from typing import Optional, Union

import pdfplumber

from config import RAW_TEXT_SNIPPET_CHARS
from parsers.base_parser import BaseParser, ExtractionIncomplete, StatementData

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """Raised when the PDF cannot be read."""
    pass


@dataclass
class PDFText:
    """Text content of a PDF document."""
    text: str
    num_pages: int

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


def make_text_snippet(text: str, limit: int = RAW_TEXT_SNIPPET_CHARS) -> str:
    """Return the first ``limit`` characters, with "..." when truncated."""
    if len(text) > limit:
        return text[:limit] + "..."
    return text


class PDFTextExtractor:
    """
    Extracts plain text from a PDF given as a path or as raw bytes.

    Usage:
        pdf_text = PDFTextExtractor("statement.pdf").extract()
    """

    def __init__(self, source: Union[str, bytes]):
        self.source = source

    def extract(self) -> PDFText:
        """
        Extract the text of every page, joined with newlines.

        Raises:
            ExtractionError: the document could not be opened or parsed
        """
        logger.info("Attempting to parse PDF content with pdfplumber...")

        try:
            with pdfplumber.open(self._open_source()) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as e:
            # pdfminer raises a variety of its own exception types
            logger.error("pdfplumber encountered an error during PDF processing: %s", e)
            raise ExtractionError(str(e) or "Unknown error during PDF parsing.") from e

        text = "\n".join(pages)
        result = PDFText(text=text, num_pages=len(pages))

        logger.info(
            "PDF parsed successfully. Pages: %d. Extracted text length: %d",
            result.num_pages, len(text),
        )
        if result.is_empty:
            logger.warning(
                "PDF parsed, but no text content was extracted. The PDF might be "
                "image-based, empty, or protected."
            )

        return result

    def _open_source(self):
        if isinstance(self.source, (bytes, bytearray)):
            return io.BytesIO(self.source)
        return self.source


class PDFStatementParser(BaseParser):
    """
    Parses a bank statement PDF into StatementData.

    The PDF text is always extracted. Structured fields are filled in only
    when an extractor is supplied and the PDF contains text; otherwise the
    statement carries just the raw text snippet.

    Usage:
        parser = PDFStatementParser(pdf_bytes, extractor=StatementExtractor(api_key))
        statement = parser.parse()
        if parser.incomplete:
            print(parser.incomplete.message)
    """

    def __init__(
        self,
        source: Union[str, bytes],
        *,
        extractor=None,
        snippet_chars: int = RAW_TEXT_SNIPPET_CHARS,
    ):
        super().__init__()
        self.source = source
        self.extractor = extractor
        self.snippet_chars = snippet_chars

        self._pdf_text: Optional[PDFText] = None
        self._incomplete: Optional[ExtractionIncomplete] = None
        self._llm_used = False

    def parse(self) -> StatementData:
        """
        Extract the PDF text and, when possible, the structured fields.

        Raises:
            ExtractionError: the PDF could not be read
            LLMCallError: the language model call failed
        """
        self._pdf_text = PDFTextExtractor(self.source).extract()
        self._incomplete = None
        self._llm_used = False

        statement = StatementData()
        if not self._pdf_text.is_empty and self.extractor is not None and self.extractor.is_available():
            self._llm_used = True
            outcome = self.extractor.extract(self._pdf_text.text)
            if isinstance(outcome, ExtractionIncomplete):
                logger.warning("LLM extraction incomplete: %s", outcome.message)
                self._incomplete = outcome
                statement = outcome.statement
            else:
                statement = outcome

        statement.raw_pdf_text = make_text_snippet(self._pdf_text.text, self.snippet_chars)
        self._statement = statement
        return statement

    @property
    def pdf_text(self) -> Optional[PDFText]:
        return self._pdf_text

    @property
    def incomplete(self) -> Optional[ExtractionIncomplete]:
        """Set when the LLM output lacked required fields."""
        return self._incomplete

    @property
    def llm_used(self) -> bool:
        return self._llm_used
