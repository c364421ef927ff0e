"""
Statement processing pipeline.

One upload goes through:
1. Upload validation (present, non-empty, PDF content type)
2. PDF text extraction
3. LLM field extraction (skipped without an API key or without text)
4. Transaction validation and balance reconciliation
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config import ALLOWED_CONTENT_TYPES, RAW_TEXT_SNIPPET_CHARS
from extractor.llm_client import StatementExtractor
from parsers.base_parser import ExtractionIncomplete, StatementData, ValidationIssue
from parsers.pdf_parser import PDFStatementParser
from reconciler.balance_checker import BalanceReconciler, ReconciliationResult

logger = logging.getLogger(__name__)

MSG_PARSED = "Successfully parsed PDF text."
MSG_EXTRACTED = "Successfully extracted statement data."
MSG_NO_TEXT = (
    "PDF parsed, but no text content found "
    "(this may indicate an image-based or empty PDF)."
)
MSG_LLM_SKIPPED = "LLM extraction skipped (no API key configured)."


class UploadValidationError(Exception):
    """Raised when the uploaded file is missing or not a PDF."""
    pass


@dataclass
class ProcessingResult:
    """Everything produced for one statement."""
    statement: StatementData
    reconciliation: ReconciliationResult
    message: str
    validation_issues: List[ValidationIssue] = field(default_factory=list)
    num_pages: int = 0
    incomplete: Optional[ExtractionIncomplete] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'extractedData': self.statement.to_dict(),
            'reconciliation': self.reconciliation.to_dict(),
            'message': self.message,
            'validationIssues': [issue.to_dict() for issue in self.validation_issues],
        }


class StatementProcessor:
    """
    Runs uploaded statements through extraction and reconciliation.

    Holds no per-request state; one instance serves every request.
    """

    def __init__(
        self,
        extractor: Optional[StatementExtractor] = None,
        snippet_chars: int = RAW_TEXT_SNIPPET_CHARS,
    ):
        """
        Args:
            extractor: LLM extractor; None runs text extraction only
            snippet_chars: Length of the raw text snippet in the result
        """
        self.extractor = extractor
        self.snippet_chars = snippet_chars
        self.reconciler = BalanceReconciler()

    def process(
        self,
        content: Optional[bytes],
        filename: str = "",
        content_type: Optional[str] = "application/pdf",
    ) -> ProcessingResult:
        """
        Process one uploaded statement.

        Raises:
            UploadValidationError: no file, or not a PDF
            ExtractionError: the PDF could not be read
            LLMCallError: the language model call failed
        """
        validate_upload(content, filename, content_type)
        logger.info("Processing '%s' (%s, %d bytes)", filename, content_type, len(content))

        parser = PDFStatementParser(
            content,
            extractor=self.extractor,
            snippet_chars=self.snippet_chars,
        )
        statement = parser.parse()
        issues = parser.validate()
        reconciliation = self.reconciler.reconcile_statement(statement)

        if issues:
            logger.info("Validation warnings (%d) for '%s'", len(issues), filename)

        return ProcessingResult(
            statement=statement,
            reconciliation=reconciliation,
            message=self._build_message(parser),
            validation_issues=issues,
            num_pages=parser.pdf_text.num_pages,
            incomplete=parser.incomplete,
        )

    def _build_message(self, parser: PDFStatementParser) -> str:
        if parser.pdf_text.is_empty:
            return MSG_NO_TEXT
        if not parser.llm_used:
            return f"{MSG_PARSED} {MSG_LLM_SKIPPED}"
        if parser.incomplete:
            return f"{MSG_PARSED} {parser.incomplete.message}."
        return MSG_EXTRACTED


def validate_upload(content: Optional[bytes], filename: str, content_type: Optional[str]) -> None:
    """
    Check that an upload is present and is a PDF.

    Raises:
        UploadValidationError
    """
    if not content:
        logger.warning("Validation error: no file content for '%s'", filename)
        raise UploadValidationError("No file uploaded.")

    if content_type not in ALLOWED_CONTENT_TYPES:
        logger.warning(
            "Validation error: invalid file type received: %s. Expected 'application/pdf'.",
            content_type,
        )
        raise UploadValidationError("Invalid file type. Please upload a PDF.")
