# src/pipeline/request_pipeline.py

from __future__ import annotations

import binascii
import sys

from src.config import Settings
from src.exception import PROCESS_PDF_ERROR, ConfigurationError, InputValidationError, ProviderError
from src.flashcards.flashcard_pipeline import FlashcardPipeline
from src.ingestion.pdf_extractor import PdfTextExtractor, decode_pdf_data
from src.logger import logging
from src.server.schemas import (
    FlashcardResponse,
    GenerateFlashcardsRequest,
    PdfInfo,
    ProcessPdfRequest,
    ProcessPdfResponse,
)


class RequestPipeline:
    """
    Route-level orchestration for the two generation endpoints.

    /process-pdf:
        validate input -> credential check -> decode base64 -> check %PDF
        -> extract text -> generate -> respond

    Each step raises a CustomException subclass that already knows its
    HTTP status; nothing is retried.
    """

    def __init__(
        self,
        settings: Settings,
        extractor: PdfTextExtractor,
        generator: FlashcardPipeline,
    ) -> None:
        self.settings = settings
        self.extractor = extractor
        self.generator = generator

    def _require_credentials(self) -> None:
        if not self.settings.openai_api_key:
            logging.error("OpenAI API key not configured")
            raise ConfigurationError("OpenAI API key is not configured")

    @staticmethod
    def _decode(file_data: str) -> bytes:
        try:
            return decode_pdf_data(file_data)
        except (binascii.Error, ValueError) as e:
            raise InputValidationError("File data is not valid base64", sys) from e

    def process_pdf(self, request: ProcessPdfRequest) -> ProcessPdfResponse:
        logging.info(
            f"PDF processing request: file={request.file_name!r} count={request.count!r}"
        )

        if not request.file_data:
            raise InputValidationError("No file data provided")

        self._require_credentials()

        data = self._decode(request.file_data)
        logging.info(f"PDF buffer size: {len(data)} bytes")

        extraction = self.extractor.extract(data, source=request.file_name)
        if not extraction.text.strip():
            raise InputValidationError("Could not extract text from PDF")

        try:
            result = self.generator.generate_from_docs(
                extraction.documents,
                request.count,
                request.resolved_preferences(),
            )
        except ProviderError as e:
            # Every 500 from this endpoint carries the same label
            e.title = PROCESS_PDF_ERROR
            raise

        warnings = list(result.warnings)
        if extraction.skipped_pages:
            pages = ", ".join(str(p) for p in extraction.skipped_pages)
            warnings.insert(0, f"Skipped pages that could not be extracted: {pages}")

        logging.info(f"PDF processing completed with {len(result.flashcards)} flashcards")
        return ProcessPdfResponse(
            flashcards=result.flashcards,
            count=len(result.flashcards),
            warnings=warnings,
            pdf_info=PdfInfo(
                pages=extraction.pages,
                processed_pages=extraction.processed_pages,
                skipped_pages=extraction.skipped_pages,
                text_length=len(extraction.text),
            ),
        )

    def generate_from_text(self, request: GenerateFlashcardsRequest) -> FlashcardResponse:
        if not request.text or not isinstance(request.text, str):
            raise InputValidationError("Text content is required")

        self._require_credentials()

        result = self.generator.generate_from_text(request.text, request.count)
        return FlashcardResponse(
            flashcards=result.flashcards,
            count=len(result.flashcards),
            warnings=result.warnings,
        )
