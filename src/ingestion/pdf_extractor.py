# src/ingestion/pdf_extractor.py

from __future__ import annotations

import base64
import io
import sys
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from typing import Callable, List, Optional, TypeVar

from langchain_core.documents import Document
from pypdf import PdfReader

from src.exception import ExtractionFailedError, InvalidPdfFormatError
from src.logger import logging

PDF_SIGNATURE = b"%PDF"
PAGE_SEPARATOR = "\n---\n"

T = TypeVar("T")


@dataclass
class PdfExtractionConfig:
    """
    Limits applied to every extraction.
    """
    # Pages beyond this are dropped; only the page count reports them
    max_pages: int = 50
    # Seconds allowed for parsing the document structure
    load_timeout: float = 30.0
    # Seconds allowed per page before the page is skipped
    page_timeout: float = 10.0


@dataclass
class ExtractionResult:
    pages: int
    processed_pages: int
    text: str
    skipped_pages: List[int] = field(default_factory=list)
    documents: List[Document] = field(default_factory=list)


def is_pdf(data: bytes) -> bool:
    return data[: len(PDF_SIGNATURE)] == PDF_SIGNATURE


def decode_pdf_data(file_data: str) -> bytes:
    """
    Decode a base64 upload. Line breaks and other whitespace are ignored so
    wrapped output (base64 CLI, encodebytes) is accepted.

    Raises:
        binascii.Error: the payload is not base64.
    """
    return base64.b64decode("".join(file_data.split()), validate=True)


def _run_with_timeout(fn: Callable[..., T], timeout: float, *args) -> T:
    """
    Run fn on a dedicated worker thread and wait at most `timeout` seconds.

    On timeout the worker is abandoned; it may keep running in the background.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pdf-extract")
    try:
        future = executor.submit(fn, *args)
        return future.result(timeout=timeout)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


class PdfTextExtractor:
    def __init__(self, config: Optional[PdfExtractionConfig] = None):
        self.config = config or PdfExtractionConfig()

    @staticmethod
    def _open(data: bytes) -> PdfReader:
        reader = PdfReader(io.BytesIO(data))
        if reader.is_encrypted:
            # Many "protected" PDFs only carry an owner password
            reader.decrypt("")
        return reader

    @classmethod
    def _load(cls, data: bytes) -> PdfReader:
        reader = cls._open(data)
        # Touch the page tree so structural errors surface inside the timeout
        len(reader.pages)
        return reader

    @classmethod
    def _extract_page_text(cls, data: bytes, page_index: int) -> str:
        # pypdf readers seek a shared stream; an abandoned timed-out worker
        # must never share one with the next page
        reader = cls._open(data)
        return reader.pages[page_index].extract_text() or ""

    def _load_reader(self, data: bytes) -> PdfReader:
        try:
            return _run_with_timeout(self._load, self.config.load_timeout, data)
        except FuturesTimeoutError as e:
            logging.error("PDF loading timed out after %ss", self.config.load_timeout)
            raise ExtractionFailedError("PDF text extraction failed: PDF loading timeout", sys) from e
        except Exception as e:
            logging.error("PDF loading failed", exc_info=True)
            raise ExtractionFailedError(f"PDF text extraction failed: {e}", sys) from e

    def extract(self, data: bytes, source: Optional[str] = None) -> ExtractionResult:
        """
        Extract page-bounded text from raw PDF bytes.

        Pages that fail or exceed the per-page timeout are skipped and listed in
        `skipped_pages`; extraction carries on with the rest.

        Raises:
            InvalidPdfFormatError: data does not start with %PDF.
            ExtractionFailedError: the document could not be loaded.
        """
        if not is_pdf(data):
            raise InvalidPdfFormatError()

        logging.info(f"Loading PDF document ({len(data)} bytes)")
        reader = self._load_reader(data)

        total_pages = len(reader.pages)
        max_pages = min(total_pages, self.config.max_pages)
        logging.info(f"Extracting text from {max_pages} pages (out of {total_pages})")

        parts: List[str] = []
        skipped: List[int] = []
        documents: List[Document] = []

        for page_num in range(1, max_pages + 1):
            try:
                page_text = _run_with_timeout(
                    self._extract_page_text, self.config.page_timeout, data, page_num - 1
                )
            except FuturesTimeoutError:
                logging.warning(f"Page {page_num} extraction timeout, skipping")
                skipped.append(page_num)
                continue
            except Exception as e:
                logging.warning(f"Failed to extract text from page {page_num}: {e}")
                skipped.append(page_num)
                continue

            parts.append(page_text)
            documents.append(
                Document(
                    page_content=page_text,
                    metadata={"source": source or "upload", "page": page_num},
                )
            )
            logging.info(f"Page {page_num}/{max_pages} extracted ({len(page_text)} chars)")

        text = PAGE_SEPARATOR.join(parts)
        logging.info(f"Text extraction complete. Total length: {len(text)} characters")

        return ExtractionResult(
            pages=total_pages,
            processed_pages=max_pages,
            text=text,
            skipped_pages=skipped,
            documents=documents,
        )

