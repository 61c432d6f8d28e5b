"""
PDF Text Extractor Tests
"""
import base64
import binascii
import time

import pytest

from src.exception import ExtractionFailedError, InvalidPdfFormatError
from src.ingestion.pdf_extractor import (
    PdfExtractionConfig,
    PdfTextExtractor,
    is_pdf,
    decode_pdf_data,
)
from tests.conftest import b64, make_pdf

PNG_HEADER = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class TestSignature:
    """Test the %PDF signature check"""

    @pytest.mark.parametrize("data", [b"", b"%PD", PNG_HEADER, b"hello world", b" %PDF-1.4"])
    def test_non_pdf_bytes_rejected(self, data):
        assert is_pdf(data) is False

    def test_pdf_bytes_accepted(self):
        assert is_pdf(b"%PDF-1.7\n...") is True

    def test_decode_pdf_data(self, sample_pdf):
        assert decode_pdf_data(b64(sample_pdf)) == sample_pdf

    def test_decode_line_wrapped_base64(self, sample_pdf):
        wrapped = base64.encodebytes(sample_pdf).decode("ascii")
        assert "\n" in wrapped
        assert decode_pdf_data(wrapped) == sample_pdf

    def test_decode_rejects_non_base64(self):
        with pytest.raises(binascii.Error):
            decode_pdf_data("not base64 at all!!")


class TestExtraction:
    """Test text extraction limits and failure handling"""

    def test_extracts_all_pages(self, sample_pdf):
        result = PdfTextExtractor().extract(sample_pdf, source="biology.pdf")

        assert result.pages == 2
        assert result.processed_pages == 2
        assert result.skipped_pages == []
        assert "Photosynthesis" in result.text
        assert "Mitochondria" in result.text
        assert "\n---\n" in result.text

    def test_documents_carry_page_metadata(self, sample_pdf):
        result = PdfTextExtractor().extract(sample_pdf, source="biology.pdf")

        assert [doc.metadata["page"] for doc in result.documents] == [1, 2]
        assert all(doc.metadata["source"] == "biology.pdf" for doc in result.documents)

    def test_caps_at_fifty_pages(self):
        data = make_pdf([f"Page number {i}" for i in range(1, 56)])
        result = PdfTextExtractor().extract(data)

        assert result.pages == 55
        assert result.processed_pages == 50
        assert len(result.documents) == 50
        assert "Page number 50" in result.text
        assert "Page number 51" not in result.text

    def test_page_cap_is_configurable(self):
        data = make_pdf(["one", "two", "three", "four"])
        result = PdfTextExtractor(PdfExtractionConfig(max_pages=2)).extract(data)

        assert result.pages == 4
        assert result.processed_pages == 2

    def test_non_pdf_raises_invalid_format(self):
        with pytest.raises(InvalidPdfFormatError) as exc_info:
            PdfTextExtractor().extract(PNG_HEADER)
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Invalid PDF file format"

    def test_corrupt_pdf_raises_extraction_failed(self):
        with pytest.raises(ExtractionFailedError) as exc_info:
            PdfTextExtractor().extract(b"%PDF-1.4\nthis is not really a pdf")
        assert exc_info.value.message.startswith("PDF text extraction failed:")
        assert exc_info.value.status_code == 500

    def test_load_timeout_raises_extraction_failed(self, sample_pdf, monkeypatch):
        def slow_load(data):
            time.sleep(0.5)

        monkeypatch.setattr(PdfTextExtractor, "_load", staticmethod(slow_load))
        extractor = PdfTextExtractor(PdfExtractionConfig(load_timeout=0.05))

        with pytest.raises(ExtractionFailedError) as exc_info:
            extractor.extract(sample_pdf)
        assert "timeout" in exc_info.value.message

    def test_page_timeout_skips_page(self, monkeypatch):
        data = make_pdf(["first page", "second page", "third page"])
        original = PdfTextExtractor._extract_page_text

        def slow_second_page(data, page_index):
            if page_index == 1:
                time.sleep(0.5)
            return original(data, page_index)

        monkeypatch.setattr(PdfTextExtractor, "_extract_page_text", staticmethod(slow_second_page))
        extractor = PdfTextExtractor(PdfExtractionConfig(page_timeout=0.1))
        result = extractor.extract(data)

        assert result.skipped_pages == [2]
        assert result.processed_pages == 3
        assert "first page" in result.text
        assert "third page" in result.text
        assert "second page" not in result.text

    def test_page_error_skips_page(self, monkeypatch):
        data = make_pdf(["first page", "second page"])
        original = PdfTextExtractor._extract_page_text

        def broken_first_page(data, page_index):
            if page_index == 0:
                raise ValueError("bad content stream")
            return original(data, page_index)

        monkeypatch.setattr(PdfTextExtractor, "_extract_page_text", staticmethod(broken_first_page))
        result = PdfTextExtractor().extract(data)

        assert result.skipped_pages == [1]
        assert "second page" in result.text

    def test_hung_page_does_not_share_reader_with_next_pages(self, monkeypatch):
        data = make_pdf(["first page", "second page", "third page"])
        opened = []
        original_open = PdfTextExtractor._open

        def tracking_open(pdf_bytes):
            reader = original_open(pdf_bytes)
            opened.append(reader)
            if len(opened) == 2:
                # First page worker: park mid-read with its stream moved
                reader.stream.seek(0)
                time.sleep(0.5)
            return reader

        monkeypatch.setattr(PdfTextExtractor, "_open", staticmethod(tracking_open))
        result = PdfTextExtractor(PdfExtractionConfig(page_timeout=0.1)).extract(data)

        assert result.skipped_pages == [1]
        assert "second page" in result.text
        assert "third page" in result.text
        streams = [id(reader.stream) for reader in opened]
        assert len(streams) == len(set(streams))
