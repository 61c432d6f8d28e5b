"""
Shared dependency helpers for server-facing modules.

Clients are built once by create_app() and stored on app.state; routes
receive them through these dependencies so tests can swap them out.
"""

from fastapi import Request

from src.config import Settings
from src.flashcards.flashcard_pipeline import FlashcardPipeline
from src.ingestion.pdf_extractor import PdfExtractionConfig, PdfTextExtractor
from src.pipeline.request_pipeline import RequestPipeline


def build_request_pipeline(settings: Settings, llm=None) -> RequestPipeline:
    """
    Wire extractor and generator from settings into a RequestPipeline.
    """
    extractor = PdfTextExtractor(
        PdfExtractionConfig(
            max_pages=settings.pdf_max_pages,
            load_timeout=settings.pdf_load_timeout,
            page_timeout=settings.pdf_page_timeout,
        )
    )
    generator = FlashcardPipeline(settings, llm=llm)
    return RequestPipeline(settings, extractor, generator)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_request_pipeline(request: Request) -> RequestPipeline:
    return request.app.state.request_pipeline
