"""
FastAPI application exposing PDF-to-flashcard generation via /process-pdf
and text-to-flashcard generation via /generate-flashcards.
"""

import asyncio
import sys
from datetime import datetime, timezone
from typing import Optional

import pypdf
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.config import Settings
from src.exception import CustomException, RequestTimeoutError
from src.logger import logging
from src.pipeline.request_pipeline import RequestPipeline
from src.server.dependencies import build_request_pipeline, get_request_pipeline, get_settings
from src.server.schemas import (
    FlashcardResponse,
    GenerateFlashcardsRequest,
    ProcessPdfRequest,
    ProcessPdfResponse,
)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def custom_exception_handler(request: Request, exc: CustomException) -> JSONResponse:
    if exc.status_code >= 500:
        logging.error(f"{request.url.path} failed: {exc.error_message}")
    else:
        logging.warning(f"{request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logging.warning(f"{request.url.path} rejected malformed body: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "message": str(exc)},
    )


async def _with_deadline(call, timeout: float):
    """
    Race `call` against a soft deadline. The abandoned work is not cancelled
    if it is already running on a worker thread.
    """
    if not timeout or timeout <= 0:
        return await call
    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise RequestTimeoutError(f"Processing exceeded {timeout:g} seconds", sys) from e


def create_app(settings: Optional[Settings] = None, llm=None) -> FastAPI:
    """
    Build the app with explicitly constructed clients.

    `llm` replaces the OpenAI chat model, mainly for tests.
    """
    settings = settings or Settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description="Generate study flashcards from uploaded PDFs or raw text.",
    )
    app.state.settings = settings
    app.state.request_pipeline = build_request_pipeline(settings, llm=llm)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(CustomException, custom_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.post("/process-pdf", response_model=ProcessPdfResponse)
    async def process_pdf(
        payload: ProcessPdfRequest,
        pipeline: RequestPipeline = Depends(get_request_pipeline),
        app_settings: Settings = Depends(get_settings),
    ) -> ProcessPdfResponse:
        """
        Generate flashcards from a base64-encoded PDF.

        Extraction is CPU-bound, so the pipeline runs on a worker thread while
        the request waits at most REQUEST_TIMEOUT seconds for it.
        """
        logging.info("=== PDF Processing Request Started ===")
        return await _with_deadline(
            asyncio.to_thread(pipeline.process_pdf, payload),
            app_settings.request_timeout,
        )

    @app.post("/generate-flashcards", response_model=FlashcardResponse)
    async def generate_flashcards(
        payload: GenerateFlashcardsRequest,
        pipeline: RequestPipeline = Depends(get_request_pipeline),
    ) -> FlashcardResponse:
        """
        Generate flashcards from raw text.
        """
        return await asyncio.to_thread(pipeline.generate_from_text, payload)

    @app.get("/health")
    def health(app_settings: Settings = Depends(get_settings)):
        if not app_settings.openai_api_key:
            return JSONResponse(
                status_code=500,
                content={
                    "status": "error",
                    "message": "Missing environment variables: OPENAI_API_KEY",
                    "timestamp": _timestamp(),
                },
            )

        return {
            "status": "healthy",
            "services": {
                "openai": "configured",
                "pdf": f"pypdf {pypdf.__version__}",
            },
            "timestamp": _timestamp(),
            "environment": app_settings.environment,
        }

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.server.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
