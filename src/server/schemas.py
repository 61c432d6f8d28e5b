"""
Pydantic schemas for the REST endpoints. Field aliases match the JSON the
web client sends (camelCase).
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.flashcards.models import DEFAULT_COUNT, Count, Flashcard, GenerationPreferences, parse_count, text_or_none


class _CountedRequest(BaseModel):
    count: Count = Field(default=DEFAULT_COUNT, description='Card count or "auto"')

    @field_validator("count", mode="before")
    @classmethod
    def _normalise_count(cls, value: Any) -> Count:
        return parse_count(value)


class ProcessPdfRequest(_CountedRequest):
    model_config = ConfigDict(populate_by_name=True)

    file_data: Optional[str] = Field(
        default=None,
        alias="fileData",
        description="Base64-encoded PDF bytes",
    )
    file_name: Optional[str] = Field(default=None, alias="fileName")
    preferences: Optional[GenerationPreferences] = None
    flashcard_type: Optional[str] = Field(default=None, alias="flashcardType")
    language: Optional[str] = None

    @field_validator("flashcard_type", "language", mode="before")
    @classmethod
    def _drop_non_text(cls, value: Any) -> Optional[str]:
        return text_or_none(value)

    @field_validator("preferences", mode="before")
    @classmethod
    def _drop_non_object(cls, value: Any):
        return value if isinstance(value, (dict, GenerationPreferences)) else None

    def resolved_preferences(self) -> GenerationPreferences:
        """
        Preferences with top-level language/flashcardType taking precedence.
        """
        base = self.preferences or GenerationPreferences()
        updates = {}
        if self.language is not None:
            updates["language"] = self.language
        if self.flashcard_type is not None:
            updates["flashcard_type"] = self.flashcard_type
        return base.model_copy(update=updates)


class GenerateFlashcardsRequest(_CountedRequest):
    text: Any = Field(default=None, description="Source text for the cards")


# ---------- Responses ----------

class FlashcardResponse(BaseModel):
    success: bool = True
    flashcards: List[Flashcard] = Field(
        default_factory=list,
        description="Generated flashcards",
    )
    count: int = 0
    warnings: List[str] = Field(default_factory=list)


class PdfInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pages: int
    processed_pages: int = Field(alias="processedPages")
    skipped_pages: List[int] = Field(default_factory=list, alias="skippedPages")
    text_length: int = Field(alias="textLength")


class ProcessPdfResponse(FlashcardResponse):
    model_config = ConfigDict(populate_by_name=True)

    pdf_info: PdfInfo = Field(alias="pdfInfo")
