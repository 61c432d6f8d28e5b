"""Pydantic models shared by the prompt composer, the generation client and the API."""

from __future__ import annotations

import math
import re
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

AUTO_COUNT = "auto"
DEFAULT_COUNT = 10

Count = Union[int, Literal["auto"]]

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class Flashcard(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str = Field(..., description="Front of the flashcard")
    answer: str = Field(..., description="Back of the flashcard")


class GenerationPreferences(BaseModel):
    """
    User preferences for generated cards. Values are free-form strings;
    unrecognised ones fall back to default guidance when the prompt is built.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    front_text_length: Optional[str] = Field(default=None, alias="frontTextLength")
    back_text_length: Optional[str] = Field(default=None, alias="backTextLength")
    language: Optional[str] = None
    flashcard_type: Optional[str] = Field(default=None, alias="flashcardType")

    @field_validator(
        "front_text_length", "back_text_length", "language", "flashcard_type", mode="before"
    )
    @classmethod
    def _drop_non_text(cls, value):
        return text_or_none(value)


class GenerationResult(BaseModel):
    flashcards: List[Flashcard] = Field(default_factory=list)
    requested: Count = DEFAULT_COUNT
    warnings: List[str] = Field(default_factory=list)


def text_or_none(value) -> Optional[str]:
    """Free-form preference values: anything but a string is treated as unset."""
    return value if isinstance(value, str) else None


def parse_count(value, default: int = DEFAULT_COUNT) -> Count:
    """
    Normalise a requested card count.

    "auto" is kept as is. Numbers and numeric strings ("12", "12 cards") are
    used when positive; anything else, zero and negatives included, becomes
    `default`.
    """
    if value == AUTO_COUNT:
        return AUTO_COUNT
    if isinstance(value, bool):
        return default

    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return default
        number = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        if not match:
            return default
        number = int(match.group(1))
    else:
        return default

    return number if number > 0 else default
