# src/flashcards/flashcard_pipeline.py

from __future__ import annotations

import json
import sys
from typing import Any, List, Optional

from langchain_core.documents import Document
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from src.config import Settings
from src.exception import CustomException, InvalidResponseShapeError, ProviderError
from src.flashcards.models import (
    AUTO_COUNT,
    DEFAULT_COUNT,
    Count,
    Flashcard,
    GenerationPreferences,
    GenerationResult,
)
from src.flashcards.prompt_builder import SYSTEM_PROMPT, build_prompt
from src.ingestion.pdf_extractor import PAGE_SEPARATOR
from src.logger import logging

CARD_KEYS = ("flashcards", "cards")


class FlashcardPipeline:
    """
    Generate flashcards from text with a single chat-completion round trip.

    Flow:
    - Compose the prompt from text, count and preferences
    - Ask the model for a JSON object (no retries)
    - Validate the shape and keep well-formed question/answer pairs
    - Truncate to the requested count, reporting any shortfall as a warning
    """

    def __init__(self, settings: Settings, llm: Optional[Any] = None) -> None:
        self.settings = settings
        # Injected chat model (tests); otherwise a fresh client per call
        self._llm = llm

    def _build_llm(self) -> Any:
        if self._llm is not None:
            return self._llm

        llm = ChatOpenAI(
            model=self.settings.openai_model,
            temperature=self.settings.openai_temperature,
            api_key=self.settings.openai_api_key,
            max_retries=0,
        )
        return llm.bind(response_format={"type": "json_object"})

    def _parse_flashcards(self, raw: str) -> List[Flashcard]:
        """
        Parse the JSON returned by the LLM into Flashcards.

        Accepts a `flashcards` array, or `cards` as a fallback key.
        """
        # Models occasionally wrap the object in prose or code fences
        start = raw.find("{")
        end = raw.rfind("}")
        if start != -1 and end != -1 and end > start:
            json_str = raw[start : end + 1]
        else:
            json_str = raw

        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise InvalidResponseShapeError(f"Model response is not valid JSON: {e}", sys) from e

        if not isinstance(data, dict):
            raise InvalidResponseShapeError(
                "Invalid response format from OpenAI. Expected an object with a flashcards array."
            )

        cards_raw = next((data[key] for key in CARD_KEYS if data.get(key) is not None), None)
        if not isinstance(cards_raw, list):
            logging.error(f"Unexpected response format: {data!r}")
            raise InvalidResponseShapeError(
                "Invalid response format from OpenAI. Expected an array of flashcards."
            )

        cards: List[Flashcard] = []
        for item in cards_raw:
            if not isinstance(item, dict):
                continue
            q = str(item.get("question") or "").strip()
            a = str(item.get("answer") or "").strip()
            if q and a:
                cards.append(Flashcard(question=q, answer=a))

        dropped = len(cards_raw) - len(cards)
        if dropped:
            logging.warning(f"Dropped {dropped} malformed flashcards from model response")

        return cards

    def _invoke(self, prompt: str) -> str:
        llm = self._build_llm()
        messages = [SystemMessage(content=SYSTEM_PROMPT), HumanMessage(content=prompt)]

        try:
            response = llm.invoke(messages)
        except Exception as e:
            logging.error("Flashcard generation request failed", exc_info=True)
            raise ProviderError(str(e), sys) from e

        # For ChatOpenAI, response is usually an object with `.content`
        if hasattr(response, "content"):
            raw_output = response.content
        else:
            raw_output = str(response)

        if not raw_output:
            raise ProviderError("No response from OpenAI")
        return raw_output

    def generate_from_text(
        self,
        text: str,
        count: Count = DEFAULT_COUNT,
        preferences: Optional[GenerationPreferences] = None,
    ) -> GenerationResult:
        """
        High-level entry point:
        - build prompt
        - call LLM
        - parse flashcards
        - enforce count by truncation

        Returns:
            GenerationResult with the cards and any shortfall warnings.
        """
        logging.info(f"Generating flashcards (count={count}, text_length={len(text)})")

        prompt = build_prompt(text, count, preferences)
        try:
            raw_output = self._invoke(prompt)
            cards = self._parse_flashcards(raw_output)
        except CustomException:
            raise
        except Exception as e:
            logging.error("Error occurred in FlashcardPipeline.generate_from_text", exc_info=True)
            raise ProviderError(e, sys) from e

        warnings: List[str] = []
        if count != AUTO_COUNT:
            cards = cards[:count]
            if len(cards) < count:
                message = (
                    f"Requested {count} flashcards but only {len(cards)} were generated. "
                    f"The content may not be sufficient for {count} cards."
                )
                logging.warning(message)
                warnings.append(message)

        logging.info(f"Generated {len(cards)} flashcards")
        return GenerationResult(flashcards=cards, requested=count, warnings=warnings)

    def generate_from_docs(
        self,
        documents: List[Document],
        count: Count = DEFAULT_COUNT,
        preferences: Optional[GenerationPreferences] = None,
    ) -> GenerationResult:
        """
        Merge per-page Documents into one context and generate from it.
        """
        if not documents:
            return GenerationResult(requested=count)

        combined_text = PAGE_SEPARATOR.join(doc.page_content for doc in documents)
        return self.generate_from_text(combined_text, count, preferences)
