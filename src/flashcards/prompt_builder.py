# src/flashcards/prompt_builder.py

"""
Prompt composition for flashcard generation.

Everything here is a pure function of (text, count, preferences).
"""

from __future__ import annotations

from typing import Optional

from src.flashcards.models import AUTO_COUNT, Count, GenerationPreferences

AUTO_DETECT = "Auto Detect"
CLOZE = "Cloze"
AUTO_MIN_CARDS = 5
AUTO_MAX_CARDS = 50

SYSTEM_PROMPT = (
    "You are a helpful assistant that creates educational flashcards from text content. "
    "Generate clear, concise flashcards that help students learn and retain information. "
    "Each flashcard should have a question and a detailed answer. "
    "IMPORTANT: Always generate flashcards in the SAME LANGUAGE as the input text. "
    "If the text is in Arabic, generate Arabic flashcards. If it's in English, generate "
    "English flashcards. Preserve the original language of the content."
)

FRONT_GUIDANCE = {
    "Short": "very brief, just the topic name or 2-3 words (e.g., 'Ionic Bonding')",
    "Medium": (
        "concise, one clear sentence describing what to explain "
        "(e.g., 'Describe the process of ionic bonding')"
    ),
    "Long": (
        "detailed, multiple sentences with specific aspects to address "
        "(e.g., 'Describe the process of ionic bonding and how it relates to the formation "
        "of positive and negative ions. Explain the factors that contribute to the strength "
        "of ionic bonding.')"
    ),
}
DEFAULT_FRONT_GUIDANCE = "concise, one clear sentence"

BACK_GUIDANCE = {
    "Short": (
        "very concise, key terms or brief phrase only "
        "(e.g., 'Electrostatic attraction, oppositely charged ions, electron transfer')"
    ),
    "Medium": (
        "moderately detailed, 1-2 sentences with main explanation (e.g., 'Ionic bonding "
        "occurs when metals lose electrons to form positive ions, and non-metals gain them, "
        "forming negative ions, leading to attraction.')"
    ),
    "Long": (
        "comprehensive, 3-4 sentences with detailed explanation including factors and "
        "effects (e.g., 'Ionic bonding involves metal atoms losing electrons to form positive "
        "ions and non-metal atoms gaining electrons to form negative ions. The strength of "
        "ionic bonding is influenced by the size and charge of the ions involved. Smaller "
        "and/or higher charged ions result in stronger ionic bonding, leading to higher "
        "melting points.')"
    ),
}
DEFAULT_BACK_GUIDANCE = "moderately detailed, 1-2 sentences"

OUTPUT_FORMAT = (
    'Return ONLY a valid JSON object with a "flashcards" array containing objects with '
    '"question" and "answer" fields. '
    'Format: {"flashcards": [{"question": "...", "answer": "..."}]}'
)


def length_guidance(length: Optional[str], is_question: bool = False) -> str:
    if is_question:
        return FRONT_GUIDANCE.get(length, DEFAULT_FRONT_GUIDANCE)
    return BACK_GUIDANCE.get(length, DEFAULT_BACK_GUIDANCE)


def length_instructions(preferences: GenerationPreferences) -> str:
    front = (
        f"Questions should be {length_guidance(preferences.front_text_length, True)}."
        if preferences.front_text_length
        else ""
    )
    back = (
        f"Answers should be {length_guidance(preferences.back_text_length, False)}."
        if preferences.back_text_length
        else ""
    )
    if not (front or back):
        return ""
    return f"\n\nIMPORTANT LENGTH REQUIREMENTS:\n{front}\n{back}"


def language_instruction(language: Optional[str]) -> str:
    if language and language != AUTO_DETECT:
        return f"Generate all flashcards in {language}."
    return "Detect the language of the text and generate flashcards in the SAME LANGUAGE."


def type_instruction(flashcard_type: Optional[str]) -> str:
    if flashcard_type == CLOZE:
        return (
            " Use cloze deletion format where appropriate "
            "(e.g., 'The {{c1::mitochondria}} is the powerhouse of the cell')."
        )
    return ""


def build_prompt(
    text: str,
    count: Count,
    preferences: Optional[GenerationPreferences] = None,
) -> str:
    """
    Compose the user message sent alongside SYSTEM_PROMPT.
    """
    preferences = preferences or GenerationPreferences()
    guidance = (
        f"{language_instruction(preferences.language)}"
        f"{type_instruction(preferences.flashcard_type)}"
        f"{length_instructions(preferences)}"
    )

    if count == AUTO_COUNT:
        opening = (
            "Analyze the following text and generate an appropriate number of flashcards "
            "based on the content length and key concepts "
            f"(minimum {AUTO_MIN_CARDS}, maximum {AUTO_MAX_CARDS})."
        )
    else:
        opening = f"Generate {count} flashcards from the following text."

    return f"{opening} {guidance} {OUTPUT_FORMAT}\n\nText:\n{text}"
