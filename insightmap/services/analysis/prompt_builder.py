"""Builds the fixed extraction prompt pair."""

from insightmap.prompts.system_prompts import (
    INSIGHT_EXTRACTION_SYSTEM_PROMPT,
    INSIGHT_EXTRACTION_USER_PROMPT,
    TEXT_DELIMITER,
)
from insightmap.services.analysis.contracts import PromptPair


def build_prompt(text: str) -> PromptPair:
    """Same text in, same prompt out."""
    user_instructions = (
        f"{INSIGHT_EXTRACTION_USER_PROMPT}\n"
        f"Text to analyze: {TEXT_DELIMITER}{text}{TEXT_DELIMITER}\n"
    )
    return PromptPair(
        system_instructions=INSIGHT_EXTRACTION_SYSTEM_PROMPT,
        user_instructions=user_instructions,
    )
