"""Decodes the model's JSON response into an ``ExtractionResult``."""

import json

from pydantic import ValidationError

from insightmap.core.exceptions import MalformedExtraction
from insightmap.services.analysis.contracts import ExtractionResult
from insightmap.utils.logging import get_logger

LOGGER = get_logger(__name__)


def _strip_code_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_extraction(raw_response: str) -> ExtractionResult:
    """Validate and decode a raw model response.

    Lists keep the order the model emitted. Extraction-local ids are not
    checked for uniqueness; the materializer resolves duplicates by letting
    the last occurrence win.

    Raises:
        MalformedExtraction: Not JSON, not an object, or not matching the schema
    """
    if not isinstance(raw_response, str) or not raw_response.strip():
        raise MalformedExtraction("Failed to parse LLM JSON response: empty body")

    try:
        decoded = json.loads(_strip_code_fences(raw_response))
    except json.JSONDecodeError as e:
        # e.msg/pos only; the document itself is not echoed back
        LOGGER.warning(f"LLM JSON parse error: {e.msg} at position {e.pos}")
        raise MalformedExtraction(
            f"Failed to parse LLM JSON response: {e.msg} at position {e.pos}"
        ) from None

    if not isinstance(decoded, dict):
        raise MalformedExtraction(
            f"Failed to parse LLM JSON response: expected an object, got {type(decoded).__name__}"
        )

    try:
        return ExtractionResult.model_validate(decoded)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors(include_input=False, include_url=False)
        )
        LOGGER.warning(f"LLM response does not match extraction schema: {problems}")
        raise MalformedExtraction(f"LLM response does not match extraction schema: {problems}") from None
