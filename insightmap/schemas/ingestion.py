"""Request and response schemas for the ingestion endpoint."""

from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class IngestionRequest(BaseModel):
    """One text submission."""

    model_config = ConfigDict(populate_by_name=True)

    text_content: Optional[str] = Field(None, description="Raw text to analyze")
    source_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Provenance: type, url and any extra keys; owner_id must match the caller",
    )
    credential: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("credential", "user_ai_key"),
        description="Caller-supplied LLM API key; configured fallbacks are used when absent",
        repr=False,
    )


class IngestionResponse(BaseModel):
    """Identifiers of what was saved and how the analysis went."""

    raw_content_id: UUID
    source_id: UUID
    analysis_status: str = Field(..., description="success | failed")
    per_phase_debug: Dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Error body returned for every handled failure."""

    error: str
    debug: Optional[Any] = None
