"""Contracts (input/output schemas) for the analysis pipeline."""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Extraction-local identifiers: whatever the model emitted (int or string).
TempId = Union[int, str]

PHASE_SUCCESS = "success"
ANALYSIS_SUCCESS = "success"
ANALYSIS_FAILED = "failed"


@dataclass(frozen=True)
class ResolvedCredential:
    """Credential chosen for one LLM call.

    ``provider`` is ``"user"`` for caller-supplied keys, otherwise the name of
    the configured fallback. The repr never includes the key.
    """
    api_key: str = field(repr=False)
    provider: str


@dataclass(frozen=True)
class PromptPair:
    """System and user instructions sent to the model."""
    system_instructions: str
    user_instructions: str


class _ExtractionItem(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ExtractedQuote(_ExtractionItem):
    id: Optional[TempId] = None
    text: str
    start_index: Optional[int] = None
    end_index: Optional[int] = None
    sentiment: Optional[str] = None
    emotions: Optional[List[str]] = None

    @field_validator("emotions", mode="before")
    @classmethod
    def _single_emotion_as_list(cls, value):
        if isinstance(value, str):
            return [value]
        return value


class ExtractedNode(_ExtractionItem):
    id: Optional[TempId] = None
    type: str
    label: str
    description: Optional[str] = None


class ExtractedEdge(_ExtractionItem):
    from_node_id: Optional[TempId] = None
    to_node_id: Optional[TempId] = None
    type: Optional[str] = None
    description: Optional[str] = None


class ExtractedQuoteNodeLink(_ExtractionItem):
    quote_id: Optional[TempId] = None
    node_id: Optional[TempId] = None
    type: Optional[str] = None


class ExtractionResult(_ExtractionItem):
    """Decoded model output.

    A list is ``None`` when the model omitted that key entirely; the
    materializer skips absent lists instead of reporting an empty phase.
    """
    quotes: Optional[List[ExtractedQuote]] = None
    nodes: Optional[List[ExtractedNode]] = None
    edges: Optional[List[ExtractedEdge]] = None
    quote_node_links: Optional[List[ExtractedQuoteNodeLink]] = Field(default=None)

    @field_validator("quotes", "nodes", "edges", "quote_node_links", mode="before")
    @classmethod
    def _present_means_list(cls, value):
        # Only explicit keys reach here; an explicit null is not an omission.
        if value is None:
            raise ValueError("must be a list when present")
        return value


@dataclass
class MaterializationResult:
    """Outcome of persisting one extraction result.

    ``phases`` maps entity kind to ``"success"`` or the failure message.
    """
    phases: Dict[str, str] = field(default_factory=dict)
    quote_ids: Dict[str, uuid.UUID] = field(default_factory=dict)
    node_ids: Dict[str, uuid.UUID] = field(default_factory=dict)
    edges_created: int = 0
    links_created: int = 0
    dropped_edges: int = 0
    dropped_quote_node_links: int = 0

    @property
    def succeeded(self) -> bool:
        return all(status == PHASE_SUCCESS for status in self.phases.values())

    def debug(self) -> Dict[str, Union[str, int]]:
        payload: Dict[str, Union[str, int]] = dict(self.phases)
        if "edges" in self.phases:
            payload["dropped_edges"] = self.dropped_edges
        if "quote_node_links" in self.phases:
            payload["dropped_quote_node_links"] = self.dropped_quote_node_links
        return payload


@dataclass
class IngestionResult:
    """What one submission produced.

    ``per_phase_debug`` has already been scrubbed of credential material.
    """
    raw_content_id: uuid.UUID
    source_id: uuid.UUID
    analysis_status: str
    per_phase_debug: Dict[str, Any] = field(default_factory=dict)
