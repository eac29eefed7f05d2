"""Request and response schemas for insights retrieval."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class InsightView(str, Enum):
    """Views the retrieval endpoint can render."""

    LIST_QUOTES = "list_quotes"
    LIST_NODES = "list_nodes"
    GRAPH_DATA = "graph_data"
    LIST_IDEAS = "list_ideas"


VIEW_ALIASES = {"ideas": InsightView.LIST_IDEAS}

VIEW_TARGETS = {
    InsightView.LIST_QUOTES: "quotes",
    InsightView.LIST_NODES: "nodes",
    InsightView.GRAPH_DATA: "graph",
    InsightView.LIST_IDEAS: "ideas",
}


class InsightsQuery(BaseModel):
    """Retrieval parameters, accepted as a JSON body or as query parameters."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    view: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("view", "view_type"),
        description="list_quotes | list_nodes | graph_data | list_ideas",
    )
    owner_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("owner_id", "user_id"),
        description="Optional; must match the authenticated user when given",
    )
    raw_content_id: Optional[UUID] = Field(None, description="Only quotes from this raw content")
    source_id: Optional[UUID] = Field(None, description="Only quotes from this source")
    type: Optional[str] = Field(None, description="Only nodes of this type")
    status: Optional[str] = Field(None, description="Only ideas with this status")
    limit: int = Field(100, ge=1, le=1000)
    offset: int = Field(0, ge=0)


class _RowView(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class SourceView(_RowView):
    id: UUID
    type: str
    metadata: Optional[Dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("source_metadata", "metadata")
    )


class RawContentView(_RowView):
    id: UUID
    source_id: UUID
    source: Optional[SourceView] = None


class QuoteView(_RowView):
    id: UUID
    text: str
    start_char_index: Optional[int] = None
    end_char_index: Optional[int] = None
    sentiment: Optional[str] = None
    emotions: Optional[List[str]] = None
    is_suggestion: bool
    created_at: Optional[datetime] = None
    raw_data: Optional[RawContentView] = None


class EdgeView(_RowView):
    id: UUID
    from_node_id: UUID
    to_node_id: UUID
    type: Optional[str] = None
    description: Optional[str] = None


class LinkedQuoteView(_RowView):
    id: UUID
    text: str


class QuoteNodeLinkView(_RowView):
    id: UUID
    quote_id: UUID
    node_id: UUID
    type: Optional[str] = None
    quote: Optional[LinkedQuoteView] = None


class NodeView(_RowView):
    id: UUID
    type: str
    label: str
    description: Optional[str] = None
    is_suggestion: bool
    created_at: Optional[datetime] = None


class GraphNodeView(NodeView):
    edges: List[EdgeView] = Field(default_factory=list)
    quote_node_links: List[QuoteNodeLinkView] = Field(default_factory=list)


class IdeaView(_RowView):
    id: UUID
    text: str
    type: Optional[str] = None
    status: str
    generated_from_node_id: Optional[UUID] = None
    generated_from_quote_id: Optional[UUID] = None


class InsightsDebug(BaseModel):
    view: str
    target: str
    elapsed_ms: int


class InsightsResponse(BaseModel):
    data: List[Dict[str, Any]]
    debug: InsightsDebug
