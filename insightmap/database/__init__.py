"""Database module for SQLAlchemy models."""

from insightmap.database.models import (
    Edge,
    Idea,
    Node,
    Quote,
    QuoteNodeLink,
    RawContent,
    Source,
)

__all__ = [
    "Source",
    "RawContent",
    "Quote",
    "Node",
    "Edge",
    "QuoteNodeLink",
    "Idea",
]
