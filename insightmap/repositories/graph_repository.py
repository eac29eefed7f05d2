"""Bulk writes for the insight graph (quotes, nodes, edges, quote-node links).

Methods stage and flush rows but never commit; the graph materializer
decides where transaction boundaries fall.
"""

import uuid
from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from insightmap.database.models import Edge, Node, Quote, QuoteNodeLink
from insightmap.repositories.base_repository import BaseRepository


class GraphRepository:
    """Owner-scoped inserts for the four graph entity kinds."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.quotes = BaseRepository(session, Quote)
        self.nodes = BaseRepository(session, Node)
        self.edges = BaseRepository(session, Edge)
        self.links = BaseRepository(session, QuoteNodeLink)

    async def add_quotes(
        self,
        user_id: uuid.UUID,
        raw_data_id: uuid.UUID,
        rows: List[Dict[str, Any]],
    ) -> List[Quote]:
        return await self.quotes.add_many([
            Quote(
                user_id=user_id,
                raw_data_id=raw_data_id,
                text=row["text"],
                start_char_index=row.get("start_index"),
                end_char_index=row.get("end_index"),
                sentiment=row.get("sentiment"),
                emotions=row.get("emotions"),
                is_suggestion=True,
            )
            for row in rows
        ])

    async def add_nodes(self, user_id: uuid.UUID, rows: List[Dict[str, Any]]) -> List[Node]:
        return await self.nodes.add_many([
            Node(
                user_id=user_id,
                type=row["type"],
                label=row["label"],
                description=row.get("description"),
                is_suggestion=True,
            )
            for row in rows
        ])

    async def add_edges(self, user_id: uuid.UUID, rows: List[Dict[str, Any]]) -> List[Edge]:
        return await self.edges.add_many([
            Edge(
                user_id=user_id,
                from_node_id=row["from_node_id"],
                to_node_id=row["to_node_id"],
                type=row.get("type"),
                description=row.get("description"),
                is_suggestion=True,
            )
            for row in rows
        ])

    async def add_quote_node_links(
        self, user_id: uuid.UUID, rows: List[Dict[str, Any]]
    ) -> List[QuoteNodeLink]:
        return await self.links.add_many([
            QuoteNodeLink(
                user_id=user_id,
                quote_id=row["quote_id"],
                node_id=row["node_id"],
                type=row.get("type"),
                is_suggestion=True,
            )
            for row in rows
        ])
