"""Owner-scoped read queries behind the insights retrieval endpoint."""

import uuid
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from insightmap.database.models import Edge, Idea, Node, Quote, QuoteNodeLink, RawContent, Source


class InsightsRepository:
    """Parameterized reads; every query filters on ``user_id``."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_quotes(
        self,
        user_id: uuid.UUID,
        raw_content_id: Optional[uuid.UUID] = None,
        source_id: Optional[uuid.UUID] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Sequence[Tuple[Quote, RawContent, Source]]:
        query = (
            select(Quote, RawContent, Source)
            .join(RawContent, Quote.raw_data_id == RawContent.id)
            .join(Source, RawContent.source_id == Source.id)
            .where(Quote.user_id == user_id)
        )
        if raw_content_id is not None:
            query = query.where(Quote.raw_data_id == raw_content_id)
        if source_id is not None:
            query = query.where(RawContent.source_id == source_id)

        query = query.order_by(Quote.created_at, Quote.id).offset(offset).limit(limit)
        result = await self.session.execute(query)
        return result.all()

    async def list_nodes(
        self,
        user_id: uuid.UUID,
        node_type: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Node]:
        query = select(Node).where(Node.user_id == user_id)
        if node_type:
            query = query.where(Node.type == node_type)
        query = query.order_by(Node.created_at, Node.id).offset(offset).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_edges_from(
        self, user_id: uuid.UUID, node_ids: Sequence[uuid.UUID]
    ) -> List[Edge]:
        if not node_ids:
            return []
        query = (
            select(Edge)
            .where(Edge.user_id == user_id, Edge.from_node_id.in_(node_ids))
            .order_by(Edge.created_at, Edge.id)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_links_for(
        self, user_id: uuid.UUID, node_ids: Sequence[uuid.UUID]
    ) -> Sequence[Tuple[QuoteNodeLink, Quote]]:
        if not node_ids:
            return []
        query = (
            select(QuoteNodeLink, Quote)
            .join(Quote, QuoteNodeLink.quote_id == Quote.id)
            .where(QuoteNodeLink.user_id == user_id, QuoteNodeLink.node_id.in_(node_ids))
            .order_by(QuoteNodeLink.created_at, QuoteNodeLink.id)
        )
        result = await self.session.execute(query)
        return result.all()

    async def list_ideas(
        self,
        user_id: uuid.UUID,
        status: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Idea]:
        query = select(Idea).where(Idea.user_id == user_id)
        if status:
            query = query.where(Idea.status == status)
        query = query.order_by(Idea.created_at, Idea.id).offset(offset).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def find_submission(
        self, user_id: uuid.UUID, raw_content_id: uuid.UUID
    ) -> Optional[Tuple[RawContent, Source]]:
        """Return the raw content and its source, if both belong to ``user_id``."""
        query = (
            select(RawContent, Source)
            .join(Source, RawContent.source_id == Source.id)
            .where(RawContent.id == raw_content_id, RawContent.user_id == user_id)
        )
        result = await self.session.execute(query)
        row: Any = result.first()
        return (row[0], row[1]) if row is not None else None
