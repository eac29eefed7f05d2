"""Retrieval of already-stored insights for the authenticated owner."""

import time
import uuid
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from insightmap.core.exceptions import InvalidInput, StorageFailure
from insightmap.repositories.base_repository import describe_storage_error
from insightmap.repositories.insights_repository import InsightsRepository
from insightmap.schemas.insights import (
    VIEW_ALIASES,
    VIEW_TARGETS,
    EdgeView,
    GraphNodeView,
    IdeaView,
    InsightsQuery,
    InsightView,
    LinkedQuoteView,
    NodeView,
    QuoteNodeLinkView,
    QuoteView,
    RawContentView,
    SourceView,
)
from insightmap.services.base_service import BaseService


def resolve_view(view: Any) -> InsightView:
    """Map a requested view name (or alias) to an ``InsightView``."""
    if isinstance(view, InsightView):
        return view
    if isinstance(view, str):
        if view in VIEW_ALIASES:
            return VIEW_ALIASES[view]
        try:
            return InsightView(view)
        except ValueError:
            pass
    raise InvalidInput("Invalid or missing view_type")


class InsightsService(BaseService):
    """Renders one of the four retrieval views, scoped to one owner."""

    def __init__(self, session: AsyncSession):
        super().__init__()
        self.repository = InsightsRepository(session)

    def validate(self, owner_id: uuid.UUID, query: InsightsQuery):
        resolve_view(query.view)

    async def run(self, owner_id: uuid.UUID, query: InsightsQuery) -> Dict[str, Any]:
        started = time.monotonic()
        view = resolve_view(query.view)

        try:
            if view is InsightView.LIST_QUOTES:
                data = await self._list_quotes(owner_id, query)
            elif view is InsightView.LIST_NODES:
                data = await self._list_nodes(owner_id, query)
            elif view is InsightView.GRAPH_DATA:
                data = await self._graph_data(owner_id, query)
            else:
                data = await self._list_ideas(owner_id, query)
        except SQLAlchemyError as e:
            self.logger.error(f"Insights query failed for view {view.value}: {describe_storage_error(e)}")
            raise StorageFailure(
                f"Failed to load {VIEW_TARGETS[view]}: {describe_storage_error(e)}", original_error=e
            ) from e

        return {
            "data": data,
            "debug": {
                "view": view.value,
                "target": VIEW_TARGETS[view],
                "elapsed_ms": int((time.monotonic() - started) * 1000),
            },
        }

    async def _list_quotes(self, owner_id, query: InsightsQuery) -> List[Dict[str, Any]]:
        rows = await self.repository.list_quotes(
            owner_id,
            raw_content_id=query.raw_content_id,
            source_id=query.source_id,
            limit=query.limit,
            offset=query.offset,
        )
        data = []
        for quote, raw_content, source in rows:
            view = QuoteView.model_validate(quote)
            view.raw_data = RawContentView(
                id=raw_content.id,
                source_id=raw_content.source_id,
                source=SourceView(id=source.id, type=source.type, metadata=source.source_metadata),
            )
            data.append(view.model_dump(mode="json"))
        return data

    async def _list_nodes(self, owner_id, query: InsightsQuery) -> List[Dict[str, Any]]:
        nodes = await self.repository.list_nodes(
            owner_id, node_type=query.type, limit=query.limit, offset=query.offset
        )
        return [NodeView.model_validate(node).model_dump(mode="json") for node in nodes]

    async def _graph_data(self, owner_id, query: InsightsQuery) -> List[Dict[str, Any]]:
        nodes = await self.repository.list_nodes(
            owner_id, node_type=query.type, limit=query.limit, offset=query.offset
        )
        node_ids = [node.id for node in nodes]
        graph = {node.id: GraphNodeView.model_validate(node) for node in nodes}

        for edge in await self.repository.list_edges_from(owner_id, node_ids):
            graph[edge.from_node_id].edges.append(EdgeView.model_validate(edge))

        for link, quote in await self.repository.list_links_for(owner_id, node_ids):
            link_view = QuoteNodeLinkView.model_validate(link)
            link_view.quote = LinkedQuoteView.model_validate(quote)
            graph[link.node_id].quote_node_links.append(link_view)

        return [graph[node_id].model_dump(mode="json") for node_id in node_ids]

    async def _list_ideas(self, owner_id, query: InsightsQuery) -> List[Dict[str, Any]]:
        ideas = await self.repository.list_ideas(
            owner_id, status=query.status, limit=query.limit, offset=query.offset
        )
        return [IdeaView.model_validate(idea).model_dump(mode="json") for idea in ideas]
