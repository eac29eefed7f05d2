"""Persists one extraction result as quotes, nodes, edges and quote-node links.

Extraction-local ids are resolved through two explicit lookup tables
(quote temp id -> durable id, node temp id -> durable id) built while the
quotes and nodes are inserted. Ids are normalised to strings, so ``1`` and
``"1"`` name the same item; an item without an id is addressed by its array
index. When the model repeats an id, the later item overwrites the earlier
mapping entry, so references resolve to the last occurrence.

Each phase runs on its own: a storage failure is recorded against that
phase and the remaining phases still run. With ``atomic=True`` all four
phases share one transaction instead and a failure rolls all of them back.
"""

import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from insightmap.repositories.base_repository import describe_storage_error
from insightmap.repositories.graph_repository import GraphRepository
from insightmap.services.analysis.contracts import (
    PHASE_SUCCESS,
    ExtractionResult,
    MaterializationResult,
)
from insightmap.utils.logging import get_logger

LOGGER = get_logger(__name__)

PHASES = ("quotes", "nodes", "edges", "quote_node_links")


def temp_key(value: Any) -> Optional[str]:
    """Normalise an extraction-local id into a lookup key."""
    if value is None:
        return None
    return str(value)


class GraphMaterializer:
    """Turns a parsed extraction result into durable rows for one owner."""

    def __init__(self, session: AsyncSession, atomic: bool = False):
        self.session = session
        self.atomic = atomic
        self.repository = GraphRepository(session)

    async def materialize(
        self,
        extraction: ExtractionResult,
        user_id: uuid.UUID,
        raw_content_id: uuid.UUID,
    ) -> MaterializationResult:
        result = MaterializationResult()

        if extraction.quotes is not None:
            rows = [q.model_dump() for q in extraction.quotes]
            inserted = await self._run_phase(
                "quotes", result,
                lambda: self.repository.add_quotes(user_id, raw_content_id, rows),
            )
            if inserted is not None:
                for index, (item, row) in enumerate(zip(extraction.quotes, inserted)):
                    key = temp_key(item.id if item.id is not None else index)
                    result.quote_ids[key] = row.id

        if extraction.nodes is not None and not self._halted(result):
            rows = [n.model_dump() for n in extraction.nodes]
            inserted = await self._run_phase(
                "nodes", result,
                lambda: self.repository.add_nodes(user_id, rows),
            )
            if inserted is not None:
                for index, (item, row) in enumerate(zip(extraction.nodes, inserted)):
                    key = temp_key(item.id if item.id is not None else index)
                    result.node_ids[key] = row.id

        if extraction.edges is not None and not self._halted(result):
            edge_rows = []
            for edge in extraction.edges:
                from_id = result.node_ids.get(temp_key(edge.from_node_id))
                to_id = result.node_ids.get(temp_key(edge.to_node_id))
                if from_id is None or to_id is None:
                    result.dropped_edges += 1
                    continue
                edge_rows.append({
                    "from_node_id": from_id,
                    "to_node_id": to_id,
                    "type": edge.type,
                    "description": edge.description,
                })
            if result.dropped_edges:
                LOGGER.info(f"Dropped {result.dropped_edges} edge(s) with unresolved node references")
            inserted = await self._run_phase(
                "edges", result,
                lambda: self.repository.add_edges(user_id, edge_rows),
            )
            if inserted is not None:
                result.edges_created = len(inserted)

        if extraction.quote_node_links is not None and not self._halted(result):
            link_rows = []
            for link in extraction.quote_node_links:
                quote_id = result.quote_ids.get(temp_key(link.quote_id))
                node_id = result.node_ids.get(temp_key(link.node_id))
                if quote_id is None or node_id is None:
                    result.dropped_quote_node_links += 1
                    continue
                link_rows.append({"quote_id": quote_id, "node_id": node_id, "type": link.type})
            if result.dropped_quote_node_links:
                LOGGER.info(
                    f"Dropped {result.dropped_quote_node_links} quote-node link(s) "
                    "with unresolved references"
                )
            inserted = await self._run_phase(
                "quote_node_links", result,
                lambda: self.repository.add_quote_node_links(user_id, link_rows),
            )
            if inserted is not None:
                result.links_created = len(inserted)

        if self.atomic:
            await self._finish_atomic(extraction, result)

        return result

    def _halted(self, result: MaterializationResult) -> bool:
        return self.atomic and not result.succeeded

    async def _run_phase(
        self,
        name: str,
        result: MaterializationResult,
        operation: Callable[[], Awaitable[List[Any]]],
    ) -> Optional[List[Any]]:
        """Run one insert phase, recording ``success`` or the failure message."""
        try:
            inserted = await operation()
            if not self.atomic:
                await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            message = describe_storage_error(e)
            LOGGER.error(f"Error inserting {name}: {message}")
            result.phases[name] = message
            return None

        result.phases[name] = PHASE_SUCCESS
        return inserted

    async def _finish_atomic(
        self, extraction: ExtractionResult, result: MaterializationResult
    ) -> None:
        """Commit the shared transaction, or mark every phase as rolled back."""
        failure: Optional[str] = next(
            (status for status in result.phases.values() if status != PHASE_SUCCESS),
            None,
        )

        if failure is None:
            try:
                await self.session.commit()
                return
            except SQLAlchemyError as e:
                await self.session.rollback()
                failure = describe_storage_error(e)
                LOGGER.error(f"Error committing extraction graph: {failure}")

        present: Dict[str, bool] = {
            "quotes": extraction.quotes is not None,
            "nodes": extraction.nodes is not None,
            "edges": extraction.edges is not None,
            "quote_node_links": extraction.quote_node_links is not None,
        }
        for phase in PHASES:
            if not present[phase]:
                continue
            status = result.phases.get(phase)
            if status is None:
                result.phases[phase] = "skipped: an earlier phase failed"
            elif status == PHASE_SUCCESS:
                result.phases[phase] = f"rolled back: {failure}"

        result.quote_ids.clear()
        result.node_ids.clear()
        result.edges_created = 0
        result.links_created = 0
