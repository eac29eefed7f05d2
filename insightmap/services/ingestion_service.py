"""Ingestion orchestrator: one submission from raw text to a processed record.

received -> source_saved -> content_saved -> analysis_dispatched
         -> analysis_succeeded | analysis_failed -> processed_marked

Failures before the raw content is committed are raised to the caller.
Everything after that point is recorded on the result instead, and the
raw content is stamped as processed whatever the analysis outcome.
"""

import asyncio
import uuid
from typing import Any, Dict, Optional, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from insightmap.core.exceptions import AppError, InvalidInput, StorageFailure
from insightmap.repositories.base_repository import describe_storage_error
from insightmap.repositories.source_repository import RawContentRepository, SourceRepository
from insightmap.services.analysis.contracts import (
    ANALYSIS_FAILED,
    ANALYSIS_SUCCESS,
    PHASE_SUCCESS,
    IngestionResult,
)
from insightmap.services.analysis.credential_resolver import CredentialResolver
from insightmap.services.analysis.extraction_parser import parse_extraction
from insightmap.services.analysis.graph_materializer import GraphMaterializer
from insightmap.services.analysis.llm_adapter import LLMClientAdapter
from insightmap.services.analysis.prompt_builder import build_prompt
from insightmap.services.base_service import BaseService
from insightmap.utils.logging import get_logger
from insightmap.utils.redaction import redact_text, scrub_payload, secret_scope

LOGGER = get_logger(__name__)

DEFAULT_SOURCE_TYPE = "manual"


def coerce_owner_id(owner_id: Any) -> uuid.UUID:
    """Return ``owner_id`` as a UUID or raise ``InvalidInput``."""
    if isinstance(owner_id, uuid.UUID):
        return owner_id
    if isinstance(owner_id, str) and owner_id.strip():
        try:
            return uuid.UUID(owner_id.strip())
        except ValueError:
            raise InvalidInput("Owner identity is not a valid UUID") from None
    raise InvalidInput("Missing owner identity")


class IngestionOrchestrator(BaseService):
    """Coordinates persistence and analysis for one text submission.

    Every collaborator is injected; each submission opens its own sessions
    from ``session_factory`` so concurrent submissions share no state.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        credential_resolver: CredentialResolver,
        llm_adapter: LLMClientAdapter,
        materialize_atomically: bool = False,
    ):
        super().__init__()
        self.session_factory = session_factory
        self.credential_resolver = credential_resolver
        self.llm_adapter = llm_adapter
        self.materialize_atomically = materialize_atomically
        self._in_flight: Set[asyncio.Task] = set()

    async def execute(
        self,
        text_content: Optional[str],
        owner_id: Any,
        source_metadata: Optional[Dict[str, Any]] = None,
        credential: Optional[str] = None,
    ) -> IngestionResult:
        with secret_scope(credential, *self.credential_resolver.configured_secrets()):
            try:
                return await super().execute(
                    text_content, owner_id, source_metadata=source_metadata, credential=credential
                )
            except AppError as e:
                e.message = redact_text(e.message)
                e.args = (e.message,)
                raise

    def validate(self, text_content, owner_id, source_metadata=None, credential=None):
        if not isinstance(text_content, str) or not text_content.strip():
            raise InvalidInput("Missing text_content")
        coerce_owner_id(owner_id)
        if source_metadata is not None and not isinstance(source_metadata, dict):
            raise InvalidInput("source_metadata must be an object")

    async def run(
        self,
        text_content: str,
        owner_id: Any,
        source_metadata: Optional[Dict[str, Any]] = None,
        credential: Optional[str] = None,
    ) -> IngestionResult:
        owner = coerce_owner_id(owner_id)
        metadata = dict(source_metadata or {})

        source_id, raw_content_id = await self._save_submission(owner, text_content, metadata)

        # The analysis keeps running if the caller goes away.
        analysis = asyncio.ensure_future(
            self._analyze(owner, raw_content_id, text_content, credential)
        )
        self._in_flight.add(analysis)
        analysis.add_done_callback(self._in_flight.discard)
        succeeded, debug = await asyncio.shield(analysis)

        return IngestionResult(
            raw_content_id=raw_content_id,
            source_id=source_id,
            analysis_status=ANALYSIS_SUCCESS if succeeded else ANALYSIS_FAILED,
            per_phase_debug=scrub_payload(debug),
        )

    async def drain(self, timeout: Optional[float] = None) -> int:
        """Wait for analyses still in flight, e.g. before the engine is disposed.

        Returns:
            Number of analyses that were still pending when ``timeout`` expired
        """
        pending = set(self._in_flight)
        if not pending:
            return 0

        LOGGER.info(f"Waiting for {len(pending)} in-flight analyses")
        _, still_pending = await asyncio.wait(pending, timeout=timeout)
        if still_pending:
            LOGGER.warning(f"{len(still_pending)} analyses still running after {timeout}s")
        return len(still_pending)

    async def _save_submission(
        self, owner: uuid.UUID, text_content: str, metadata: Dict[str, Any]
    ) -> Tuple[uuid.UUID, uuid.UUID]:
        # Source and raw content commit together or not at all.
        async with self.session_factory() as session:
            try:
                source = await SourceRepository(session).create_source(
                    user_id=owner,
                    source_type=metadata.get("type") or DEFAULT_SOURCE_TYPE,
                    url=metadata.get("url"),
                    file_path=metadata.get("file_path"),
                    metadata=metadata,
                )
                source_id = source.id
            except SQLAlchemyError as e:
                await session.rollback()
                raise StorageFailure(
                    f"Failed to save source: {describe_storage_error(e)}", original_error=e
                ) from e

            try:
                raw_content = await RawContentRepository(session).create_raw_content(
                    user_id=owner, source_id=source_id, content=text_content
                )
                raw_content_id = raw_content.id
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise StorageFailure(
                    f"Failed to save raw content: {describe_storage_error(e)}", original_error=e
                ) from e

        LOGGER.info(f"Saved submission source={source_id} raw_content={raw_content_id}")
        return source_id, raw_content_id

    async def _analyze(
        self,
        owner: uuid.UUID,
        raw_content_id: uuid.UUID,
        text_content: str,
        credential: Optional[str],
    ) -> Tuple[bool, Dict[str, Any]]:
        """Run resolver -> prompt -> model -> parser -> materializer, then stamp.

        Returns whether the analysis succeeded, and the per-phase debug record.
        """
        debug: Dict[str, Any] = {}
        succeeded = False

        async with self.session_factory() as session:
            try:
                resolved = self.credential_resolver.resolve(credential)
                prompt = build_prompt(text_content)
                raw_response = await self.llm_adapter.complete(resolved, prompt)
                extraction = parse_extraction(raw_response)

                materializer = GraphMaterializer(session, atomic=self.materialize_atomically)
                materialized = await materializer.materialize(extraction, owner, raw_content_id)
                debug.update(materialized.debug())
                succeeded = materialized.succeeded
            except AppError as e:
                LOGGER.warning(
                    f"Analysis failed for raw content {raw_content_id}: "
                    f"{e.__class__.__name__}: {e.message}"
                )
                debug["analysis_error"] = {"type": e.__class__.__name__, "message": e.message}
            except Exception as e:
                LOGGER.error(
                    f"Unexpected analysis failure for raw content {raw_content_id}",
                    exc_info=True,
                )
                await session.rollback()
                debug["analysis_error"] = {
                    "type": e.__class__.__name__,
                    "message": "Unexpected analysis failure",
                }

            try:
                stamped = await RawContentRepository(session).mark_processed(raw_content_id, owner)
                debug["raw_content_update"] = PHASE_SUCCESS if stamped else "already processed"
            except SQLAlchemyError as e:
                message = describe_storage_error(e)
                LOGGER.error(f"Error updating raw content {raw_content_id}: {message}")
                debug["raw_content_update"] = message

        LOGGER.info(
            f"Analysis for raw content {raw_content_id} finished: "
            f"{ANALYSIS_SUCCESS if succeeded else ANALYSIS_FAILED}"
        )
        return succeeded, debug
