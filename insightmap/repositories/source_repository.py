"""Repositories for submission provenance and raw text bodies."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from insightmap.database.models import RawContent, Source
from insightmap.repositories.base_repository import BaseRepository


class SourceRepository(BaseRepository[Source]):
    """Repository for managing Source records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Source)

    async def create_source(
        self,
        user_id: uuid.UUID,
        source_type: str = "manual",
        url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        file_path: Optional[str] = None,
    ) -> Source:
        """Persist one submission's provenance."""
        return await self.create(
            user_id=user_id,
            type=source_type,
            url=url,
            file_path=file_path,
            source_metadata=metadata,
        )


class RawContentRepository(BaseRepository[RawContent]):
    """Repository for managing RawContent records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, RawContent)

    async def create_raw_content(
        self, user_id: uuid.UUID, source_id: uuid.UUID, content: str
    ) -> RawContent:
        """Persist the submitted text body linked to its source."""
        return await self.create(user_id=user_id, source_id=source_id, content=content)

    async def mark_processed(
        self, raw_content_id: uuid.UUID, user_id: uuid.UUID
    ) -> bool:
        """Stamp ``processed_at`` unless it is already set.

        Returns:
            True if this call set the timestamp, False if it was already stamped
            (or the row does not belong to ``user_id``).
        """
        stmt = (
            update(RawContent)
            .where(
                RawContent.id == raw_content_id,
                RawContent.user_id == user_id,
                RawContent.processed_at.is_(None),
            )
            .values(processed_at=datetime.now(timezone.utc))
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return result.rowcount == 1
