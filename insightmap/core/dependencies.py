"""Centralized dependency injection for the FastAPI application."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from insightmap.core.database import get_async_session
from insightmap.services.ingestion_service import IngestionOrchestrator
from insightmap.services.insights_service import InsightsService


def get_ingestion_orchestrator(request: Request) -> IngestionOrchestrator:
    """Get the orchestrator built at startup.

    Returns:
        IngestionOrchestrator: Opens its own sessions per submission
    """
    return request.app.state.orchestrator


async def get_insights_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> InsightsService:
    """Get insights service instance bound to the request session.

    Args:
        db_session: Database session from dependency injection
    """
    return InsightsService(db_session)
