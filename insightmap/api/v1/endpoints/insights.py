"""Retrieval endpoint for stored quotes, nodes, graph data and ideas."""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from insightmap.api.v1.endpoints.ingestion import ensure_same_owner
from insightmap.core.auth import get_current_user
from insightmap.core.dependencies import get_insights_service
from insightmap.schemas.auth import CurrentUser
from insightmap.schemas.ingestion import ErrorResponse
from insightmap.schemas.insights import InsightsQuery, InsightsResponse
from insightmap.services.ingestion_service import coerce_owner_id
from insightmap.services.insights_service import InsightsService

router = APIRouter()

ERROR_RESPONSES = {400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}


async def _render(
    query: InsightsQuery, current_user: CurrentUser, service: InsightsService
) -> InsightsResponse:
    ensure_same_owner(query.owner_id, current_user)
    result = await service.execute(coerce_owner_id(current_user.id), query)
    return InsightsResponse(**result)


@router.get(
    "/insights",
    response_model=InsightsResponse,
    responses=ERROR_RESPONSES,
    summary="List stored insights",
    operation_id="get_insights",
)
async def get_insights(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[InsightsService, Depends(get_insights_service)],
    view_type: Optional[str] = None,
    view: Optional[str] = None,
    user_id: Optional[str] = None,
    raw_content_id: Optional[UUID] = None,
    source_id: Optional[UUID] = None,
    type: Optional[str] = None,
    status: Optional[str] = None,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> InsightsResponse:
    query = InsightsQuery(
        view=view or view_type,
        owner_id=user_id,
        raw_content_id=raw_content_id,
        source_id=source_id,
        type=type,
        status=status,
        limit=limit,
        offset=offset,
    )
    return await _render(query, current_user, service)


@router.post(
    "/insights",
    response_model=InsightsResponse,
    responses=ERROR_RESPONSES,
    summary="List stored insights (JSON body)",
    operation_id="post_insights",
)
async def post_insights(
    query: InsightsQuery,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[InsightsService, Depends(get_insights_service)],
) -> InsightsResponse:
    return await _render(query, current_user, service)
