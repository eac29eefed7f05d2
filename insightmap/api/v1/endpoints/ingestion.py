"""Text submission endpoint."""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends

from insightmap.core.auth import get_current_user
from insightmap.core.dependencies import get_ingestion_orchestrator
from insightmap.core.exceptions import OwnershipMismatch
from insightmap.schemas.auth import CurrentUser
from insightmap.schemas.ingestion import ErrorResponse, IngestionRequest, IngestionResponse
from insightmap.services.ingestion_service import IngestionOrchestrator
from insightmap.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()

OWNER_KEYS = ("owner_id", "user_id")


def ensure_same_owner(claimed, current_user: CurrentUser) -> None:
    """Reject a caller-supplied owner that differs from the authenticated user."""
    if claimed is None:
        return
    if str(claimed).strip().lower() != current_user.id.strip().lower():
        LOGGER.warning(f"Owner mismatch for authenticated user {current_user.id}")
        raise OwnershipMismatch("Owner does not match the authenticated user")


@router.post(
    "/ingest",
    response_model=IngestionResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Submit text for analysis",
    description="Persist the text, analyze it with the LLM and store the extracted insight graph",
    operation_id="ingest_text",
)
async def ingest(
    body: IngestionRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    orchestrator: Annotated[IngestionOrchestrator, Depends(get_ingestion_orchestrator)],
) -> IngestionResponse:
    """Submit one text for analysis.

    The owner is always the authenticated user. Analysis failures do not fail
    the request: the submission is saved and ``analysis_status`` is ``failed``.
    """
    for key in OWNER_KEYS:
        ensure_same_owner(body.source_metadata.get(key), current_user)

    result = await orchestrator.execute(
        body.text_content,
        current_user.id,
        source_metadata=body.source_metadata,
        credential=body.credential,
    )

    LOGGER.info(f"Submission {result.raw_content_id} analysis {result.analysis_status}")
    return IngestionResponse(**asdict(result))
