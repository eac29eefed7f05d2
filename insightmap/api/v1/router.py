from fastapi import APIRouter
from insightmap.api.v1.endpoints import ingestion, insights

# Create API router
api_router = APIRouter()

# Include routers
api_router.include_router(ingestion.router, prefix="", tags=["Ingestion"])
api_router.include_router(insights.router, prefix="", tags=["Insights"])

__all__ = ["api_router"]
