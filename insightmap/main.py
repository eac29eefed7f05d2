"""FastAPI application entry point."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from insightmap.api.v1.endpoints import health
from insightmap.api.v1.router import api_router
from insightmap.core.auth import JWTVerifier
from insightmap.core.config import Settings, settings
from insightmap.core.database import (
    DatabaseClient,
    build_engine,
    build_session_factory,
    close_database,
    init_database,
)
from insightmap.core.exceptions import AppError
from insightmap.services.analysis.credential_resolver import CredentialResolver
from insightmap.services.analysis.llm_adapter import LLMClientAdapter
from insightmap.services.ingestion_service import IngestionOrchestrator
from insightmap.utils.logging import get_logger
from insightmap.utils.redaction import scrub_payload

LOGGER = get_logger(__name__, level=settings.log_level)


class RootResponse(BaseModel):
    """Root endpoint response payload."""

    message: str = Field(..., description="Service status message")
    version: str = Field(..., description="Running application version")
    docs: str = Field(..., description="Path to the interactive API docs")
    health: str = Field(..., description="Path to the health check endpoint")


def configure_state(app: FastAPI, app_settings: Settings) -> None:
    """Build the engine, session factory and services and attach them to ``app.state``."""
    engine = build_engine(app_settings)
    session_factory = build_session_factory(engine)

    app.state.db_client = DatabaseClient(engine)
    app.state.session_factory = session_factory
    app.state.jwt_verifier = JWTVerifier(
        supabase_url=app_settings.supabase.url,
        jwt_secret=app_settings.supabase.jwt_secret,
    )
    app.state.orchestrator = IngestionOrchestrator(
        session_factory=session_factory,
        credential_resolver=CredentialResolver.from_settings(app_settings.llm),
        llm_adapter=LLMClientAdapter(app_settings.llm),
        materialize_atomically=app_settings.ingestion.materialize_atomically,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events for the FastAPI application.
    """
    # Startup
    LOGGER.info(
        "Starting application",
        extra={
            "app_name": app.state.settings.app_name,
            "version": app.state.settings.app_version,
            "environment": app.state.settings.environment,
        },
    )
    configure_state(app, app.state.settings)

    try:
        LOGGER.info("Initializing database...")
        await asyncio.wait_for(
            init_database(app.state.db_client, auto_migrate=True),
            timeout=app.state.settings.db_init_timeout,
        )
        LOGGER.info("Database initialized successfully")
    except Exception:
        LOGGER.error("Failed to initialize database", exc_info=True)

    yield

    # Shutdown
    LOGGER.info("Shutting down application")
    # Saved submissions must still be stamped before the engine goes away.
    await app.state.orchestrator.drain(
        timeout=app.state.settings.ingestion.shutdown_drain_timeout
    )
    await close_database(app.state.db_client)


def error_response(status_code: int, error: str, debug: Optional[object] = None, headers=None) -> JSONResponse:
    """``{error, debug}`` body with credentials scrubbed."""
    return JSONResponse(
        status_code=status_code,
        content=scrub_payload({"error": error, "debug": debug}),
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    LOGGER.warning(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.message, {"type": exc.__class__.__name__})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Offending values are never echoed back; they may hold the credential.
    problems = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return error_response(422, "Invalid request", problems)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


def create_app(app_settings: Settings = settings) -> FastAPI:
    """Create the FastAPI application."""
    application = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        description="Turns free-text feedback into a per-user graph of quotes, concepts and relationships",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    application.state.settings = app_settings

    application.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(AppError, app_error_handler)
    application.add_exception_handler(RequestValidationError, validation_error_handler)
    application.add_exception_handler(StarletteHTTPException, http_error_handler)

    @application.get(
        "/",
        response_model=RootResponse,
        tags=["Root"],
        summary="Root endpoint",
        description="Get basic information about the API",
        operation_id="get_public_root_metadata",
    )
    async def root() -> RootResponse:
        """Root endpoint."""
        return RootResponse(
            message="Server is running",
            version=app_settings.app_version,
            docs="/docs",
            health="/health",
        )

    application.include_router(health.router)
    application.include_router(api_router, prefix=app_settings.api_v1_prefix)
    return application


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "insightmap.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
