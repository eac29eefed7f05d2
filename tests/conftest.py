"""Pytest configuration and shared fixtures."""

import json
import os
import uuid
from typing import Any, Callable, Dict, List

# Settings are read at import time; keep real provider keys out of the test run.
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["GEMINI_API_KEY"] = ""
os.environ["SUPABASE_URL"] = "https://project.supabase.co"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret-with-enough-length-for-hs256"

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from insightmap.core.config import LLMSettings
from insightmap.core.database import DatabaseClient, build_session_factory
from insightmap.services.analysis.credential_resolver import CredentialResolver
from insightmap.services.analysis.llm_adapter import LLMClientAdapter
from insightmap.services.ingestion_service import IngestionOrchestrator

OWNER_ID = uuid.UUID("6f1c2a52-9a55-4a0e-9d1d-3f4e2b8c7a10")
OTHER_OWNER_ID = uuid.UUID("0b8e5d3e-41f2-4c52-8d0b-2b7e9a6c1f55")

USER_KEY = "sk-user-3c9f1e7a5b2d4f6081a2b3c4d5e6f708"
FALLBACK_KEY = "or-fallback-key-7e1d2c3b4a59687f"

SCENARIO_TEXT = "Users say the app crashes on login."
SCENARIO_EXTRACTION = {
    "quotes": [{"id": 1, "text": "app crashes on login"}],
    "nodes": [{"id": 1, "type": "pain", "label": "Login crash"}],
    "edges": [],
    "quote_node_links": [{"quote_id": 1, "node_id": 1, "type": "supports"}],
}


def chat_completion(content: Any) -> Dict[str, Any]:
    """OpenAI-style chat completion body wrapping ``content``."""
    if not isinstance(content, str):
        content = json.dumps(content)
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


def json_transport(body: Any, status_code: int = 200) -> RecordingTransport:
    return RecordingTransport(lambda request: httpx.Response(status_code, json=body))


@pytest.fixture
def llm_settings() -> LLMSettings:
    """LLM settings with no fallback keys configured."""
    return LLMSettings(
        OPENROUTER_API_KEY="",
        GEMINI_API_KEY="",
        USER_KEY_API_URL="https://llm.test/v1/chat/completions",
        OPENROUTER_API_URL="https://openrouter.test/api/v1/chat/completions",
        LLM_TIMEOUT_SECONDS=5,
    )


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Temporary SQLite database with every table created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'insightmap.db'}")
    await DatabaseClient(engine).create_tables()
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def make_orchestrator(session_factory, llm_settings):
    """Build an orchestrator around a transport and optional fallback keys."""

    def _make(
        transport: httpx.AsyncBaseTransport,
        fallbacks: Dict[str, str] = None,
        atomic: bool = False,
    ) -> IngestionOrchestrator:
        resolver = CredentialResolver(
            fallback_credentials=fallbacks or {},
            priority=["openrouter", "gemini"],
        )
        return IngestionOrchestrator(
            session_factory=session_factory,
            credential_resolver=resolver,
            llm_adapter=LLMClientAdapter(llm_settings, transport=transport),
            materialize_atomically=atomic,
        )

    return _make
