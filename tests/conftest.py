"""
Shared fixtures for PaperFix backend tests.

Uses a throwaway SQLite database by default; point TEST_DATABASE_URL at a
PostgreSQL instance to run the same suite against the production dialect.
Each test function gets its own session. Tables are created via create_all
in a per-test setup and emptied again afterwards.

The LLM and email providers are never contacted: services are built with an
``httpx.MockTransport`` that answers in the provider's wire format.
"""
from __future__ import annotations

import json
import os
from typing import AsyncGenerator, Callable, Iterable, List

import httpx
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

# Override DATABASE_URL *before* any app module is imported, so that
# settings.DATABASE_URL and the global engine point at the test DB.
TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL",
    "sqlite+aiosqlite:///./paperfix_test.db",
)
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.services.llm_client import GeminiClient  # noqa: E402

# Table names in dependency order (children first) for cleanup
_ALL_TABLES = [
    "documents",
    "users",
]


# ---------------------------------------------------------------------------
# Per-test fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a DB session for each test. After the test, all tables are emptied
    so each test starts with a clean slate.
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)

    # Ensure tables exist
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async with engine.begin() as conn:
        for table in _ALL_TABLES:
            await conn.execute(text(f"DELETE FROM {table}"))

    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx AsyncClient wired to the FastAPI app with the DB dependency
    overridden to use the per-test session.
    """

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

AUTH_HEADERS = {
    "X-User-Id": "test-user-1",
    "X-User-Email": "test1@example.com",
    "X-User-Name": "Test User 1",
}

AUTH_HEADERS_USER2 = {
    "X-User-Id": "test-user-2",
    "X-User-Email": "test2@example.com",
    "X-User-Name": "Test User 2",
}

SSE_HEADERS = {"Accept": "text/event-stream"}

Handler = Callable[[httpx.Request], httpx.Response]


def gemini_payload(text_value: str) -> dict:
    """A ``generateContent`` response body with a single text part."""
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text_value}]}}]}


def gemini_sse(chunks: Iterable[str], extra_lines: Iterable[str] = ()) -> bytes:
    """A ``streamGenerateContent?alt=sse`` body: one event per chunk."""
    lines: List[str] = [f"data: {json.dumps(gemini_payload(c))}\r\n\r\n" for c in chunks]
    lines.extend(extra_lines)
    return "".join(lines).encode("utf-8")


def gemini_handler(
    text_value: str = "Generated document",
    chunks: Iterable[str] = ("Generated ", "document"),
    status_code: int = 200,
    seen: List[httpx.Request] = None,
) -> Handler:
    """Answer blocking and streaming Gemini calls with canned content."""
    chunks = list(chunks)

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if status_code != 200:
            return httpx.Response(status_code, json={"error": {"message": "quota exceeded"}})
        if request.url.path.endswith(":streamGenerateContent"):
            return httpx.Response(
                200,
                headers={"Content-Type": "text/event-stream"},
                content=gemini_sse(chunks),
            )
        return httpx.Response(200, json=gemini_payload(text_value))

    return handler


def fake_gemini(handler: Handler) -> GeminiClient:
    return GeminiClient(api_key="test-key", transport=httpx.MockTransport(handler))


def request_prompt(request: httpx.Request) -> str:
    """The user prompt a captured Gemini request carried."""
    return json.loads(request.content)["contents"][0]["parts"][0]["text"]


class BrokenStream(httpx.AsyncByteStream):
    """Yields some bytes, then fails like a dropped connection."""

    def __init__(self, prefix: bytes) -> None:
        self._prefix = prefix

    async def __aiter__(self):
        yield self._prefix
        raise httpx.ReadError("connection reset by peer")

    async def aclose(self) -> None:
        pass
