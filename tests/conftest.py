"""
Shared test fixtures and configuration for entire test suite.

Provides: Async SQLite databases, work note factories, deterministic
embedding providers, FAISS vector indexes and retry queue settings
Dependencies: pytest, pytest_asyncio, sqlalchemy, langchain_core
System role: Test infrastructure and fixture management
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def test_async_db():
    """
    Create in-memory SQLite async database for testing.

    Yields:
        AsyncSession: Test database session with cleanup (lazy imported to avoid settings issues)
    """
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
    from sqlalchemy.pool import StaticPool

    from worknote.boundary.db.base import Base
    from worknote.boundary.db.connection import enable_sqlite_savepoints

    # Use SQLite in-memory database for tests
    engine = enable_sqlite_savepoints(
        create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Create session factory
    async_session = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    # Create session for test
    async with async_session() as session:
        yield session
        await session.rollback()

    # Cleanup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """
    Session factory over a file-backed SQLite database.

    Every session gets its own connection, so code that opens several
    sessions (the retry sweeper) sees committed data only.

    Yields:
        async_sessionmaker: Factory bound to a fresh schema
    """
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

    from worknote.boundary.db.base import Base
    from worknote.boundary.db.connection import enable_sqlite_savepoints

    engine = enable_sqlite_savepoints(
        create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'worknote_test.db'}")
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


async def add_work_note(
    session,
    work_id: str,
    title: str,
    content: str = "",
    category: str | None = None,
    project_id: str | None = None,
    updated_at: datetime | None = None,
):
    """Insert and commit one work note."""
    from worknote.boundary.db.models.work_note_model import WorkNoteModel

    note = WorkNoteModel(
        work_id=work_id,
        title=title,
        content_raw=content,
        category=category,
        project_id=project_id,
    )
    if updated_at is not None:
        note.created_at = updated_at
        note.updated_at = updated_at
    session.add(note)
    await session.commit()
    return note


@pytest.fixture
def work_note_factory():
    """Provide the add_work_note helper."""
    return add_work_note


@pytest.fixture
def embedding_dimension() -> int:
    """Small vector dimension keeping FAISS tests fast."""
    return 8


@pytest.fixture
def embedding_provider(embedding_dimension):
    """
    Deterministic embedding provider.

    Returns:
        LangChainEmbeddingProvider: Hash-based vectors, same text -> same vector
    """
    from langchain_core.embeddings import DeterministicFakeEmbedding

    from worknote.boundary.embeddings.provider import LangChainEmbeddingProvider

    return LangChainEmbeddingProvider(
        embeddings=DeterministicFakeEmbedding(size=embedding_dimension),
        timeout_seconds=5.0,
        dimension=embedding_dimension,
    )


@pytest.fixture
def failing_embedding_provider():
    """
    Embedding provider whose every call fails transiently.

    Returns:
        AsyncMock: Provider raising TransientProviderError
    """
    from worknote.core.exceptions import TransientProviderError

    provider = AsyncMock()
    provider.embed = AsyncMock(side_effect=TransientProviderError("provider unavailable"))
    provider.embed_batch = AsyncMock(side_effect=TransientProviderError("provider unavailable"))
    return provider


@pytest.fixture
def faiss_index(embedding_dimension):
    """In-memory FAISS vector index."""
    from worknote.boundary.vdb.faiss_vector_index import FAISSVectorIndex

    return FAISSVectorIndex(dimension=embedding_dimension)


@pytest.fixture
def chunker():
    """Chunker with a small window so multi-chunk content stays short."""
    from worknote.configs.chunking import ChunkingSettings
    from worknote.core.chunker import TextChunker

    return TextChunker(ChunkingSettings(chunk_size_tokens=25, overlap_ratio=0.2, chars_per_token=4))


@pytest.fixture
def retry_settings():
    """
    Retry policy used by queue tests.

    Returns:
        RetryQueueSettings: 3 attempts, 2s backoff base, single worker
    """
    from worknote.configs.retry_queue import RetryQueueSettings

    return RetryQueueSettings(
        max_attempts=3,
        backoff_base_seconds=2.0,
        backoff_max_seconds=3600.0,
        batch_size=10,
        max_concurrency=1,
        sweeper_enabled=False,
    )


class FrozenClock:
    """Manually advanced clock for backoff tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def frozen_clock() -> FrozenClock:
    """Provide a FrozenClock starting at a fixed instant."""
    return FrozenClock()
