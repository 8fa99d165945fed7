"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from toastyou.config import get_settings
from toastyou.database import close_db, get_engine, get_session_factory, init_db
from toastyou.db.base import Base
from toastyou.db.models import Note, User
from toastyou.dependencies import get_redis_dep, get_speech_synthesizer_dep, get_text_generator_dep
from toastyou.gamification.seed import seed_badges
from toastyou.main import create_app
from toastyou.toasts.generation import SpeechSynthesizer, TextGenerator
from toastyou.users.service import create_user


class FakeTextGenerator(TextGenerator):
    """Deterministic text generator; set .error or .delay to simulate failures."""

    def __init__(self, text: str = "Cheers to a week well lived!") -> None:
        self.text = text
        self.error: BaseException | None = None
        self.delay = 0.0
        self.prompts: list[str] = []

    async def generate(self, prompt: str, *, system: str | None = None) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.text


class FakeSpeechSynthesizer(SpeechSynthesizer):
    def __init__(self, url: str | None = "/media/audio/toast-test.mp3") -> None:
        self.url = url
        self.error: BaseException | None = None
        self.calls: list[tuple[str, str | None]] = []

    async def synthesize(self, text: str, voice: str | None = None) -> str | None:
        self.calls.append((text, voice))
        if self.error is not None:
            raise self.error
        return self.url


@pytest_asyncio.fixture
async def database(tmp_path, monkeypatch) -> AsyncGenerator[None, None]:
    """File-backed SQLite database with the full schema, one per test."""
    monkeypatch.setenv("TOAST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'toastyou.db'}")
    monkeypatch.setenv("TOAST_AUDIO_DIR", str(tmp_path / "audio"))
    monkeypatch.setenv("TOAST_LOG_FORMAT", "console")
    monkeypatch.setenv("TOAST_OPENAI_API_KEY", "")
    monkeypatch.setenv("TOAST_ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("TOAST_ELEVENLABS_API_KEY", "")
    get_settings.cache_clear()

    await init_db(get_settings().database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    await close_db()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for service calls and assertions."""
    async with get_session_factory()() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_db(db_session: AsyncSession) -> AsyncSession:
    """DB session with the default badge catalogue seeded."""
    await seed_badges(db_session)
    return db_session


@pytest_asyncio.fixture
async def user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "alice", "Alice Walker", email="alice@example.com")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "bob", "Bob Marley")


@pytest.fixture
def fake_text() -> FakeTextGenerator:
    return FakeTextGenerator()


@pytest.fixture
def fake_speech() -> FakeSpeechSynthesizer:
    return FakeSpeechSynthesizer()


@pytest.fixture
def add_notes(db_session: AsyncSession):
    """Insert notes directly, bypassing activity logging and badge evaluation."""

    async def _add(user_id: int, *times: datetime, content: str = "Walked the dog") -> list[Note]:
        notes = [Note(user_id=user_id, content=f"{content} #{i}", created_at=t) for i, t in enumerate(times)]
        db_session.add_all(notes)
        await db_session.commit()
        return notes

    return _add


@pytest_asyncio.fixture
async def client(
    seeded_db: AsyncSession,
    fake_text: FakeTextGenerator,
    fake_speech: FakeSpeechSynthesizer,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app, with Redis disabled and fake generators."""
    app = create_app()

    async def _no_redis() -> AsyncGenerator[None, None]:
        yield None

    app.dependency_overrides[get_redis_dep] = _no_redis
    app.dependency_overrides[get_text_generator_dep] = lambda: fake_text
    app.dependency_overrides[get_speech_synthesizer_dep] = lambda: fake_speech

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def _bearer(user: User) -> dict[str, str]:
    from toastyou.auth.jwt import create_access_token

    return {"Authorization": f"Bearer {create_access_token(user.id, user.username)}"}


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient, user: User) -> AsyncClient:
    """Client authenticated as `user`."""
    client.headers.update(_bearer(user))
    return client


@pytest.fixture
def bearer():
    """Build an Authorization header for any user."""
    return _bearer
