"""Pytest configuration and fixtures."""

import os

# Required settings must exist before the app (and its settings) are imported
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id.apps.googleusercontent.com")
os.environ.setdefault("ANTHROPIC_API_KEY", "")

from collections.abc import AsyncGenerator
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_current_user, get_generative_provider, get_note_store
from app.db.models import User
from app.main import app
from app.services.retriever import NoteSource


class FakeProvider:
    """Generative provider returning canned text and recording every call."""

    def __init__(self, response: str = "", error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls: list[tuple[str, list[dict]]] = []

    async def complete(self, system_prompt: str, messages: list[dict]) -> str:
        self.calls.append((system_prompt, messages))
        if self.error is not None:
            raise self.error
        return self.response


class FakeNoteStore:
    """In-memory NoteStore keyed by (user_id, folder_id)."""

    def __init__(self):
        self.folders: dict[tuple[UUID, UUID], SimpleNamespace] = {}
        self.notes: dict[tuple[UUID, UUID], list[NoteSource]] = {}

    def add_folder(self, user_id: UUID, name: str, notes: list[NoteSource] = ()) -> UUID:
        folder_id = uuid4()
        self.folders[(user_id, folder_id)] = SimpleNamespace(id=folder_id, name=name)
        self.notes[(user_id, folder_id)] = list(notes)
        return folder_id

    async def get_folder(self, user_id: UUID, folder_id: UUID):
        return self.folders.get((user_id, folder_id))

    async def fetch_notes_by_folder(self, user_id: UUID, folder_id: UUID) -> list[NoteSource]:
        return list(self.notes.get((user_id, folder_id), []))


@pytest.fixture
def user() -> User:
    return User(id=uuid4(), email="student@example.com", name="Test Student")


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def note_store() -> FakeNoteStore:
    return FakeNoteStore()


@pytest.fixture
async def client(
    user: User,
    fake_provider: FakeProvider,
    note_store: FakeNoteStore,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client with auth, provider and note store overridden."""
    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[get_generative_provider] = lambda: fake_provider
    app.dependency_overrides[get_note_store] = lambda: note_store
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def without_provider(client: AsyncClient) -> None:
    """Simulate a deployment with no ANTHROPIC_API_KEY."""
    app.dependency_overrides[get_generative_provider] = lambda: None
