"""Fixtures for exercising the HTTP surface against in-memory services."""

from collections.abc import AsyncIterator

import httpx
import pytest

from recallion.api import dependencies
from recallion.api.auth import create_access_token
from recallion.main import app
from recallion.services.chat_service import ChatService
from recallion.services.retrieval import RetrievalEngine
from recallion.services.review import ReviewPipeline


@pytest.fixture
def services(monkeypatch, store, gateway, memory_service) -> None:
    """Publish services the way the lifespan does, without touching Neo4j."""
    monkeypatch.setattr(dependencies, "memory_service", memory_service)
    monkeypatch.setattr(dependencies, "chat_service", ChatService(RetrievalEngine(store, gateway), gateway))
    monkeypatch.setattr(dependencies, "review_pipeline", ReviewPipeline(store, gateway))


@pytest.fixture
async def client(services) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://recallion.test") as http:
        yield http


@pytest.fixture
def auth_a(owner_a) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(owner_a)}"}


@pytest.fixture
def auth_b(owner_b) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(owner_b)}"}
