"""Shared test fixtures for the Recallion test suite."""

from collections.abc import Iterator

import pytest
from pydantic import SecretStr

from recallion.core.config import settings
from recallion.infrastructure.memory import InMemoryMemoryStore
from recallion.services.enrichment import EnrichmentPipeline
from recallion.services.memory_service import MemoryService
from recallion.services.tasks import EnrichmentTaskQueue
from tests.fakes import FakeGateway

TEST_JWT_SECRET = "test-secret-for-recallion"


@pytest.fixture(autouse=True)
def jwt_secret() -> Iterator[str]:
    """Sign and verify test tokens with a known secret."""
    original = settings.jwt_secret
    settings.jwt_secret = SecretStr(TEST_JWT_SECRET)
    yield TEST_JWT_SECRET
    settings.jwt_secret = original


@pytest.fixture
def owner_a() -> str:
    return "user-a"


@pytest.fixture
def owner_b() -> str:
    return "user-b"


@pytest.fixture
def store() -> InMemoryMemoryStore:
    return InMemoryMemoryStore()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def pipeline(store: InMemoryMemoryStore, gateway: FakeGateway) -> EnrichmentPipeline:
    return EnrichmentPipeline(store, gateway)


@pytest.fixture
def queue(pipeline: EnrichmentPipeline) -> EnrichmentTaskQueue:
    return EnrichmentTaskQueue(pipeline)


@pytest.fixture
def memory_service(store: InMemoryMemoryStore, queue: EnrichmentTaskQueue) -> MemoryService:
    return MemoryService(store, queue)
