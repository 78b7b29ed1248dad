import hashlib
from typing import List, Sequence

import fakeredis
import mongomock
import pytest
from fastapi.testclient import TestClient

from app.core.config import LLMConfig, MongoConfig, Settings
from app.core.container import build_container
from app.core.errors import TransientDependencyError
from app.core.llm import ModelClient
from app.main import create_app

DIMENSIONS = 8


class FakeModelClient(ModelClient):
    """Deterministic stand-in for the embedding and chat model"""

    def __init__(self):
        super().__init__(config=LLMConfig(EMBEDDING_DIMENSIONS=DIMENSIONS, MAX_RETRIES=0))
        self.embed_calls: List[str] = []
        self.generate_calls: List[tuple] = []
        self.fail_embed = False
        self.fail_generate = False

    def embed(self, text: str) -> List[float]:
        self.embed_calls.append(text)
        if self.fail_embed:
            raise TransientDependencyError("embedding model down")
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [b / 255.0 + 0.01 for b in digest[:DIMENSIONS]]

    def generate(self, question: str, context: Sequence[str]) -> str:
        self.generate_calls.append((question, list(context)))
        if self.fail_generate:
            raise TransientDependencyError("chat model down")
        return f"answer to {question!r} from {len(context)} events"


@pytest.fixture
def settings():
    return Settings(
        INGEST_RATE_LIMIT=1000,
        READ_RATE_LIMIT=1000,
        EMBEDDING_WORKERS=2,
        EMBEDDING_MAX_BACKLOG=100,
    )


@pytest.fixture
def model():
    return FakeModelClient()


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def container(settings, model, redis_client):
    c = build_container(
        mongo_client=mongomock.MongoClient(),
        redis_client=redis_client,
        model=model,
        settings=settings,
        mongo_config=MongoConfig(USE_TRANSACTIONS=False),
    )
    c.ensure_indexes()
    yield c
    c.close()


@pytest.fixture
def client(container):
    return TestClient(create_app(container))


def _session_headers(container, email, roles):
    user = container.users.create_user(email, roles=roles)
    token = container.users.create_session(user["_id"])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def viewer_headers(container):
    return _session_headers(container, "viewer@example.com", ["viewer"])


@pytest.fixture
def admin_headers(container):
    return _session_headers(container, "admin@example.com", ["admin", "viewer"])
