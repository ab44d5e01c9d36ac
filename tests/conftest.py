import pytest

from localrag.config import Settings
from localrag.db import make_engine, make_session_factory
from localrag.db.migrations import init_db
from localrag.embedding import HashingEmbedder
from localrag.services.library_service import LibraryStore


class FakeGenerator:
    """Records calls and returns a canned answer."""

    def __init__(self, answer="fake answer", error=None):
        self.answer = answer
        self.error = error
        self.calls = []

    async def generate(self, query, context):
        self.calls.append((query, context))
        if self.error is not None:
            raise self.error
        return self.answer


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def embedder():
    return HashingEmbedder(dimension=64)


@pytest.fixture
def store(session_factory, embedder):
    return LibraryStore(session_factory, embedder, chunk_size=200)


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        embed_dim=64,
        chunk_size=200,
        top_k=3,
        openai_api_key=None,
        generation_timeout=5.0,
    )


@pytest.fixture
def fake_generator():
    return FakeGenerator()


@pytest.fixture
def generator_factory(fake_generator):
    calls = []

    def factory(settings, model=None, api_key=None):
        calls.append({"model": model, "api_key": api_key})
        return fake_generator

    factory.calls = calls
    return factory
