import math

import pytest

from localrag.config import Settings
from localrag.embedding import (
    HashingEmbedder,
    SentenceTransformerEmbedder,
    build_embedder,
    fnv1a_32,
    tokenize,
)
from localrag.errors import EmbeddingFailure


def _norm(vec):
    return math.sqrt(sum(v * v for v in vec))


def test_fnv1a_reference_values():
    assert fnv1a_32(b"") == 0x811C9DC5
    assert fnv1a_32(b"a") == 0xE40C292C
    assert fnv1a_32(b"foobar") == 0xBF9CF968


def test_tokenize_lowercases_and_splits_on_non_alphanumerics():
    assert tokenize("Hello, World! foo_bar  42") == ["hello", "world", "foo", "bar", "42"]
    assert tokenize("  ...  ") == []


def test_embed_has_configured_dimension():
    assert len(HashingEmbedder(dimension=32).embed("some text here")) == 32


def test_embed_is_deterministic():
    a = HashingEmbedder(64)
    b = HashingEmbedder(64)
    text = "The quick brown fox jumps over the lazy dog."
    assert a.embed(text) == a.embed(text) == b.embed(text)


@pytest.mark.parametrize("text", [
    "hello",
    "The cat sat. The dog ran.",
    "Numbers 1 2 3 and words, mixed UP together!",
    "ünïcödé wörds are tokens too",
])
def test_embed_is_unit_length(text):
    assert abs(_norm(HashingEmbedder(64).embed(text)) - 1.0) < 1e-6


@pytest.mark.parametrize("text", ["", "   ", "!!! ??? ..."])
def test_embed_without_tokens_is_zero_vector(text):
    vec = HashingEmbedder(16).embed(text)
    assert vec == [0.0] * 16


def test_single_token_uses_signed_slot():
    dim = 64
    h = fnv1a_32(b"cat")
    vec = HashingEmbedder(dim).embed("Cat")

    expected_sign = 1.0 if h & 1 else -1.0
    nonzero = [i for i, v in enumerate(vec) if v != 0]
    assert nonzero == [h % dim]
    assert vec[h % dim] == expected_sign


def test_repeated_tokens_accumulate_before_normalizing():
    embedder = HashingEmbedder(64)
    assert embedder.embed("cat cat cat") == embedder.embed("cat")


def test_input_is_truncated_to_prefix():
    embedder = HashingEmbedder(64, max_chars=5)
    assert embedder.embed("hello world") == embedder.embed("hello")


def test_embed_many_matches_embed():
    embedder = HashingEmbedder(32)
    texts = ["one", "two three"]
    assert embedder.embed_many(texts) == [embedder.embed(t) for t in texts]


def test_name_encodes_version_and_dimension():
    assert HashingEmbedder(128).name == "fnv1a-signed-v1/128"


def test_invalid_dimension_rejected():
    with pytest.raises(ValueError):
        HashingEmbedder(0)


class _FakeModel:
    def __init__(self, fail=False):
        self.fail = fail

    def encode(self, texts, normalize_embeddings=True, show_progress_bar=False):
        if self.fail:
            raise RuntimeError("model crashed")
        return [[1.0, 0.0, 0.0] for _ in texts]


def test_sentence_transformer_embedder_uses_injected_model():
    embedder = SentenceTransformerEmbedder("fake-model", model=_FakeModel())
    assert embedder.embed("x") == [1.0, 0.0, 0.0]
    assert embedder.dimension == 3
    assert embedder.name == "st/fake-model"


def test_sentence_transformer_failures_are_embedding_failures():
    embedder = SentenceTransformerEmbedder("fake-model", model=_FakeModel(fail=True))
    with pytest.raises(EmbeddingFailure):
        embedder.embed("x")


def test_build_embedder_from_settings():
    embedder = build_embedder(Settings(embedder="hashing", embed_dim=48))
    assert isinstance(embedder, HashingEmbedder)
    assert embedder.dimension == 48

    assert isinstance(build_embedder(Settings(embedder="sentence-transformers")), SentenceTransformerEmbedder)

    with pytest.raises(ValueError):
        build_embedder(Settings(embedder="nope"))
