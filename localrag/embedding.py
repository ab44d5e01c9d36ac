import re
from typing import List, Optional, Protocol

import numpy as np

from .config import Settings
from .errors import EmbeddingFailure
from .logging_config import logger

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193
_TOKEN_SPLIT = re.compile(r"[\W_]+")


class Embedder(Protocol):
    """Anything that maps text to a fixed-length vector."""

    name: str
    dimension: int

    def embed(self, text: str) -> List[float]:
        ...

    def embed_many(self, texts: List[str]) -> List[List[float]]:
        ...


def fnv1a_32(data: bytes) -> int:
    h = FNV_OFFSET_BASIS
    for byte in data:
        h ^= byte
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return h


def tokenize(text: str) -> List[str]:
    """Lowercase and split on runs of non-alphanumeric characters."""
    return [t for t in _TOKEN_SPLIT.split(text.lower()) if t]


class HashingEmbedder:
    """
    Deterministic signed feature-hashing embedder.

    Each token is hashed with 32-bit FNV-1a over its UTF-8 bytes; the hash
    picks a slot (hash mod dimension) and its low bit picks the sign. The
    result is L2-normalized, except that an all-zero vector is returned as is.
    No model, no state beyond (dimension, max_chars).
    """

    version = "fnv1a-signed-v1"

    def __init__(self, dimension: int = 128, max_chars: int = 20000):
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self.dimension = dimension
        self.max_chars = max_chars
        self.name = f"{self.version}/{dimension}"

    def vector(self, text: str) -> np.ndarray:
        vec = np.zeros(self.dimension, dtype=np.float64)
        for token in tokenize(text[: self.max_chars]):
            h = fnv1a_32(token.encode("utf-8"))
            vec[h % self.dimension] += 1.0 if h & 1 else -1.0

        norm = np.linalg.norm(vec)
        if norm == 0:
            return vec
        return vec / norm

    def embed(self, text: str) -> List[float]:
        return self.vector(text).tolist()

    def embed_many(self, texts: List[str]) -> List[List[float]]:
        return [self.embed(t) for t in texts]


class SentenceTransformerEmbedder:
    """
    Model-backed embedder behind the same interface.

    The model is loaded on first use and kept for the life of the process.
    Requires the optional `sentence-transformers` dependency.
    """

    def __init__(self, model_name: str, model=None):
        self.model_name = model_name
        self.name = f"st/{model_name}"
        self._model = model
        self._dimension: Optional[int] = None

    def preload(self):
        """Load the model and warm it up to avoid first-request delay."""
        if self._model is None:
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError as e:
                raise EmbeddingFailure(
                    "sentence-transformers is not installed; install localrag[models]"
                ) from e
            logger.info("Loading embedding model", model=self.model_name)
            self._model = SentenceTransformer(
                self.model_name,
                tokenizer_kwargs={"clean_up_tokenization_spaces": False},
            )
            logger.info("Embedding model loaded", model=self.model_name)
        return self._model

    @property
    def dimension(self) -> int:
        if self._dimension is None:
            self._dimension = len(self.embed("dimension probe"))
        return self._dimension

    def embed_many(self, texts: List[str]) -> List[List[float]]:
        model = self.preload()
        try:
            vecs = model.encode(texts, normalize_embeddings=True, show_progress_bar=False)
        except Exception as e:
            raise EmbeddingFailure(f"Embedding model {self.model_name} failed: {e}") from e
        return np.asarray(vecs, dtype=np.float64).tolist()

    def embed(self, text: str) -> List[float]:
        return self.embed_many([text])[0]


def build_embedder(settings: Settings) -> Embedder:
    if settings.embedder == "hashing":
        return HashingEmbedder(settings.embed_dim, settings.embed_max_chars)
    if settings.embedder == "sentence-transformers":
        return SentenceTransformerEmbedder(settings.embed_model)
    raise ValueError(f"Unknown embedder: {settings.embedder}")
