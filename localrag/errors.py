"""
Exception taxonomy shared by the store, the retrieval pipeline and the API.

Every error raised on purpose by this package derives from LocalRagError so
the HTTP layer can map it to a status code in one place.
"""


class LocalRagError(Exception):
    """Base class for all errors raised by localrag."""


class UnsupportedFormat(LocalRagError):
    """The uploaded file type cannot be turned into text."""


class EmbeddingFailure(LocalRagError):
    """Text could not be converted into a vector."""


class DimensionMismatch(EmbeddingFailure):
    """Two vectors of different non-zero length were compared."""

    def __init__(self, left: int, right: int):
        super().__init__(f"Vector dimensions differ: {left} != {right}")
        self.left = left
        self.right = right


class EmbedderMismatch(EmbeddingFailure):
    """Stored vectors were produced by a different embedder or dimension."""

    def __init__(self, stored: str, active: str):
        super().__init__(
            f"Store was embedded with '{stored}' but the active embedder is '{active}'. "
            "Re-embed the library or restore the previous embedder."
        )
        self.stored = stored
        self.active = active


class StorageFailure(LocalRagError):
    """The storage layer failed (I/O, quota, corruption)."""


class NotFound(LocalRagError):
    """A collection or document id does not exist."""

    def __init__(self, kind: str, ident: str):
        super().__init__(f"{kind} {ident} not found")
        self.kind = kind
        self.ident = ident


class AnswerGenerationFailure(LocalRagError):
    """The language model call failed."""


class AuthError(AnswerGenerationFailure):
    """Missing or rejected API credentials."""


class RateLimited(AnswerGenerationFailure):
    """The provider refused the request because of rate limits."""


class TransportError(AnswerGenerationFailure):
    """Network or protocol failure talking to the provider."""


class GenerationTimeout(TransportError):
    """The provider did not answer within the allowed time."""
