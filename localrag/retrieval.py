from typing import Any, List, Sequence, Tuple
from time import perf_counter

import numpy as np

from .errors import DimensionMismatch
from .logging_config import logger


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Empty vectors and zero-norm vectors score 0 instead of NaN. Vectors of
    different non-zero length raise DimensionMismatch.
    """
    if len(a) == 0 or len(b) == 0:
        return 0.0
    if len(a) != len(b):
        raise DimensionMismatch(len(a), len(b))

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denom = np.linalg.norm(va) * np.linalg.norm(vb)
    if denom == 0:
        return 0.0
    return float(np.dot(va, vb) / denom)


def rank(
    query: Sequence[float],
    candidates: Sequence[Tuple[Sequence[float], Any]],
    k: int,
) -> List[Tuple[Any, float]]:
    """
    Brute-force top-k ranking of (vector, payload) candidates.

    Parameters:
    query: The query vector.
    candidates: (vector, payload) pairs, in insertion order.
    k: Maximum number of results.

    Returns:
    (payload, score) pairs by descending score. The sort is stable, so tied
    candidates keep their input order.
    """
    t = perf_counter()
    scored = [(payload, cosine_similarity(query, vector)) for vector, payload in candidates]
    scored.sort(key=lambda item: item[1], reverse=True)
    top = scored[: max(k, 0)]
    logger.debug(
        "Ranked candidates",
        candidates=len(scored),
        returned=len(top),
        elapsed_ms=round((perf_counter() - t) * 1000, 2),
    )
    return top
