"""
Utility helper functions.
"""
import math
from typing import Dict, Iterable, List, Tuple


def score_to_percent(score: float) -> int:
    """Similarity score as an integer percentage, rounding halves up."""
    return int(math.floor(score * 100 + 0.5))


def aggregate_sources(hits: Iterable[Tuple[str, float]]) -> List[Dict]:
    """
    Collapse retrieved chunks into one entry per source document.

    For each document name the highest chunk score is kept (not the sum or
    the count) and reported as an integer percentage.

    Args:
        hits: (document_name, score) pairs

    Returns:
        List of {"name": ..., "score": <int percent>} in first-seen order

    Example:
        >>> aggregate_sources([("a.txt", 0.8), ("a.txt", 0.6), ("b.md", 0.7)])
        [{'name': 'a.txt', 'score': 80}, {'name': 'b.md', 'score': 70}]
    """
    best: Dict[str, float] = {}
    for name, score in hits:
        score = float(score)
        if name not in best or score > best[name]:
            best[name] = score

    return [{"name": name, "score": score_to_percent(score)} for name, score in best.items()]


def preview(text: str, limit: int = 200) -> str:
    """First `limit` characters of a chunk, with an ellipsis when cut."""
    head = text[:limit].strip()
    if len(text) > limit:
        head += "..."
    return head
