"""
Similarity functions used by semantic re-ranking.
"""

from typing import Dict, Mapping, Sequence, Set

import numpy as np


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 for empty vectors, zero-magnitude vectors or vectors of
    different length.
    """
    if a is None or b is None or len(a) == 0 or len(b) == 0 or len(a) != len(b):
        return 0.0

    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    magnitude = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if magnitude == 0.0:
        return 0.0
    return float(np.dot(va, vb) / magnitude)


def _words(text: str) -> Set[str]:
    return {w for w in text.lower().split() if len(w) > 2}


def lexical_overlap(query: str, description: str) -> float:
    """Share of the query's words (longer than two characters) found in the description."""
    if not query or not description:
        return 0.0
    query_words = _words(query)
    if not query_words:
        return 0.0
    return len(query_words & _words(description)) / len(query_words)


def lexical_overlap_scores(descriptions: Mapping[str, str], query: str) -> Dict[str, float]:
    """
    Fallback similarity for a batch of descriptions.

    Args:
        descriptions: Match id -> description text
        query: The search query string

    Returns:
        Dict[str, float]: Match id -> score in [0, 1]
    """
    return {match_id: lexical_overlap(query, text) for match_id, text in descriptions.items()}
