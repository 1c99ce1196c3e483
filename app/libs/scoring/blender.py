"""
Composite score blending.

Keyword relevance (from the job store) and semantic similarity (from
embeddings) are fused into the single 0-100 number matches are ranked by.
"""

from app.core.config import settings
from app.utils.rounding import round_half_up


DEFAULT_SEMANTIC_WEIGHT = 0.3

SCORE_MIN = 0
SCORE_MAX = 100


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def blend(
    keyword_score: float,
    semantic_score: float,
    semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT,
) -> int:
    """
    Blend a keyword score with a semantic score.

    ``round(keyword * (1 - weight) + semantic * weight)`` clamped to
    ``[0, 100]``. Weight 0 keeps the keyword score, weight 1 keeps the
    semantic score.

    Args:
        keyword_score: Keyword relevance on a 0-100 scale
        semantic_score: Semantic similarity on a 0-100 scale
        semantic_weight: Share given to the semantic signal, clamped to [0, 1]

    Returns:
        int: Composite score in [0, 100]
    """
    weight = _clamp(float(semantic_weight), 0.0, 1.0)
    composite = float(keyword_score) * (1.0 - weight) + float(semantic_score) * weight
    return int(_clamp(round_half_up(composite), SCORE_MIN, SCORE_MAX))


def configured_weight() -> float:
    """Semantic weight from settings, falling back to the platform default."""
    weight = settings.semantic_weight
    if weight is None:
        return DEFAULT_SEMANTIC_WEIGHT
    return _clamp(weight, 0.0, 1.0)


def score_label(score: float) -> str:
    """Human label for a 0-100 score."""
    if score >= 80:
        return "Excellent Match"
    if score >= 60:
        return "Good Match"
    if score >= 40:
        return "Fair Match"
    return "Low Match"
