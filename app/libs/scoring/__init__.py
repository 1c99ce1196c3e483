"""
Composite score blending and similarity helpers.
"""

from app.libs.scoring.blender import DEFAULT_SEMANTIC_WEIGHT, blend, configured_weight, score_label
from app.libs.scoring.similarity import cosine_similarity, lexical_overlap, lexical_overlap_scores

__all__ = [
    "DEFAULT_SEMANTIC_WEIGHT",
    "blend",
    "configured_weight",
    "score_label",
    "cosine_similarity",
    "lexical_overlap",
    "lexical_overlap_scores",
]
