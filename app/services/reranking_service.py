"""
Semantic re-ranking of the matches of a search.

Each match gets a semantic score in [0, 1] and a composite score blending it
with the keyword score. The semantic signal comes from embeddings when the
user's latest CV has a vector, and from lexical overlap with the query
otherwise. Missing embeddings are a degraded mode, never an error.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from app.core.config import settings
from app.log.logging import logger
from app.libs.scoring.blender import blend, configured_weight
from app.libs.scoring.similarity import cosine_similarity, lexical_overlap_scores
from app.libs.text_embedder import (
    EmbeddingError,
    EmbeddingProvider,
    EmbeddingUnavailable,
    embedding_provider,
)
from app.schemas.job_match import JobMatch
from app.tasks.search_store import ProfileStore, SearchStore
from app.utils.performance import performance_log


METHOD_EMBEDDING = "embedding"
METHOD_FALLBACK = "fallback"
METHOD_UNCHANGED = "unchanged"


@dataclass
class RerankResult:
    method: str = METHOD_UNCHANGED
    updated: int = 0
    scores: Dict[str, int] = field(default_factory=dict)


class SemanticRanker:
    """Re-ranks stored matches with a semantic signal."""

    def __init__(
        self,
        provider: EmbeddingProvider = embedding_provider,
        semantic_weight: Optional[float] = None,
    ):
        self.provider = provider
        self.semantic_weight = configured_weight() if semantic_weight is None else semantic_weight

    async def _candidate_vector(self, user_id: str) -> Optional[List[float]]:
        profile = await ProfileStore.get_profile(user_id)
        if profile is None:
            return None
        try:
            return await self.provider.get_cv_embedding(user_id, profile.cv_id)
        except EmbeddingError as e:
            logger.info("CV embedding unavailable", user_id=user_id, error=str(e))
            return None

    async def _embedding_scores(
        self, candidate: List[float], matches: List[JobMatch]
    ) -> Optional[Dict[str, float]]:
        """Cosine score per match, or None when no embedding backend is configured."""
        scores = {}
        for match in matches:
            if not match.description:
                scores[match.id] = 0.0
                continue
            try:
                vector = await self.provider.embed(match.description)
            except EmbeddingUnavailable as e:
                logger.info("Job embeddings unavailable", error=str(e))
                return None
            except EmbeddingError as e:
                logger.debug("Job embedding failed", match_id=match.id, error=str(e))
                scores[match.id] = 0.0
                continue
            # Stored semantic scores live in [0, 1]
            scores[match.id] = max(0.0, min(1.0, cosine_similarity(candidate, vector)))
        return scores

    @performance_log
    async def rank(
        self,
        search_id: str,
        query: Optional[str] = None,
        user_id: str = settings.default_user_id,
    ) -> RerankResult:
        """
        Score and persist the matches of a search.

        Args:
            search_id: Search whose matches are re-ranked
            query: Query used by the lexical fallback
            user_id: Owner of the CV used as the candidate vector

        Returns:
            RerankResult: method tag, number of updated matches and the
            composite score of each match
        """
        matches = await SearchStore.list_matches(search_id=search_id)
        if not matches:
            return RerankResult()

        semantic: Optional[Dict[str, float]] = None
        method = METHOD_UNCHANGED

        candidate = await self._candidate_vector(user_id)
        if candidate:
            semantic = await self._embedding_scores(candidate, matches)
            if semantic is not None:
                method = METHOD_EMBEDDING

        if semantic is None and query:
            semantic = lexical_overlap_scores(
                {m.id: m.description or "" for m in matches}, query
            )
            method = METHOD_FALLBACK

        if semantic is None:
            logger.info("No semantic signal available", search_id=search_id)
            return RerankResult()

        result = RerankResult(method=method)
        for match in matches:
            score = semantic.get(match.id, 0.0)
            composite = blend(match.keyword_score, score * 100, self.semantic_weight)
            if await SearchStore.update_match_scores(match.id, score, composite):
                result.updated += 1
                result.scores[match.id] = composite

        logger.info(
            "Matches re-ranked",
            search_id=search_id,
            method=method,
            updated=result.updated,
        )
        return result


semantic_ranker = SemanticRanker()
