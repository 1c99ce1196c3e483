import asyncio
from typing import List, Optional, Protocol, Union

from openai import OpenAI

from app.core.config import settings
from app.log.logging import logger
from app.tasks.search_store import ProfileStore


class EmbeddingError(Exception):
    """Raised when the embedding backend fails."""


class EmbeddingUnavailable(EmbeddingError):
    """No embedding backend is configured. Callers degrade instead of failing."""


class TextEmbedder:
    """A class to convert text into embeddings using an OpenAI compatible API."""

    def __init__(
        self,
        model: str = settings.text_embedder_model,
        api_key: str = settings.text_embedder_api_key,
        base_url: str = settings.text_embedder_base_url
    ):
        """
        Initialize the TextEmbedder.
        Args:
            model: The model to use for embeddings
            api_key: API token. Falls back to TEXT_EMBEDDER_API_KEY
            base_url: The base URL for the embeddings API
        """
        self.model = model
        self.api_key = api_key
        if not self.api_key:
            raise EmbeddingUnavailable("Embedding API key is not configured")

        self.client = OpenAI(
            api_key=self.api_key,
            base_url=base_url
        )

    def get_embeddings(self, text: Union[str, List[str]]) -> List[List[float]]:
        """
        Convert text into embeddings.
        Args:
            text: Either a single string or a list of strings to convert
        Returns:
            A list of embeddings, where each embedding is a list of floats
        """
        try:
            response = self.client.embeddings.create(
                model=self.model,
                input=text,
                encoding_format="float"
            )
            return [data.embedding for data in response.data]
        except Exception as e:
            raise EmbeddingError(f"Failed to generate embeddings: {str(e)}") from e

    async def embed(self, text: str) -> List[float]:
        """Embed a single text without blocking the event loop."""
        embeddings = await asyncio.to_thread(self.get_embeddings, text)
        if not embeddings:
            raise EmbeddingError("Embedding backend returned no vectors")
        return embeddings[0]


class EmbeddingProvider(Protocol):
    async def get_cv_embedding(self, user_id: str, cv_id: str) -> Optional[List[float]]:
        ...

    async def embed(self, text: str) -> List[float]:
        ...


class ProfileEmbeddingProvider:
    """
    Embedding provider backed by the profile store.

    CV vectors come from ``cv-parsed`` callbacks; job descriptions are embedded
    on demand when a ``TextEmbedder`` can be built.
    """

    def __init__(self, embedder: Optional[TextEmbedder] = None):
        self._embedder = embedder

    def _get_embedder(self) -> TextEmbedder:
        if self._embedder is None:
            self._embedder = TextEmbedder(
                model=settings.text_embedder_model,
                api_key=settings.text_embedder_api_key,
                base_url=settings.text_embedder_base_url,
            )
        return self._embedder

    async def get_cv_embedding(self, user_id: str, cv_id: str) -> Optional[List[float]]:
        profile = await ProfileStore.get_profile(user_id)
        if profile is None or profile.cv_id != cv_id:
            return None
        return list(profile.embedding) if profile.embedding else None

    async def embed(self, text: str) -> List[float]:
        try:
            embedder = self._get_embedder()
        except EmbeddingUnavailable:
            logger.debug("Text embedder not configured")
            raise
        return await embedder.embed(text)


embedding_provider = ProfileEmbeddingProvider()
