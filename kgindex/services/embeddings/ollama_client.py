"""Ollama embedding client.

Calls ``POST /api/embeddings`` with ``{"model", "prompt"}`` and returns the
embedding vector. The HTTP client is injected; ``from_settings`` builds one
for callers that do not manage their own.
"""

import httpx
from pydantic import BaseModel, ValidationError

from kgindex.core.config import Settings
from kgindex.utils.logging import get_logger

logger = get_logger(__name__)


class EmbeddingError(Exception):
    """Raised when the embedding service does not return a usable vector."""
    pass


class EmbeddingResponse(BaseModel):
    embedding: list[float]


class OllamaEmbeddingClient:
    """Embedding client for a local Ollama server.

    Args:
        http_client: AsyncClient whose base_url points at the Ollama host
        model: Embedding model name
        dimensions: Expected vector length; None disables the check
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        model: str = "nomic-embed-text",
        dimensions: int | None = 768,
    ):
        self.http_client = http_client
        self.model = model
        self.dimensions = dimensions

    @classmethod
    def from_settings(cls, settings: Settings) -> "OllamaEmbeddingClient":
        http_client = httpx.AsyncClient(
            base_url=settings.OLLAMA_HOST,
            timeout=settings.EMBEDDING_TIMEOUT_SECONDS,
        )
        return cls(
            http_client,
            model=settings.EMBEDDING_MODEL,
            dimensions=settings.EMBEDDING_DIMENSIONS,
        )

    async def embed(self, text: str) -> list[float]:
        """Embed one text.

        Args:
            text: Text to embed

        Returns:
            The embedding vector

        Raises:
            EmbeddingError: On transport errors, error statuses, a missing
                or empty embedding, or a vector of the wrong length
        """
        try:
            response = await self.http_client.post(
                "/api/embeddings",
                json={"model": self.model, "prompt": text},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise EmbeddingError(f"Ollama embedding request failed: {e}") from e

        try:
            parsed = EmbeddingResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise EmbeddingError("No embedding returned from Ollama") from e

        if not parsed.embedding:
            raise EmbeddingError("No embedding returned from Ollama")
        if self.dimensions is not None and len(parsed.embedding) != self.dimensions:
            raise EmbeddingError(
                f"Expected {self.dimensions}-dimensional embedding, got {len(parsed.embedding)}"
            )
        return parsed.embedding

    async def close(self) -> None:
        await self.http_client.aclose()
