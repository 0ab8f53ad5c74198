"""Qdrant vector sink over the REST API.

Points are written with ``PUT /collections/{collection}/points`` in batches;
the already-indexed probe scrolls the collection with a ``file_path`` filter.
"""

import httpx

from kgindex.core.config import Settings
from kgindex.services.storage.protocols import VectorPoint
from kgindex.utils.logging import get_logger

logger = get_logger(__name__)


class VectorSinkError(Exception):
    """Raised when a batch of points is not acknowledged."""
    pass


class QdrantVectorSink:
    """VectorSink backed by Qdrant's REST API.

    Args:
        http_client: AsyncClient whose base_url points at Qdrant
        batch_size: Maximum points per request
    """

    def __init__(self, http_client: httpx.AsyncClient, batch_size: int = 100):
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.http_client = http_client
        self.batch_size = batch_size

    @classmethod
    def from_settings(cls, settings: Settings) -> "QdrantVectorSink":
        return cls(
            httpx.AsyncClient(base_url=settings.QDRANT_URL, timeout=60.0),
            batch_size=settings.VECTOR_BATCH_SIZE,
        )

    async def upsert_points(self, collection: str, points: list[VectorPoint]) -> int:
        """Write points in batches of at most ``batch_size``.

        Returns:
            Number of batches written

        Raises:
            VectorSinkError: If a batch fails or is not acknowledged
        """
        batches = 0
        for start in range(0, len(points), self.batch_size):
            batch = points[start:start + self.batch_size]
            try:
                response = await self.http_client.put(
                    f"/collections/{collection}/points",
                    params={"wait": "true"},
                    json={"points": [point.model_dump() for point in batch]},
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise VectorSinkError(f"Batch {batches} failed for collection {collection}: {e}") from e

            if response.json().get("status") != "ok":
                raise VectorSinkError(f"Batch {batches} not acknowledged for collection {collection}")
            batches += 1

        logger.debug(f"Stored {len(points)} points in {batches} batches [collection={collection}]")
        return batches

    async def has_file(self, collection: str, file_path: str) -> bool:
        """True when at least one point carries ``file_path``.

        A missing collection or a failed probe counts as not indexed.
        """
        try:
            response = await self.http_client.post(
                f"/collections/{collection}/points/scroll",
                json={
                    "filter": {"must": [{"key": "file_path", "match": {"value": file_path}}]},
                    "limit": 1,
                    "with_payload": False,
                    "with_vector": False,
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug(f"Indexed-file probe failed for {file_path}: {e}")
            return False

        points = response.json().get("result", {}).get("points", [])
        return len(points) > 0

    async def close(self) -> None:
        await self.http_client.aclose()
