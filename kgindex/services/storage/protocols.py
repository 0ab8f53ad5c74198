"""Contracts of the persistence collaborators used by the indexer."""

from typing import Any, Protocol

from pydantic import BaseModel, Field


class VectorPoint(BaseModel):
    """One embedded chunk as stored in the vector store."""
    id: str
    vector: list[float]
    payload: dict[str, Any] = Field(default_factory=dict)


class GraphSink(Protocol):
    async def create_entity(self, label: str, properties: dict[str, Any]) -> str:
        """Create an entity and return its id."""
        ...

    async def create_edge(
        self,
        from_id: str,
        to_id: str,
        edge_type: str,
        properties: dict[str, Any],
    ) -> None:
        ...


class VectorSink(Protocol):
    async def upsert_points(self, collection: str, points: list[VectorPoint]) -> int:
        """Store points and return the number of batches written."""
        ...

    async def has_file(self, collection: str, file_path: str) -> bool:
        ...


class Embedder(Protocol):
    async def embed(self, text: str) -> list[float]:
        ...
