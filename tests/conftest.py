"""
Global test configuration and fixtures for indexer tests.

Provides a temporary project tree builder and in-memory collaborators
(boundary advisor, embedder, vector and graph sinks) used across modules.
"""

from pathlib import Path
from typing import Any, Callable

import pytest

from kgindex.chunking import BoundaryAdvice
from kgindex.services.storage import VectorPoint


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[[dict[str, str | bytes]], Path]:
    """Write a {relative path: content} mapping below tmp_path and return the root."""

    def _make(files: dict[str, str | bytes]) -> Path:
        for relative, content in files.items():
            target = tmp_path / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                target.write_bytes(content)
            else:
                target.write_text(content, encoding="utf-8")
        return tmp_path

    return _make


class StaticAdvisor:
    """Boundary advisor that always answers with the same offsets."""

    def __init__(self, boundaries: list[int] | None = None, reason: str | None = None):
        self.boundaries = boundaries
        self.reason = reason
        self.calls: list[tuple[str, str, str]] = []

    async def advise(self, text_preview, file_category, file_name) -> BoundaryAdvice:
        self.calls.append((text_preview, str(file_category), file_name))
        if self.boundaries is None:
            return BoundaryAdvice.unavailable(self.reason or "unavailable")
        return BoundaryAdvice(boundaries=self.boundaries)


class FakeEmbedder:
    """Embedder returning a fixed-size vector; texts in ``fail_on`` raise."""

    def __init__(self, dimensions: int = 4, fail_on: Callable[[str], bool] | None = None):
        self.dimensions = dimensions
        self.fail_on = fail_on
        self.texts: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.texts.append(text)
        if self.fail_on is not None and self.fail_on(text):
            raise RuntimeError("embedding service unavailable")
        return [float(len(text) % 7)] * self.dimensions


class InMemoryVectorSink:
    def __init__(self, indexed_files: set[str] | None = None):
        self.points: list[VectorPoint] = []
        self.indexed_files = set(indexed_files or ())

    async def upsert_points(self, collection: str, points: list[VectorPoint]) -> int:
        self.points.extend(points)
        return 1

    async def has_file(self, collection: str, file_path: str) -> bool:
        return file_path in self.indexed_files


class InMemoryGraphSink:
    def __init__(self):
        self.entities: dict[str, tuple[str, dict[str, Any]]] = {}
        self.edges: list[tuple[str, str, str, dict[str, Any]]] = []

    async def create_entity(self, label: str, properties: dict[str, Any]) -> str:
        entity_id = f"e{len(self.entities)}"
        self.entities[entity_id] = (label, dict(properties))
        return entity_id

    async def create_edge(self, from_id, to_id, edge_type, properties) -> None:
        assert from_id in self.entities and to_id in self.entities
        self.edges.append((from_id, to_id, edge_type, dict(properties)))

    def labelled(self, label: str) -> list[dict[str, Any]]:
        return [props for kind, props in self.entities.values() if kind == label]

    def edges_of(self, edge_type: str) -> list[tuple[str, str, str, dict[str, Any]]]:
        return [edge for edge in self.edges if edge[2] == edge_type]


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def vector_sink() -> InMemoryVectorSink:
    return InMemoryVectorSink()


@pytest.fixture
def graph_sink() -> InMemoryGraphSink:
    return InMemoryGraphSink()


@pytest.fixture
def static_advisor() -> type[StaticAdvisor]:
    """The StaticAdvisor class, for tests that need specific offsets."""
    return StaticAdvisor


@pytest.fixture
def fake_embedder_cls() -> type[FakeEmbedder]:
    return FakeEmbedder


@pytest.fixture
def vector_sink_cls() -> type[InMemoryVectorSink]:
    return InMemoryVectorSink
