"""Persistence sinks for entities, edges and embedded chunks."""

from .neo4j_sink import GraphSinkError, Neo4jGraphSink
from .protocols import GraphSink, VectorPoint, VectorSink
from .qdrant_sink import QdrantVectorSink, VectorSinkError

__all__ = [
    "GraphSink",
    "GraphSinkError",
    "Neo4jGraphSink",
    "QdrantVectorSink",
    "VectorPoint",
    "VectorSink",
    "VectorSinkError",
]
