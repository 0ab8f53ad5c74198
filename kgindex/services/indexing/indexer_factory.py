"""
Knowledge indexer wiring.

Builds a KnowledgeIndexer with the production adapters (Claude boundary
advisor, Ollama embeddings, Qdrant vectors, Neo4j graph) and closes every
client when the context exits.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from kgindex.chunking import LLMBoundaryAdvisor, SemanticChunker
from kgindex.core.config import Settings
from kgindex.core.neo4j import create_neo4j_driver
from kgindex.services.embeddings import OllamaEmbeddingClient
from kgindex.services.indexing.knowledge_indexer import KnowledgeIndexer
from kgindex.services.llm import ClaudeClient
from kgindex.services.storage import Neo4jGraphSink, QdrantVectorSink
from kgindex.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def open_knowledge_indexer(
    settings: Settings,
    with_graph: bool = True,
    **kwargs,
) -> AsyncIterator[KnowledgeIndexer]:
    """
    Yield a fully wired KnowledgeIndexer.

    The boundary advisor is only attached when enabled and an Anthropic API
    key is configured; otherwise large files are chunked at fixed size.

    Args:
        settings: Application settings
        with_graph: Whether to connect to Neo4j
        **kwargs: Extra KnowledgeIndexer arguments (project_name, skip_indexed)
    """
    llm_client = None
    advisor = None
    if settings.ENABLE_BOUNDARY_ADVISOR and settings.ANTHROPIC_API_KEY:
        llm_client = ClaudeClient.from_settings(settings)
        advisor = LLMBoundaryAdvisor(llm_client)
    else:
        logger.info("Boundary advisor disabled, using fixed-size chunking for large files")

    embedder = OllamaEmbeddingClient.from_settings(settings)
    vector_sink = QdrantVectorSink.from_settings(settings)
    driver = create_neo4j_driver(settings) if with_graph else None
    graph_sink = Neo4jGraphSink(driver, settings.NEO4J_DATABASE) if driver is not None else None

    try:
        yield KnowledgeIndexer.from_settings(
            settings,
            chunker=SemanticChunker.from_settings(settings, advisor),
            embedder=embedder,
            vector_sink=vector_sink,
            graph_sink=graph_sink,
            **kwargs,
        )
    finally:
        await embedder.close()
        await vector_sink.close()
        if driver is not None:
            await driver.close()
        if llm_client is not None:
            await llm_client.close()
