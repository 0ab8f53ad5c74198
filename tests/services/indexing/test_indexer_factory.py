"""
Tests for open_knowledge_indexer wiring.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from kgindex.chunking import LLMBoundaryAdvisor
from kgindex.core.config import Settings
from kgindex.services.indexing import open_knowledge_indexer


class TestOpenKnowledgeIndexer:
    @pytest.mark.asyncio
    async def test_without_graph_or_advisor(self):
        settings = Settings(ENABLE_BOUNDARY_ADVISOR=False, COLLECTION_NAME="repo")

        async with open_knowledge_indexer(settings, with_graph=False, project_name="demo") as indexer:
            assert indexer.graph_sink is None
            assert indexer.chunker.advisor is None
            assert indexer.collection == "repo"
            assert indexer.project_name == "demo"
            embedder_client = indexer.embedder.http_client
            vector_client = indexer.vector_sink.http_client

        assert embedder_client.is_closed, "Embedding client should be closed on exit"
        assert vector_client.is_closed, "Qdrant client should be closed on exit"

    @pytest.mark.asyncio
    async def test_advisor_requires_api_key(self):
        settings = Settings(ENABLE_BOUNDARY_ADVISOR=True, ANTHROPIC_API_KEY="")

        async with open_knowledge_indexer(settings, with_graph=False) as indexer:
            assert indexer.chunker.advisor is None

    @pytest.mark.asyncio
    async def test_full_wiring_closes_driver(self):
        settings = Settings(ENABLE_BOUNDARY_ADVISOR=True, ANTHROPIC_API_KEY="sk-test", NEO4J_PASSWORD="secret")
        driver = MagicMock()
        driver.close = AsyncMock()

        with patch("kgindex.services.indexing.indexer_factory.create_neo4j_driver", return_value=driver):
            async with open_knowledge_indexer(settings) as indexer:
                assert isinstance(indexer.chunker.advisor, LLMBoundaryAdvisor)
                assert indexer.chunker.advisor.client.provider_name == "claude"
                assert indexer.graph_sink.driver is driver

        driver.close.assert_awaited_once()
