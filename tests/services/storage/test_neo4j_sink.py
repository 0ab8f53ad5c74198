"""
Unit tests for Neo4jGraphSink with a mocked AsyncDriver.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from kgindex.services.storage import GraphSinkError, Neo4jGraphSink


def mock_driver(record):
    """Driver whose sessions return ``record`` from ``result.single()``."""
    result = MagicMock()
    result.single = AsyncMock(return_value=record)

    session = MagicMock()
    session.run = AsyncMock(return_value=result)
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=None)

    driver = MagicMock()
    driver.session = MagicMock(return_value=session)
    return driver, session


class TestCreateEntity:
    @pytest.mark.asyncio
    async def test_returns_element_id(self):
        driver, session = mock_driver({"id": "4:abc:1"})
        sink = Neo4jGraphSink(driver, database="graph")

        entity_id = await sink.create_entity("function_call", {"name": "foo", "docstring": None})

        assert entity_id == "4:abc:1"
        driver.session.assert_called_once_with(database="graph")
        query = session.run.call_args.args[0]
        assert "CREATE (n:KGEntity:FunctionCall)" in query
        kwargs = session.run.call_args.kwargs
        assert kwargs["kind"] == "function_call"
        assert kwargs["properties"] == {"name": "foo"}, "None values should be dropped"

    @pytest.mark.asyncio
    async def test_nested_values_are_json_encoded(self):
        driver, session = mock_driver({"id": "1"})
        sink = Neo4jGraphSink(driver)

        await sink.create_entity("class", {"methods": ["a", "b"], "meta": {"line": 3}})

        properties = session.run.call_args.kwargs["properties"]
        assert properties["methods"] == ["a", "b"]
        assert properties["meta"] == '{"line": 3}'

    @pytest.mark.asyncio
    async def test_missing_record_raises(self):
        driver, _ = mock_driver(None)

        with pytest.raises(GraphSinkError):
            await Neo4jGraphSink(driver).create_entity("document", {})


class TestCreateEdge:
    @pytest.mark.asyncio
    async def test_creates_typed_relationship(self):
        driver, session = mock_driver({"created": 1})
        sink = Neo4jGraphSink(driver)

        await sink.create_edge("1", "2", "CALLS_FUNCTION", {"call_line": 3})

        query = session.run.call_args.args[0]
        assert "[r:CALLS_FUNCTION]" in query
        assert session.run.call_args.kwargs["from_id"] == "1"
        assert session.run.call_args.kwargs["to_id"] == "2"

    @pytest.mark.asyncio
    async def test_edge_type_is_sanitized(self):
        driver, session = mock_driver({"created": 1})

        await Neo4jGraphSink(driver).create_edge("1", "2", "HAS-METHOD) DELETE (x", {})

        query = session.run.call_args.args[0]
        assert "[r:HAS_METHOD__DELETE__x]" in query

    @pytest.mark.asyncio
    async def test_missing_endpoint_raises(self):
        driver, _ = mock_driver({"created": 0})

        with pytest.raises(GraphSinkError, match="endpoints not found"):
            await Neo4jGraphSink(driver).create_edge("1", "missing", "DEFINES", {})
