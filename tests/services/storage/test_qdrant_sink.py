"""
Unit tests for QdrantVectorSink using an in-process httpx transport.
"""

import json

import httpx
import pytest

from kgindex.services.storage import QdrantVectorSink, VectorPoint, VectorSinkError


def sink_for(handler, batch_size=100) -> QdrantVectorSink:
    http_client = httpx.AsyncClient(
        base_url="http://qdrant.test",
        transport=httpx.MockTransport(handler),
    )
    return QdrantVectorSink(http_client, batch_size=batch_size)


def points(count: int) -> list[VectorPoint]:
    return [
        VectorPoint(id=f"p{i}", vector=[0.0, 1.0], payload={"file_path": "a.py", "chunk_index": i})
        for i in range(count)
    ]


class TestUpsertPoints:
    @pytest.mark.asyncio
    async def test_points_are_sent_in_batches(self):
        batches = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "PUT"
            assert request.url.path == "/collections/codebase/points"
            assert request.url.params["wait"] == "true"
            batches.append(len(json.loads(request.content)["points"]))
            return httpx.Response(200, json={"status": "ok", "result": {"status": "completed"}})

        sink = sink_for(handler, batch_size=100)
        written = await sink.upsert_points("codebase", points(250))

        assert written == 3
        assert batches == [100, 100, 50], "Last batch should carry the remainder"

    @pytest.mark.asyncio
    async def test_payload_is_sent_as_is(self):
        sent = []

        def handler(request):
            sent.extend(json.loads(request.content)["points"])
            return httpx.Response(200, json={"status": "ok"})

        await sink_for(handler).upsert_points("codebase", points(1))

        assert sent == [{"id": "p0", "vector": [0.0, 1.0], "payload": {"file_path": "a.py", "chunk_index": 0}}]

    @pytest.mark.asyncio
    async def test_no_points_means_no_requests(self):
        def handler(request):
            raise AssertionError("no request expected")

        assert await sink_for(handler).upsert_points("codebase", []) == 0

    @pytest.mark.asyncio
    async def test_failed_batch_raises(self):
        sink = sink_for(lambda request: httpx.Response(400, json={"status": {"error": "bad vector"}}))

        with pytest.raises(VectorSinkError, match="Batch 0 failed"):
            await sink.upsert_points("codebase", points(3))

    @pytest.mark.asyncio
    async def test_unacknowledged_batch_raises(self):
        sink = sink_for(lambda request: httpx.Response(200, json={"status": "accepted"}))

        with pytest.raises(VectorSinkError, match="not acknowledged"):
            await sink.upsert_points("codebase", points(3))

    def test_batch_size_must_be_positive(self):
        with pytest.raises(ValueError):
            QdrantVectorSink(httpx.AsyncClient(), batch_size=0)


class TestHasFile:
    @pytest.mark.asyncio
    async def test_true_when_a_point_matches(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"result": {"points": [{"id": "p0"}]}, "status": "ok"})

        assert await sink_for(handler).has_file("codebase", "src/a.py") is True
        assert seen["path"] == "/collections/codebase/points/scroll"
        assert seen["body"]["filter"] == {"must": [{"key": "file_path", "match": {"value": "src/a.py"}}]}
        assert seen["body"]["limit"] == 1

    @pytest.mark.asyncio
    async def test_false_when_nothing_matches(self):
        sink = sink_for(lambda request: httpx.Response(200, json={"result": {"points": []}}))
        assert await sink.has_file("codebase", "src/a.py") is False

    @pytest.mark.asyncio
    async def test_probe_failure_counts_as_not_indexed(self):
        sink = sink_for(lambda request: httpx.Response(404, json={"status": {"error": "Not found"}}))
        assert await sink.has_file("missing", "src/a.py") is False
