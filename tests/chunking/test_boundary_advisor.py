"""
Tests for the LLM-backed boundary advisor and its prompt/response helpers.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from kgindex.chunking import LLMBoundaryAdvisor, build_boundary_prompt, parse_boundary_response
from kgindex.chunking.boundary_advisor import make_preview
from kgindex.parser.file_types import FileCategory


@pytest.fixture
def llm_client():
    client = MagicMock()
    client.provider_name = "claude"
    client.generate_completion = AsyncMock()
    return client


class TestParseBoundaryResponse:
    def test_offsets_in_given_order(self):
        assert parse_boundary_response("BOUNDARIES: 0, 250,680,1200") == [0, 250, 680, 1200]

    def test_line_embedded_in_prose(self):
        response = "Here you go.\nboundaries: 0,400\nThanks"
        assert parse_boundary_response(response) == [0, 400]

    def test_missing_line(self):
        assert parse_boundary_response("I cannot help with that") is None
        assert parse_boundary_response("BOUNDARIES: none") is None


class TestPrompt:
    def test_category_specific_guidance(self):
        code = build_boundary_prompt("def f(): pass", FileCategory.CODE, "f.py")
        markup = build_boundary_prompt("# Title", FileCategory.MARKUP, "README.md")
        other = build_boundary_prompt("hello", FileCategory.TEXT, "notes")

        assert "File: f.py" in code
        assert "Function/method definitions" in code
        assert "Heading sections" in markup
        assert "Topic shifts" in other
        assert all("BOUNDARIES:" in prompt for prompt in (code, markup, other))

    def test_preview_is_truncated(self):
        assert make_preview("x" * 10, 20) == "x" * 10
        assert make_preview("x" * 30, 20) == "x" * 20 + "..."


class TestLLMBoundaryAdvisor:
    @pytest.mark.asyncio
    async def test_successful_advice(self, llm_client):
        llm_client.generate_completion.return_value = {
            "content": "BOUNDARIES: 0,120,480",
            "model": "claude",
            "stop_reason": "end_turn",
        }

        advice = await LLMBoundaryAdvisor(llm_client).advise("text", FileCategory.CODE, "a.js")

        assert advice.available
        assert advice.boundaries == [0, 120, 480]
        kwargs = llm_client.generate_completion.call_args.kwargs
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 500

    @pytest.mark.asyncio
    async def test_client_error_is_unavailable(self, llm_client):
        llm_client.generate_completion.side_effect = ConnectionError("refused")

        advice = await LLMBoundaryAdvisor(llm_client).advise("text", FileCategory.CODE, "a.js")

        assert not advice.available
        assert advice.reason == "claude error: refused"

    @pytest.mark.asyncio
    async def test_malformed_payload_is_unavailable(self, llm_client):
        llm_client.generate_completion.return_value = {"usage": {}}

        advice = await LLMBoundaryAdvisor(llm_client).advise("text", FileCategory.DATA, "rows.csv")

        assert not advice.available
        assert advice.reason == "malformed payload"

    @pytest.mark.asyncio
    async def test_malformed_response_is_unavailable(self, llm_client):
        llm_client.generate_completion.return_value = {"content": "Split it wherever you like."}

        advice = await LLMBoundaryAdvisor(llm_client).advise("text", FileCategory.CODE, "a.js")

        assert not advice.available
        assert advice.reason == "malformed response"
