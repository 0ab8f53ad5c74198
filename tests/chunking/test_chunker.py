"""
Tests for SemanticChunker: single-chunk path, advisory boundaries,
validation, the retention gate and fixed-size fallback.
"""

import asyncio

import pytest

from kgindex.chunking import Chunk, SemanticChunker, fixed_size_chunks, normalize_boundaries
from kgindex.chunking.chunker import retained_characters
from kgindex.parser.file_types import FileCategory

TEXT_5000 = "abcdefghij" * 500


def _paragraphs(count: int, size: int = 300) -> tuple[str, list[int]]:
    """Text of ``count`` paragraphs and the offsets where each one starts."""
    parts, offsets, position = [], [], 0
    for i in range(count):
        body = (f"Paragraph {i} " + "lorem ipsum " * size)[:size]
        offsets.append(position)
        parts.append(body)
        position += len(body) + 2
    return "\n\n".join(parts), offsets


class TestFixedSizeChunks:
    def test_windows_overlap(self):
        chunks = fixed_size_chunks(TEXT_5000, "a.txt", chunk_size=2000, overlap=200)

        assert [(c.start_offset, c.end_offset) for c in chunks] == [(0, 2000), (1800, 3800), (3600, 5000)]
        assert all(len(c.text) <= 2000 for c in chunks)

    def test_overlap_must_be_smaller_than_size(self):
        with pytest.raises(ValueError):
            fixed_size_chunks("abc", "a.txt", chunk_size=100, overlap=100)

    def test_whitespace_windows_are_dropped(self):
        text = "a" * 100 + " " * 300
        chunks = fixed_size_chunks(text, "a.txt", chunk_size=100, overlap=0)
        assert [c.text for c in chunks] == ["a" * 100]

    def test_windows_are_trimmed_with_matching_offsets(self):
        text = "  " + "a" * 96 + "  " + "b" * 100
        chunks = fixed_size_chunks(text, "a.txt", chunk_size=100, overlap=0)

        assert [(c.text, c.start_offset, c.end_offset) for c in chunks] == [
            ("a" * 96, 2, 98),
            ("b" * 100, 100, 200),
        ]
        for chunk in chunks:
            assert text[chunk.start_offset:chunk.end_offset] == chunk.text

    def test_trimmed_offsets_include_base_offset(self):
        chunks = fixed_size_chunks("\n\nbody\n", "a.txt", chunk_size=100, overlap=10, base_offset=40)
        assert [(c.text, c.start_offset, c.end_offset) for c in chunks] == [("body", 42, 46)]


class TestNormalizeBoundaries:
    def test_out_of_range_offsets_are_dropped_and_ends_pinned(self):
        assert normalize_boundaries([900, -5, 300, 300, 1000, 2500], 1000) == [0, 300, 900, 1000]

    def test_empty_offsets(self):
        assert normalize_boundaries([], 50) == [0, 50]


class TestSemanticChunker:
    @pytest.mark.asyncio
    async def test_small_text_is_one_trimmed_chunk(self, static_advisor):
        advisor = static_advisor([0, 10])
        chunker = SemanticChunker(advisor=advisor)

        chunks = await chunker.chunk("\n  short text  \n", FileCategory.TEXT, "notes.txt")

        assert chunks == [Chunk("short text", 3, 13, "notes.txt")]
        assert advisor.calls == [], "the advisor is not consulted for small texts"

    @pytest.mark.asyncio
    async def test_whitespace_only_text_gives_no_chunks(self):
        assert await SemanticChunker().chunk("   \n\n ", FileCategory.TEXT, "blank.txt") == []

    @pytest.mark.asyncio
    async def test_advisory_boundaries_are_followed(self, static_advisor):
        text, offsets = _paragraphs(6)
        advisor = static_advisor(offsets)
        chunker = SemanticChunker(advisor=advisor)

        chunks = await chunker.chunk(text, FileCategory.MARKUP, "docs/guide.md")

        assert len(chunks) == 6
        assert [c.start_offset for c in chunks] == offsets
        for chunk in chunks:
            assert text[chunk.start_offset:chunk.end_offset] == chunk.text
        preview, category, file_name = advisor.calls[0]
        assert (category, file_name) == ("markup", "guide.md")

    @pytest.mark.asyncio
    async def test_chunk_retention_and_ordering(self, static_advisor):
        text, offsets = _paragraphs(10, size=450)
        chunker = SemanticChunker(advisor=static_advisor(offsets[::3]))

        chunks = await chunker.chunk(text, FileCategory.MARKUP, "doc.md")

        assert retained_characters(chunks) / len(text) >= 0.8
        starts = [c.start_offset for c in chunks]
        assert starts == sorted(starts)
        for previous, current in zip(chunks, chunks[1:]):
            assert previous.end_offset <= current.start_offset

    @pytest.mark.asyncio
    async def test_fallback_when_boundaries_cover_half_the_text(self, static_advisor):
        """Tiny trailing slices are dropped, leaving 50% coverage: boundaries are discarded."""
        boundaries = [0] + list(range(2500, 5000, 40))
        chunker = SemanticChunker(advisor=static_advisor(boundaries))

        chunks = await chunker.chunk(TEXT_5000, FileCategory.CODE, "big.js")

        assert [(c.start_offset, c.end_offset) for c in chunks] == [(0, 2000), (1800, 3800), (3600, 5000)]
        assert all(len(c.text) <= 2000 for c in chunks)
        rebuilt = chunks[0].text + "".join(c.text[200:] for c in chunks[1:])
        assert rebuilt == TEXT_5000

    @pytest.mark.asyncio
    async def test_unavailable_advisor_falls_back(self, static_advisor):
        chunker = SemanticChunker(advisor=static_advisor(None, reason="service down"))

        chunks = await chunker.chunk(TEXT_5000, FileCategory.CODE, "big.js")

        assert len(chunks) == 3

    @pytest.mark.asyncio
    async def test_no_advisor_falls_back(self):
        chunks = await SemanticChunker().chunk(TEXT_5000, FileCategory.CODE, "big.js")
        assert len(chunks) == 3

    @pytest.mark.asyncio
    async def test_advisor_timeout_falls_back(self):
        class SlowAdvisor:
            async def advise(self, text_preview, file_category, file_name):
                await asyncio.sleep(5)

        chunker = SemanticChunker(advisor=SlowAdvisor(), advisor_timeout=0.01)

        chunks = await chunker.chunk(TEXT_5000, FileCategory.CODE, "big.js")

        assert len(chunks) == 3

    @pytest.mark.asyncio
    async def test_advisor_exception_falls_back(self):
        class BrokenAdvisor:
            async def advise(self, text_preview, file_category, file_name):
                raise RuntimeError("boom")

        chunks = await SemanticChunker(advisor=BrokenAdvisor()).chunk(TEXT_5000, FileCategory.CODE, "big.js")

        assert len(chunks) == 3


class TestValidate:
    def test_small_chunk_merges_with_next(self):
        chunker = SemanticChunker()
        chunks = [
            Chunk("a" * 50, 0, 50, "f.md"),
            Chunk("b" * 500, 52, 552, "f.md"),
            Chunk("c" * 300, 554, 854, "f.md"),
        ]

        validated = chunker.validate(chunks, "f.md")

        assert [c.text for c in validated] == ["a" * 50 + "\n\n" + "b" * 500, "c" * 300]
        assert (validated[0].start_offset, validated[0].end_offset) == (0, 552)

    def test_merge_only_when_result_fits(self):
        chunker = SemanticChunker(max_chunk_size=400)
        chunks = [Chunk("a" * 50, 0, 50, "f"), Chunk("b" * 380, 52, 432, "f")]

        validated = chunker.validate(chunks, "f")

        assert [c.text for c in validated] == ["b" * 380], "the unmergeable small chunk is dropped"

    def test_oversized_chunk_is_resplit(self):
        chunker = SemanticChunker()
        validated = chunker.validate([Chunk("z" * 5000, 1000, 6000, "f")], "f")

        assert [(c.start_offset, c.end_offset) for c in validated] == [(1000, 3000), (2800, 4800), (4600, 6000)]

    def test_undersized_last_chunk_is_dropped(self):
        chunker = SemanticChunker()
        chunks = [Chunk("a" * 300, 0, 300, "f"), Chunk("tail", 302, 306, "f")]

        assert [c.text for c in chunker.validate(chunks, "f")] == ["a" * 300]


def test_retained_characters_counts_overlap_once():
    chunks = [Chunk("x" * 10, 0, 10, "f"), Chunk("x" * 10, 5, 15, "f"), Chunk("x" * 5, 20, 25, "f")]
    assert retained_characters(chunks) == 20
