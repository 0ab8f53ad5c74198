"""Semantic chunking with a validated advisory boundary set.

Pipeline for one file:

  1. Texts at or below the single-chunk threshold become one chunk.
  2. The boundary advisor is asked for split offsets (bounded by a timeout).
  3. Offsets outside ``[0, len)`` are dropped, the rest de-duplicated and
     sorted, then 0 and ``len`` are forced at the ends.
  4. Slices between consecutive offsets are trimmed; empty slices vanish.
  5. Validation: a slice below the minimum is merged with the next one when
     the result stays within the maximum; slices above the maximum are
     re-split with fixed-size chunking; slices still below the minimum are
     dropped.
  6. Quality gate: when the validated chunks retain less than the minimum
     share of the original characters, the advisory boundaries are discarded
     and the whole text is chunked at fixed size with overlap.

Any advisor failure goes straight to fixed-size chunking. ``chunk`` never
raises.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path

from kgindex.chunking.boundary_advisor import (
    BoundaryAdvisor,
    BoundaryAdvisorError,
    make_preview,
)
from kgindex.core.config import Settings
from kgindex.parser.file_types import FileCategory
from kgindex.utils.logging import get_logger

logger = get_logger(__name__)

MERGE_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class Chunk:
    """A bounded slice of a file's text.

    Attributes:
        text: Chunk text (merged chunks join their parts with a blank line)
        start_offset: Character offset of the first character in the file
        end_offset: Character offset one past the last character in the file
        source_file: Path of the file the chunk came from
    """
    text: str
    start_offset: int
    end_offset: int
    source_file: str


def fixed_size_chunks(
    text: str,
    source_file: str,
    chunk_size: int = 2000,
    overlap: int = 200,
    base_offset: int = 0,
) -> list[Chunk]:
    """Split text into fixed-size windows that overlap by ``overlap`` characters.

    Windows advance by ``chunk_size - overlap`` and the last one ends exactly
    at the end of the text. Each window is trimmed and its offsets follow the
    trimmed text; whitespace-only windows are left out.

    Args:
        text: Text to split
        source_file: Path recorded on every chunk
        chunk_size: Window length
        overlap: Characters shared by consecutive windows
        base_offset: Offset of ``text`` inside its file

    Returns:
        Ordered list of chunks
    """
    if overlap >= chunk_size:
        raise ValueError(f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})")

    chunks: list[Chunk] = []
    start = 0
    length = len(text)
    while start < length:
        end = min(start + chunk_size, length)
        window = _trimmed_slice(text, start, end, source_file)
        if window is not None:
            chunks.append(
                Chunk(
                    window.text,
                    base_offset + window.start_offset,
                    base_offset + window.end_offset,
                    source_file,
                )
            )
        if end == length:
            break
        start = end - overlap
    return chunks


def normalize_boundaries(offsets: list[int], length: int) -> list[int]:
    """Keep offsets inside ``[0, length)``, sort them and pin both ends."""
    boundaries = sorted({offset for offset in offsets if 0 <= offset < length})
    if not boundaries or boundaries[0] != 0:
        boundaries.insert(0, 0)
    if boundaries[-1] != length:
        boundaries.append(length)
    return boundaries


def _trimmed_slice(text: str, start: int, end: int, source_file: str) -> Chunk | None:
    piece = text[start:end]
    stripped = piece.strip()
    if not stripped:
        return None
    leading = len(piece) - len(piece.lstrip())
    chunk_start = start + leading
    return Chunk(stripped, chunk_start, chunk_start + len(stripped), source_file)


def retained_characters(chunks: list[Chunk]) -> int:
    """Number of original characters covered by at least one chunk."""
    covered = 0
    current_start = current_end = None
    for chunk in sorted(chunks, key=lambda c: c.start_offset):
        if current_end is None or chunk.start_offset > current_end:
            if current_end is not None:
                covered += current_end - current_start
            current_start, current_end = chunk.start_offset, chunk.end_offset
        else:
            current_end = max(current_end, chunk.end_offset)
    if current_end is not None:
        covered += current_end - current_start
    return covered


class SemanticChunker:
    """Splits file text into bounded, semantically meaningful chunks.

    Args:
        advisor: Optional boundary advisor; without one every file larger
            than the single-chunk threshold is chunked at fixed size
        chunk_size: Fixed-size window length
        chunk_overlap: Fixed-size window overlap
        min_chunk_size: Chunks below this are merged or dropped
        max_chunk_size: Chunks above this are re-split
        single_chunk_threshold: Texts up to this length are never split
        min_retention_ratio: Quality floor for advisory chunking
        preview_chars: Leading characters shown to the advisor
        advisor_timeout: Seconds to wait for the advisor
    """

    def __init__(
        self,
        advisor: BoundaryAdvisor | None = None,
        chunk_size: int = 2000,
        chunk_overlap: int = 200,
        min_chunk_size: int = 100,
        max_chunk_size: int = 4000,
        single_chunk_threshold: int = 1000,
        min_retention_ratio: float = 0.8,
        preview_chars: int = 3000,
        advisor_timeout: float = 30.0,
    ):
        self.advisor = advisor
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.min_chunk_size = min_chunk_size
        self.max_chunk_size = max_chunk_size
        self.single_chunk_threshold = single_chunk_threshold
        self.min_retention_ratio = min_retention_ratio
        self.preview_chars = preview_chars
        self.advisor_timeout = advisor_timeout

    @classmethod
    def from_settings(cls, settings: Settings, advisor: BoundaryAdvisor | None = None) -> "SemanticChunker":
        return cls(
            advisor=advisor,
            chunk_size=settings.CHUNK_SIZE,
            chunk_overlap=settings.CHUNK_OVERLAP,
            min_chunk_size=settings.MIN_CHUNK_SIZE,
            max_chunk_size=settings.MAX_CHUNK_SIZE,
            single_chunk_threshold=settings.SINGLE_CHUNK_THRESHOLD,
            min_retention_ratio=settings.MIN_RETENTION_RATIO,
            preview_chars=settings.ADVISOR_PREVIEW_CHARS,
            advisor_timeout=settings.ADVISOR_TIMEOUT_SECONDS,
        )

    async def chunk(
        self,
        text: str,
        file_category: FileCategory,
        source_file: str,
    ) -> list[Chunk]:
        """Chunk one file's text.

        Args:
            text: Full file text
            file_category: Category steering the advisor's guidance
            source_file: Path recorded on every chunk

        Returns:
            Ordered chunks; empty only for whitespace-only text
        """
        if len(text) <= self.single_chunk_threshold:
            single = _trimmed_slice(text, 0, len(text), source_file)
            return [single] if single else []

        try:
            offsets = await self._request_boundaries(text, file_category, source_file)
        except BoundaryAdvisorError as e:
            logger.debug(f"Fixed-size chunking for {source_file}: {e}")
            return self.fixed_size(text, source_file)
        except Exception as e:
            logger.warning(f"Semantic chunking failed for {source_file}, using fixed-size chunks: {e}")
            return self.fixed_size(text, source_file)

        boundaries = normalize_boundaries(offsets, len(text))
        semantic = self._semantic_chunks(text, boundaries, source_file)
        validated = self.validate(semantic, source_file)

        retention = retained_characters(validated) / len(text)
        if retention < self.min_retention_ratio:
            logger.warning(
                f"Content retention too low for {source_file} ({retention:.1%}), using fixed-size chunks"
            )
            return self.fixed_size(text, source_file)
        return validated

    def fixed_size(self, text: str, source_file: str) -> list[Chunk]:
        return fixed_size_chunks(text, source_file, self.chunk_size, self.chunk_overlap)

    async def _request_boundaries(
        self,
        text: str,
        file_category: FileCategory,
        source_file: str,
    ) -> list[int]:
        if self.advisor is None:
            raise BoundaryAdvisorError("no boundary advisor configured")

        preview = make_preview(text, self.preview_chars)
        try:
            advice = await asyncio.wait_for(
                self.advisor.advise(preview, file_category, Path(source_file).name),
                timeout=self.advisor_timeout,
            )
        except asyncio.TimeoutError as e:
            raise BoundaryAdvisorError(f"advisor timed out after {self.advisor_timeout}s") from e

        if not advice.available or not advice.boundaries:
            raise BoundaryAdvisorError(advice.reason or "advisor returned no boundaries")
        return advice.boundaries

    def _semantic_chunks(self, text: str, boundaries: list[int], source_file: str) -> list[Chunk]:
        chunks = []
        for start, end in zip(boundaries, boundaries[1:]):
            chunk = _trimmed_slice(text, start, end, source_file)
            if chunk is not None:
                chunks.append(chunk)
        return chunks

    def validate(self, chunks: list[Chunk], source_file: str) -> list[Chunk]:
        """Merge undersized chunks, re-split oversized ones, drop the rest.

        A chunk below the minimum is merged with its successor when the joined
        text stays within the maximum; one merge per chunk.
        """
        validated: list[Chunk] = []
        i = 0
        while i < len(chunks):
            chunk = chunks[i]
            i += 1

            if len(chunk.text) < self.min_chunk_size and i < len(chunks):
                following = chunks[i]
                if len(chunk.text) + len(MERGE_SEPARATOR) + len(following.text) <= self.max_chunk_size:
                    chunk = Chunk(
                        chunk.text + MERGE_SEPARATOR + following.text,
                        chunk.start_offset,
                        following.end_offset,
                        source_file,
                    )
                    i += 1

            if len(chunk.text) > self.max_chunk_size:
                validated.extend(
                    fixed_size_chunks(
                        chunk.text,
                        source_file,
                        self.chunk_size,
                        self.chunk_overlap,
                        base_offset=chunk.start_offset,
                    )
                )
            elif len(chunk.text.strip()) >= self.min_chunk_size:
                validated.append(chunk)
        return validated
