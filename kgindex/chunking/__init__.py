"""Semantic chunking of file text.

Main components:
  - SemanticChunker: advisory boundaries, validation, quality gate, fallback
  - fixed_size_chunks: overlapping fixed-size windows
  - LLMBoundaryAdvisor: boundary advisor backed by an LLM client
"""

from kgindex.chunking.boundary_advisor import (
    BoundaryAdvice,
    BoundaryAdvisor,
    BoundaryAdvisorError,
    LLMBoundaryAdvisor,
    build_boundary_prompt,
    parse_boundary_response,
)
from kgindex.chunking.chunker import (
    Chunk,
    SemanticChunker,
    fixed_size_chunks,
    normalize_boundaries,
)

__all__ = [
    "BoundaryAdvice",
    "BoundaryAdvisor",
    "BoundaryAdvisorError",
    "Chunk",
    "LLMBoundaryAdvisor",
    "SemanticChunker",
    "build_boundary_prompt",
    "fixed_size_chunks",
    "normalize_boundaries",
    "parse_boundary_response",
]
