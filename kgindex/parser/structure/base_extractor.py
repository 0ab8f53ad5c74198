"""
Base structure extractor interface.

This module provides:
  - StructureExtractor: Abstract base class for every language variant
  - TreeSitterStructureExtractor: Base for grammar-aware variants that walk a
    Tree-sitter syntax tree

Key Design Decisions:
  - Extractors receive decoded text and encode it to UTF-8 themselves, because
    Tree-sitter works on byte offsets. ``start_byte``/``end_byte`` of a node
    are byte positions, which differ from character positions as soon as a
    file contains multi-byte characters.

  - Line numbers come from ``node.start_point`` (0-indexed row) and are
    shifted to 1-indexed lines before they enter a CodeStructure.

  - Parse failures surface as ParseError from the parser module; anything
    unexpected during the walk is wrapped in StructureExtractionError.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from tree_sitter import Tree

from kgindex.parser.tree_sitter_parser import ParseError, parse_source

from .exceptions import StructureExtractionError
from .models import CodeStructure

if TYPE_CHECKING:
    from tree_sitter import Node


class StructureExtractor(ABC):
    """Abstract interface for language-specific structure extraction.

    Subclasses must implement:
      - language (property): Return the language identifier
      - extract(): Build a CodeStructure from source text
    """

    # Default maximum recursion depth for AST traversal
    DEFAULT_MAX_DEPTH: int = 200

    @property
    @abstractmethod
    def language(self) -> str:
        """Return the language identifier (e.g., 'python', 'javascript')."""
        pass

    @abstractmethod
    def extract(self, file_path: Path | str, content: str) -> CodeStructure:
        """Extract the structure of one file.

        Args:
            file_path: Path identifying the file (recorded in the result)
            content: Decoded file text

        Returns:
            CodeStructure, empty but valid when the file declares nothing

        Raises:
            ParseError: If the source cannot be parsed
            StructureExtractionError: If extraction fails unexpectedly
        """
        pass

    def _new_structure(self, file_path: Path | str) -> CodeStructure:
        return CodeStructure(language=self.language, file=str(file_path))


class TreeSitterStructureExtractor(StructureExtractor):
    """Base for extractors backed by a Tree-sitter grammar."""

    def extract(self, file_path: Path | str, content: str) -> CodeStructure:
        content_bytes = content.encode("utf-8")
        tree, grammar = parse_source(self.language, file_path, content_bytes)

        structure = self._new_structure(file_path)
        try:
            self._extract_from_tree(tree, content_bytes, structure)
        except (StructureExtractionError, ParseError):
            raise
        except Exception as e:
            raise StructureExtractionError(
                f"Failed to extract structure with the {grammar} grammar: {e}",
                language=self.language,
                file_path=str(file_path),
            ) from e
        return structure

    @abstractmethod
    def _extract_from_tree(
        self,
        tree: Tree,
        content: bytes,
        structure: CodeStructure,
    ) -> None:
        """Populate ``structure`` from a parsed tree."""
        pass

    def _check_depth(self, depth: int) -> None:
        if depth > self.DEFAULT_MAX_DEPTH:
            raise StructureExtractionError(
                f"Recursion depth exceeded: {depth} > {self.DEFAULT_MAX_DEPTH}",
                language=self.language,
            )

    def _extract_text(self, content: bytes, node: "Node | None") -> str:
        """Extract the source text of a node.

        Args:
            content: Raw file content as bytes
            node: The Tree-sitter node, or None

        Returns:
            Decoded UTF-8 string for the node's byte range ('' for None)
        """
        if node is None:
            return ""
        return content[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    @staticmethod
    def _line(node: "Node") -> int:
        """1-indexed start line of a node."""
        return node.start_point[0] + 1

    @staticmethod
    def _has_child_token(node: "Node", token: str) -> bool:
        """Check for an anonymous keyword child such as ``async`` or ``static``."""
        return any(child.type == token for child in node.children)
