"""
Tree-sitter-based code parsing module.

Parses source text with the tree-sitter grammars shipped by
tree_sitter_language_pack. A file is first parsed with its primary grammar;
if the resulting tree contains syntax errors it is parsed once more with a
more permissive grammar before the parse is reported as failed.
"""

from typing import Tuple
from pathlib import Path

from tree_sitter import Tree
from tree_sitter_language_pack import get_parser as get_ts_parser

from kgindex.parser.file_types import CodeLanguage
from kgindex.utils.logging import get_logger

logger = get_logger(__name__)

# Grammar tried second when the primary grammar reports syntax errors
PERMISSIVE_GRAMMAR = {
    "javascript": "tsx",
    "typescript": "tsx",
    "tsx": "typescript",
}


class ParseError(Exception):
    """Exception raised when parsing a file fails."""
    pass


def primary_grammar(language: CodeLanguage | str, file_path: Path | str) -> str:
    """Pick the tree-sitter grammar for a language and file.

    ``.tsx`` files use the tsx grammar; everything else uses the grammar named
    after the language.
    """
    if language == CodeLanguage.TYPESCRIPT and Path(file_path).suffix.lower() == ".tsx":
        return "tsx"
    return str(language)


def _parse_with(grammar: str, content: bytes) -> Tree:
    parser = get_ts_parser(grammar)
    return parser.parse(content)


def parse_source(
    language: CodeLanguage | str,
    file_path: Path | str,
    content: bytes,
) -> Tuple[Tree, str]:
    """Parse source bytes, retrying once with a permissive grammar.

    Args:
        language: Structural language of the file
        file_path: Path of the file (selects tsx for .tsx, used in messages)
        content: Raw file content

    Returns:
        Tuple of (parsed Tree-sitter Tree, grammar name that produced it).

    Raises:
        ParseError: If neither grammar yields an error-free tree
    """
    grammar = primary_grammar(language, file_path)
    try:
        tree = _parse_with(grammar, content)
    except Exception as e:
        raise ParseError(f"Failed to parse file {file_path}: {e}") from e

    if not tree.root_node.has_error:
        return tree, grammar

    fallback = PERMISSIVE_GRAMMAR.get(grammar)
    if fallback is None:
        raise ParseError(f"Syntax errors in {file_path} under the {grammar} grammar")

    logger.debug(f"Retrying {file_path} with the {fallback} grammar after syntax errors")
    try:
        retry = _parse_with(fallback, content)
    except Exception as e:
        raise ParseError(f"Failed to parse file {file_path}: {e}") from e

    if retry.root_node.has_error:
        raise ParseError(
            f"Syntax errors in {file_path} under the {grammar} and {fallback} grammars"
        )
    return retry, fallback
