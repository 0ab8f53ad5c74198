"""
Structure Extractor Module

This module turns source text into a normalized CodeStructure record
(imports, exports, classes with methods, functions, call sites) so that the
symbol registry can link files together.

Public API:
  - extract(language, file_path, content): Dispatch to the language variant
  - extract_structure(file_path, content): Detect the language and extract,
    returning None for unsupported languages and for files that fail to parse
  - get_structure_extractor(language): Factory for a language variant
  - get_supported_languages(): Languages with extraction support
  - register_extractor(language, cls): Add or replace a language variant

Exceptions:
  - StructureExtractionError: Raised when extraction fails unexpectedly
  - UnsupportedLanguageError: Raised by extract() for unsupported languages
  - ParseError: Raised when a file cannot be parsed

Usage:
    from kgindex.parser.structure import extract_structure

    structure = extract_structure("src/app.js", source_text)
    if structure is not None:
        print(len(structure.functions))

Adding a new language:
    1. Create a new file: `{language}_extractor.py`
    2. Implement a class that extends StructureExtractor
    3. Register it in _EXTRACTORS below
"""

from pathlib import Path

from kgindex.core.config import settings
from kgindex.parser.file_types import detect_language
from kgindex.parser.tree_sitter_parser import ParseError
from kgindex.utils.logging import get_logger

from .base_extractor import StructureExtractor, TreeSitterStructureExtractor
from .exceptions import StructureExtractionError, UnsupportedLanguageError
from .heuristic_extractor import HeuristicPythonExtractor
from .javascript_extractor import (
    JavaScriptStructureExtractor,
    TypeScriptStructureExtractor,
)
from .models import (
    CallInfo,
    ClassInfo,
    CodeStructure,
    ExportInfo,
    ExportKind,
    FunctionInfo,
    ImportInfo,
    ImportSpecifier,
    InterfaceInfo,
    MethodInfo,
    MethodKind,
    ParameterInfo,
    SpecifierType,
    TypeAliasInfo,
    VariableInfo,
)
from .python_extractor import PythonStructureExtractor

logger = get_logger(__name__)


# Registry of language-specific extractors
# Maps language identifier -> extractor class
_EXTRACTORS: dict[str, type[StructureExtractor]] = {
    "python": PythonStructureExtractor,
    "javascript": JavaScriptStructureExtractor,
    "typescript": TypeScriptStructureExtractor,
}

# Alternative Python variants selectable through PYTHON_EXTRACTION_STRATEGY
_PYTHON_STRATEGIES: dict[str, type[StructureExtractor]] = {
    "tree_sitter": PythonStructureExtractor,
    "heuristic": HeuristicPythonExtractor,
}


def get_structure_extractor(language: str) -> StructureExtractor | None:
    """Get a structure extractor for the given language.

    For Python the configured PYTHON_EXTRACTION_STRATEGY decides between the
    grammar-aware and the heuristic variant, unless a custom extractor was
    registered for it.

    Args:
        language: Language identifier (e.g., 'python', 'javascript', 'typescript')

    Returns:
        StructureExtractor instance for the language, or None if not supported
    """
    language = language.lower()
    extractor_class = _EXTRACTORS.get(language)
    if extractor_class is PythonStructureExtractor:
        extractor_class = _PYTHON_STRATEGIES.get(
            settings.PYTHON_EXTRACTION_STRATEGY, PythonStructureExtractor
        )
    if extractor_class:
        return extractor_class()
    return None


def get_supported_languages() -> list[str]:
    """Get list of languages with structure extraction support."""
    return list(_EXTRACTORS.keys())


def register_extractor(language: str, extractor_class: type[StructureExtractor]) -> None:
    """Register a structure extractor for a language.

    Args:
        language: Language identifier (will be lowercased)
        extractor_class: The StructureExtractor subclass to register
    """
    _EXTRACTORS[language.lower()] = extractor_class


def extract(language: str, file_path: Path | str, content: str) -> CodeStructure:
    """Extract the structure of a file written in ``language``.

    Raises:
        UnsupportedLanguageError: If no extractor is registered for the language
        ParseError: If the source cannot be parsed
        StructureExtractionError: If extraction fails unexpectedly
    """
    extractor = get_structure_extractor(language)
    if extractor is None:
        raise UnsupportedLanguageError(language, get_supported_languages())
    return extractor.extract(file_path, content)


def extract_structure(file_path: Path | str, content: str) -> CodeStructure | None:
    """Detect the language of a file and extract its structure.

    Unsupported languages are not attempted. A parse or extraction failure is
    logged and reported as None so that the file is still chunked and
    embedded, just without structural metadata.

    Args:
        file_path: Path identifying the file
        content: Decoded file text

    Returns:
        CodeStructure, or None when the file has no usable structure
    """
    language = detect_language(file_path, content)
    if language is None or language not in _EXTRACTORS:
        return None

    try:
        return extract(language, file_path, content)
    except (ParseError, StructureExtractionError) as e:
        logger.warning(f"Structure extraction skipped for {file_path}: {e}")
        return None


# Public API exports
__all__ = [
    # Dispatch
    "extract",
    "extract_structure",
    "get_structure_extractor",
    "get_supported_languages",
    "register_extractor",
    # Base classes (for extension)
    "StructureExtractor",
    "TreeSitterStructureExtractor",
    # Concrete extractors
    "JavaScriptStructureExtractor",
    "TypeScriptStructureExtractor",
    "PythonStructureExtractor",
    "HeuristicPythonExtractor",
    # Models
    "CallInfo",
    "ClassInfo",
    "CodeStructure",
    "ExportInfo",
    "ExportKind",
    "FunctionInfo",
    "ImportInfo",
    "ImportSpecifier",
    "InterfaceInfo",
    "MethodInfo",
    "MethodKind",
    "ParameterInfo",
    "SpecifierType",
    "TypeAliasInfo",
    "VariableInfo",
    # Exceptions
    "ParseError",
    "StructureExtractionError",
    "UnsupportedLanguageError",
]
