"""Project-wide symbol registry and cross-file relationship resolution.

Main components:
  - SymbolRegistry: exports/imports maps with relative import resolution
  - CrossFileResolver: import, call, inheritance and dependency edges
  - Graph types: SymbolRef, RelationshipEdge, RelationshipType
"""

from kgindex.graph.cross_file_resolver import CrossFileResolver
from kgindex.graph.graph_types import (
    RelationshipEdge,
    RelationshipType,
    SymbolKind,
    SymbolRef,
)
from kgindex.graph.symbol_registry import (
    ExportedSymbol,
    FileExports,
    FileStructure,
    ResolvedImport,
    SymbolRegistry,
)

__all__ = [
    "CrossFileResolver",
    "ExportedSymbol",
    "FileExports",
    "FileStructure",
    "RelationshipEdge",
    "RelationshipType",
    "ResolvedImport",
    "SymbolKind",
    "SymbolRef",
    "SymbolRegistry",
]
