"""Type definitions for symbols and relationship edges in the knowledge graph."""

import dataclasses
import enum
from typing import Any


class RelationshipType(enum.StrEnum):
    """Enum of resolved cross-file relationships"""

    IMPORTS_RESOLVES_TO = "IMPORTS_RESOLVES_TO"
    CALLS_FUNCTION = "CALLS_FUNCTION"
    INHERITS_FROM = "INHERITS_FROM"
    DEPENDS_ON = "DEPENDS_ON"


class SymbolKind(enum.StrEnum):
    FILE = "file"
    IMPORT = "import"
    CLASS = "class"
    FUNCTION = "function"
    VARIABLE = "variable"
    TYPE = "type"
    DEFAULT_EXPORT = "default_export"
    CALL = "call"


@dataclasses.dataclass(frozen=True)
class SymbolRef:
    """Reference to a symbol (or a whole file) inside the indexed tree.

    Attributes:
        file_path: Registry key of the file, relative to the indexed root
        kind: What the reference points at
        name: Symbol name (the file path itself for FILE references)
        line: 1-indexed line of the symbol, None for files
    """

    file_path: str
    kind: SymbolKind
    name: str
    line: int | None = None


@dataclasses.dataclass(frozen=True)
class RelationshipEdge:
    """A resolved relationship between two symbols or files.

    Edges hash on (edge_type, source, target) so that edge sets from two runs
    can be compared directly; properties take part in equality only.

    Attributes:
        edge_type: The relationship
        source: Symbol or file the relationship starts from
        target: Symbol or file the relationship points to
        properties: Edge-specific metadata (line numbers, cross_file flag, ...)
    """

    edge_type: RelationshipType
    source: SymbolRef
    target: SymbolRef
    properties: dict[str, Any] = dataclasses.field(default_factory=dict, hash=False)

    @property
    def key(self) -> tuple[RelationshipType, SymbolRef, SymbolRef]:
        return (self.edge_type, self.source, self.target)
