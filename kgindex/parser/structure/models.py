"""
Normalized per-file structure model.

Every language extractor converges on CodeStructure. Line numbers are
1-indexed. Optional fields default to False/None so that downstream joins
never see missing keys.
"""

import enum
from dataclasses import dataclass, field


class SpecifierType(enum.StrEnum):
    DEFAULT = "default"
    NAMED = "named"
    NAMESPACE = "namespace"


class ExportKind(enum.StrEnum):
    DEFAULT = "default"
    NAMED = "named"
    ALL = "all"


class MethodKind(enum.StrEnum):
    CONSTRUCTOR = "constructor"
    METHOD = "method"
    GET = "get"
    SET = "set"


@dataclass
class ImportSpecifier:
    """One binding introduced by an import.

    Attributes:
        type: default, named or namespace binding
        local: Name bound in the importing file
        imported: Name exported by the source module (None for default/namespace)
    """
    type: SpecifierType
    local: str
    imported: str | None = None

    @property
    def lookup_name(self) -> str:
        """Name searched for in the target file's exports."""
        return self.imported or self.local


@dataclass
class ImportInfo:
    source: str
    specifiers: list[ImportSpecifier] = field(default_factory=list)
    line: int = 0


@dataclass
class ExportInfo:
    """An explicit export statement.

    Attributes:
        kind: default, named or all (``export * from``)
        declaration_type: AST kind of the exported declaration, if any
        source: Module re-exported from, for ``export ... from '...'``
        line: 1-indexed line of the statement
        name: Name of the declaration (default exports of named declarations)
        names: Names exported by a named export
    """
    kind: ExportKind
    declaration_type: str | None = None
    source: str | None = None
    line: int = 0
    name: str | None = None
    names: list[str] = field(default_factory=list)


@dataclass
class ParameterInfo:
    name: str
    type_annotation: str | None = None


@dataclass
class MethodInfo:
    name: str
    kind: MethodKind = MethodKind.METHOD
    is_static: bool = False
    is_async: bool = False
    line: int = 0
    parameters: list[ParameterInfo] = field(default_factory=list)


@dataclass
class ClassInfo:
    name: str
    super_class_name: str | None = None
    line: int = 0
    methods: list[MethodInfo] = field(default_factory=list)


@dataclass
class FunctionInfo:
    name: str
    is_async: bool = False
    is_generator: bool = False
    line: int = 0
    parameters: list[ParameterInfo] = field(default_factory=list)


@dataclass
class CallInfo:
    """A call site; member calls are recorded as one dotted name (``a.b.c``)."""
    callee_name: str
    line: int = 0
    argument_count: int = 0


@dataclass
class VariableInfo:
    name: str
    kind: str = "const"
    line: int = 0


@dataclass
class InterfaceInfo:
    name: str
    line: int = 0
    extends: list[str] = field(default_factory=list)


@dataclass
class TypeAliasInfo:
    name: str
    line: int = 0


@dataclass
class CodeStructure:
    """Normalized structural summary of one source file."""
    language: str
    file: str
    imports: list[ImportInfo] = field(default_factory=list)
    exports: list[ExportInfo] = field(default_factory=list)
    classes: list[ClassInfo] = field(default_factory=list)
    functions: list[FunctionInfo] = field(default_factory=list)
    calls: list[CallInfo] = field(default_factory=list)
    variables: list[VariableInfo] = field(default_factory=list)
    interfaces: list[InterfaceInfo] = field(default_factory=list)
    type_aliases: list[TypeAliasInfo] = field(default_factory=list)

    @property
    def default_export(self) -> ExportInfo | None:
        """The file's default export, if it declares one."""
        for export in self.exports:
            if export.kind == ExportKind.DEFAULT:
                return export
        return None
