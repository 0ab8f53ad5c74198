"""Project-wide symbol registry.

The registry aggregates every file's CodeStructure into two maps, built in
one pass once all per-file extraction has finished:

  - exports: file -> FileExports (classes, top-level functions, variables and
    types are all candidate exports; the default export is kept apart)
  - imports: file -> [ResolvedImport], each import with its resolution

plus ``path_resolver`` which maps normalized absolute paths back to registry
keys. The registry is rebuilt from scratch for every run and is read-only
once built.

Import resolution:
  JS/TS relative sources (``./x``, ``../x``) try the literal path, then the
  literal path with each code extension, then ``index.<ext>`` inside it.
  Python relative sources (``.mod``, ``..pkg.mod``) try ``mod.py`` and then
  ``mod/__init__.py``. A candidate counts when it is an indexed file or a file
  on disk. When none is found the best guess is kept but marked unresolved.
  Bare package specifiers are left unresolved on purpose.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from kgindex.graph.graph_types import SymbolKind
from kgindex.parser.structure.models import CodeStructure, ImportSpecifier
from kgindex.utils.logging import get_logger

logger = get_logger(__name__)

JS_TS_EXTENSIONS = (".js", ".ts", ".jsx", ".tsx", ".mjs", ".cjs", ".json")
JS_TS_INDEX_FILES = tuple(f"index{ext}" for ext in JS_TS_EXTENSIONS)

# ESM TypeScript imports name the emitted .js file
TS_SOURCE_SWAPS = {
    ".js": (".ts", ".tsx"),
    ".jsx": (".tsx",),
    ".mjs": (".mts",),
    ".cjs": (".cts",),
}


@dataclass(frozen=True)
class ExportedSymbol:
    name: str
    kind: SymbolKind
    line: int


@dataclass
class FileExports:
    """Candidate exports of one file.

    Attributes:
        classes: Classes declared in the file
        functions: Top-level functions declared in the file
        variables: Top-level variables declared in the file
        types: TypeScript interfaces and type aliases
        default_export: The explicit default export, if any
    """
    classes: list[ExportedSymbol] = field(default_factory=list)
    functions: list[ExportedSymbol] = field(default_factory=list)
    variables: list[ExportedSymbol] = field(default_factory=list)
    types: list[ExportedSymbol] = field(default_factory=list)
    default_export: ExportedSymbol | None = None

    def find_class(self, name: str) -> ExportedSymbol | None:
        return next((c for c in self.classes if c.name == name), None)

    def find_function(self, name: str) -> ExportedSymbol | None:
        return next((f for f in self.functions if f.name == name), None)

    def find_named(self, name: str) -> ExportedSymbol | None:
        """Search classes, then functions, then variables, then types."""
        for symbols in (self.classes, self.functions, self.variables, self.types):
            for symbol in symbols:
                if symbol.name == name:
                    return symbol
        return None


@dataclass
class ResolvedImport:
    """An import together with its resolution.

    Attributes:
        source: Module specifier as written
        specifiers: Bindings introduced by the import
        line: 1-indexed line of the import
        resolved_path: Normalized absolute best-guess path (None for bare specifiers)
        resolved: True when a candidate file was found
        target_file: Registry key of the target when it is an indexed file
    """
    source: str
    specifiers: list[ImportSpecifier]
    line: int
    resolved_path: str | None = None
    resolved: bool = False
    target_file: str | None = None


@dataclass
class FileStructure:
    """One file's extraction result handed to the registry."""
    path: str
    structure: CodeStructure | None
    absolute_path: Path | None = None


def is_relative_source(source: str) -> bool:
    return source.startswith(".")


class SymbolRegistry:
    """Project-wide exports/imports maps with path resolution."""

    def __init__(self, root: Path | str | None = None):
        self.root = str(root) if root is not None else None
        self.exports: dict[str, FileExports] = {}
        self.imports: dict[str, list[ResolvedImport]] = {}
        self.path_resolver: dict[str, str] = {}
        self.structures: dict[str, CodeStructure] = {}
        self.absolute_paths: dict[str, str] = {}

    @classmethod
    def build(
        cls,
        file_results: Iterable[FileStructure],
        root: Path | str | None = None,
    ) -> "SymbolRegistry":
        """Build a registry from all per-file results of a run.

        Every file is registered in ``path_resolver`` before any import is
        resolved, so resolution does not depend on input order.

        Args:
            file_results: Extraction results; files with no structure still
                count as import targets
            root: Indexed root used to absolutize relative file paths

        Returns:
            Populated registry
        """
        registry = cls(root)
        results = sorted(file_results, key=lambda r: r.path)

        for result in results:
            absolute = registry._absolute(result)
            registry.path_resolver[absolute] = result.path
            registry.absolute_paths[result.path] = absolute
            if result.structure is not None:
                registry.structures[result.path] = result.structure

        for result in results:
            if result.structure is None:
                continue
            registry.exports[result.path] = registry._collect_exports(result.structure)
            registry.imports[result.path] = [
                registry._resolve_import(result, imp.source, imp.specifiers, imp.line)
                for imp in result.structure.imports
            ]

        logger.info(
            f"Symbol registry built: {len(registry.exports)} files with exports, "
            f"{sum(len(v) for v in registry.imports.values())} imports"
        )
        return registry

    @property
    def files(self) -> list[str]:
        """Registry keys of all files with a structure, sorted."""
        return sorted(self.structures)

    def _absolute(self, result: FileStructure) -> str:
        if result.absolute_path is not None:
            return os.path.normpath(str(result.absolute_path))
        if self.root is not None:
            return os.path.normpath(os.path.join(self.root, result.path))
        return os.path.abspath(result.path)

    def _collect_exports(self, structure: CodeStructure) -> FileExports:
        exports = FileExports(
            classes=[ExportedSymbol(c.name, SymbolKind.CLASS, c.line) for c in structure.classes],
            functions=[ExportedSymbol(f.name, SymbolKind.FUNCTION, f.line) for f in structure.functions],
            variables=[ExportedSymbol(v.name, SymbolKind.VARIABLE, v.line) for v in structure.variables],
            types=(
                [ExportedSymbol(i.name, SymbolKind.TYPE, i.line) for i in structure.interfaces]
                + [ExportedSymbol(t.name, SymbolKind.TYPE, t.line) for t in structure.type_aliases]
            ),
        )
        default = structure.default_export
        if default is not None:
            exports.default_export = ExportedSymbol(
                default.name or "default", SymbolKind.DEFAULT_EXPORT, default.line
            )
        return exports

    def _exists(self, candidate: str) -> bool:
        return candidate in self.path_resolver or os.path.isfile(candidate)

    def _resolve_import(
        self,
        result: FileStructure,
        source: str,
        specifiers: list[ImportSpecifier],
        line: int,
    ) -> ResolvedImport:
        resolved = ResolvedImport(source=source, specifiers=specifiers, line=line)
        if not is_relative_source(source):
            return resolved

        from_dir = os.path.dirname(self._absolute(result))
        if result.structure is not None and result.structure.language == "python":
            guess, candidates = self._python_candidates(from_dir, source)
        else:
            guess, candidates = self._js_candidates(from_dir, source)

        resolved.resolved_path = guess
        for candidate in candidates:
            if self._exists(candidate):
                resolved.resolved_path = candidate
                resolved.resolved = True
                resolved.target_file = self.path_resolver.get(candidate)
                break
        return resolved

    def resolve_submodule(self, file_path: str, source: str, name: str) -> str | None:
        """Registry key of the module bound by ``from <source> import <name>``.

        ``from . import util`` binds the module ``util.py`` (or the package
        ``util/``) next to the importing file, not a symbol of ``__init__.py``.

        Returns:
            Registry key of the submodule, or None when it is not indexed
        """
        absolute = self.absolute_paths.get(file_path)
        if absolute is None or not is_relative_source(source):
            return None
        module_source = source + name if source.endswith(".") else f"{source}.{name}"
        _, candidates = self._python_candidates(os.path.dirname(absolute), module_source)
        for candidate in candidates:
            if candidate in self.path_resolver:
                return self.path_resolver[candidate]
        return None

    @staticmethod
    def _js_candidates(from_dir: str, source: str) -> tuple[str, list[str]]:
        base = os.path.normpath(os.path.join(from_dir, source))
        candidates = [base]
        candidates += [base + ext for ext in JS_TS_EXTENSIONS]
        stem, ext = os.path.splitext(base)
        candidates += [stem + swap for swap in TS_SOURCE_SWAPS.get(ext, ())]
        candidates += [os.path.join(base, index) for index in JS_TS_INDEX_FILES]
        return base, candidates

    @staticmethod
    def _python_candidates(from_dir: str, source: str) -> tuple[str, list[str]]:
        dots = len(source) - len(source.lstrip("."))
        module = source[dots:]
        base_dir = from_dir
        for _ in range(dots - 1):
            base_dir = os.path.dirname(base_dir)

        if not module:
            init = os.path.join(base_dir, "__init__.py")
            return init, [init]

        base = os.path.join(base_dir, *module.split("."))
        return base + ".py", [base + ".py", os.path.join(base, "__init__.py")]
