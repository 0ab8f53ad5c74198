"""Cross-file relationship resolution.

Given a built SymbolRegistry, derives four independent edge sets:

  - IMPORTS_RESOLVES_TO: import specifier -> the export it binds to
  - CALLS_FUNCTION: call site -> the function it calls
  - INHERITS_FROM: class -> its superclass
  - DEPENDS_ON: file -> each distinct file it imports from

Calls and superclasses are looked up in two tiers: the file's own
declarations first, then its imports in declared order. The first specifier
whose name matches and whose import resolved to an indexed file decides; if
that file has no such symbol the reference stays unresolved. Unresolvable
references are expected and silently skipped.

Files are processed in sorted order and duplicate edges are removed, so the
same registry always yields the same edges.
"""

from typing import Callable

from kgindex.graph.graph_types import (
    RelationshipEdge,
    RelationshipType,
    SymbolKind,
    SymbolRef,
)
from kgindex.graph.symbol_registry import (
    ExportedSymbol,
    FileExports,
    ResolvedImport,
    SymbolRegistry,
)
from kgindex.parser.structure.models import ImportSpecifier, SpecifierType
from kgindex.utils.logging import get_logger

logger = get_logger(__name__)

Finder = Callable[[FileExports, str], ExportedSymbol | None]


def _find_function(exports: FileExports, name: str) -> ExportedSymbol | None:
    return exports.find_function(name)


def _find_class(exports: FileExports, name: str) -> ExportedSymbol | None:
    return exports.find_class(name)


class CrossFileResolver:
    """Resolves references between files of one registry.

    Args:
        registry: A fully built SymbolRegistry
    """

    def __init__(self, registry: SymbolRegistry):
        self.registry = registry
        self.failed_files: list[str] = []

    def resolve(self) -> list[RelationshipEdge]:
        """Run every pass and return the de-duplicated edges."""
        passes = (
            ("imports", self.link_imports),
            ("calls", self.link_calls),
            ("inheritance", self.link_inheritance),
            ("dependencies", self.link_dependencies),
        )

        edges: list[RelationshipEdge] = []
        seen: set[tuple] = set()
        for name, run_pass in passes:
            produced = run_pass()
            logger.debug(f"Resolution pass '{name}' produced {len(produced)} edges")
            for edge in produced:
                if edge.key not in seen:
                    seen.add(edge.key)
                    edges.append(edge)

        logger.info(f"Built {len(edges)} cross-file edges across {len(self.registry.files)} files")
        return edges

    def _for_each_file(self, pass_name: str, handler: Callable[[str], list[RelationshipEdge]]) -> list[RelationshipEdge]:
        edges: list[RelationshipEdge] = []
        for file_path in self.registry.files:
            try:
                edges.extend(handler(file_path))
            except Exception as e:
                logger.warning(f"{pass_name} resolution failed for {file_path}: {e}")
                self.failed_files.append(file_path)
        return edges

    # ------------------------------------------------------------------
    # Import -> export
    # ------------------------------------------------------------------

    def link_imports(self) -> list[RelationshipEdge]:
        return self._for_each_file("import", self._link_file_imports)

    def _link_file_imports(self, file_path: str) -> list[RelationshipEdge]:
        edges = []
        for imp in self.registry.imports.get(file_path, []):
            if imp.target_file is None:
                continue
            target_exports = self.registry.exports.get(imp.target_file)
            if target_exports is None:
                continue

            for spec in imp.specifiers:
                if spec.type == SpecifierType.NAMESPACE:
                    continue
                target = self._match_specifier(target_exports, spec)
                if target is None:
                    continue
                edges.append(
                    RelationshipEdge(
                        edge_type=RelationshipType.IMPORTS_RESOLVES_TO,
                        source=SymbolRef(file_path, SymbolKind.IMPORT, spec.local, imp.line),
                        target=SymbolRef(imp.target_file, target.kind, target.name, target.line),
                        properties={
                            "import_source": imp.source,
                            "import_line": imp.line,
                            "symbol_name": spec.lookup_name,
                            "local_name": spec.local,
                            "import_type": str(spec.type),
                            "target_symbol_type": str(target.kind),
                            "target_line": target.line,
                            "cross_file": imp.target_file != file_path,
                        },
                    )
                )
        return edges

    @staticmethod
    def _match_specifier(exports: FileExports, spec: ImportSpecifier) -> ExportedSymbol | None:
        if spec.type == SpecifierType.DEFAULT:
            default = exports.default_export
            if default is None:
                return None
            # Prefer the declaration the default export names
            return exports.find_named(default.name) or default
        return exports.find_named(spec.lookup_name)

    # ------------------------------------------------------------------
    # Call -> definition
    # ------------------------------------------------------------------

    def link_calls(self) -> list[RelationshipEdge]:
        return self._for_each_file("call", self._link_file_calls)

    def _link_file_calls(self, file_path: str) -> list[RelationshipEdge]:
        structure = self.registry.structures[file_path]
        edges = []
        for call in structure.calls:
            found = self.lookup(file_path, call.callee_name, _find_function)
            if found is None:
                continue
            target_file, target = found
            edges.append(
                RelationshipEdge(
                    edge_type=RelationshipType.CALLS_FUNCTION,
                    source=SymbolRef(file_path, SymbolKind.CALL, call.callee_name, call.line),
                    target=SymbolRef(target_file, SymbolKind.FUNCTION, target.name, target.line),
                    properties={
                        "call_line": call.line,
                        "target_line": target.line,
                        "argument_count": call.argument_count,
                        "cross_file": target_file != file_path,
                    },
                )
            )
        return edges

    # ------------------------------------------------------------------
    # Inheritance
    # ------------------------------------------------------------------

    def link_inheritance(self) -> list[RelationshipEdge]:
        return self._for_each_file("inheritance", self._link_file_inheritance)

    def _link_file_inheritance(self, file_path: str) -> list[RelationshipEdge]:
        structure = self.registry.structures[file_path]
        edges = []
        for class_info in structure.classes:
            if not class_info.super_class_name:
                continue
            found = self.lookup(file_path, class_info.super_class_name, _find_class)
            if found is None:
                continue
            target_file, parent = found
            edges.append(
                RelationshipEdge(
                    edge_type=RelationshipType.INHERITS_FROM,
                    source=SymbolRef(file_path, SymbolKind.CLASS, class_info.name, class_info.line),
                    target=SymbolRef(target_file, SymbolKind.CLASS, parent.name, parent.line),
                    properties={
                        "child_line": class_info.line,
                        "parent_line": parent.line,
                        "cross_file": target_file != file_path,
                    },
                )
            )
        return edges

    # ------------------------------------------------------------------
    # Module dependencies
    # ------------------------------------------------------------------

    def link_dependencies(self) -> list[RelationshipEdge]:
        return self._for_each_file("dependency", self._link_file_dependencies)

    def _link_file_dependencies(self, file_path: str) -> list[RelationshipEdge]:
        import_counts: dict[str, int] = {}
        for imp in self.registry.imports.get(file_path, []):
            if imp.target_file is None or imp.target_file == file_path:
                continue
            import_counts[imp.target_file] = import_counts.get(imp.target_file, 0) + 1

        return [
            RelationshipEdge(
                edge_type=RelationshipType.DEPENDS_ON,
                source=SymbolRef(file_path, SymbolKind.FILE, file_path),
                target=SymbolRef(target, SymbolKind.FILE, target),
                properties={"import_count": count},
            )
            for target, count in sorted(import_counts.items())
        ]

    # ------------------------------------------------------------------
    # Two-tier lookup
    # ------------------------------------------------------------------

    def lookup(
        self,
        file_path: str,
        name: str,
        finder: Finder,
    ) -> tuple[str, ExportedSymbol] | None:
        """Resolve a referenced name from inside ``file_path``.

        Order: the file's own declarations, then the first import specifier
        binding the name, then (for dotted names like ``ns.fn``) the binding
        ``ns`` when it names a whole module.

        Returns:
            (target file, symbol), or None when unresolved
        """
        local_exports = self.registry.exports.get(file_path)
        if local_exports is not None:
            local = finder(local_exports, name)
            if local is not None:
                return file_path, local

        imports = self.registry.imports.get(file_path, [])
        decided = self._lookup_through_bindings(imports, name, finder)
        if decided is not None:
            return decided or None

        if "." in name:
            prefix, _, member = name.rpartition(".")
            for imp in imports:
                for spec in imp.specifiers:
                    if spec.local != prefix:
                        continue
                    module_file = self._module_binding(file_path, imp, spec)
                    if module_file is None:
                        continue
                    symbol = self._find_in(module_file, member, finder)
                    return (module_file, symbol) if symbol else None
        return None

    def _module_binding(self, file_path: str, imp: ResolvedImport, spec: ImportSpecifier) -> str | None:
        """File a binding refers to when it names a whole module.

        Namespace and CommonJS default bindings name their target file. A
        Python ``from . import util`` binds the submodule ``util``.
        """
        if spec.type in (SpecifierType.NAMESPACE, SpecifierType.DEFAULT):
            return imp.target_file
        structure = self.registry.structures.get(file_path)
        if structure is not None and structure.language == "python":
            return self.registry.resolve_submodule(file_path, imp.source, spec.lookup_name)
        return None

    def _lookup_through_bindings(
        self,
        imports: list[ResolvedImport],
        name: str,
        finder: Finder,
    ) -> tuple[str, ExportedSymbol] | tuple | None:
        """Walk imports in order; the first resolved binding of ``name`` decides.

        Returns None when no binding matched, an empty tuple when the deciding
        binding's file lacks the symbol, else (target file, symbol).
        """
        for imp in imports:
            if imp.target_file is None:
                continue
            for spec in imp.specifiers:
                if spec.type == SpecifierType.NAMESPACE:
                    continue
                if spec.local != name and spec.imported != name:
                    continue
                wanted = spec.lookup_name
                if spec.type == SpecifierType.DEFAULT:
                    default = self.registry.exports.get(imp.target_file, FileExports()).default_export
                    if default is not None and default.name != "default":
                        wanted = default.name
                symbol = self._find_in(imp.target_file, wanted, finder)
                return (imp.target_file, symbol) if symbol else ()
        return None

    def _find_in(self, target_file: str, name: str, finder: Finder) -> ExportedSymbol | None:
        exports = self.registry.exports.get(target_file)
        if exports is None:
            return None
        return finder(exports, name)
