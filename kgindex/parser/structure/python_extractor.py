"""
Python structure extractor using Tree-sitter.

This module builds a CodeStructure for Python source files, handling:
  - ``import x.y as z`` and ``from .pkg import a as b`` (absolute and relative)
  - Classes with their first positional base class
  - Methods, including @property getters/setters and @staticmethod
  - Top-level functions (async and generator flags)
  - Module-level assignments and ``__all__`` export lists
  - Call sites anywhere in the file

Statements nested in top-level ``if``/``try``/``with`` blocks (for example
``if TYPE_CHECKING:`` imports) are treated as top level.

Python's Tree-sitter grammar reference:
  https://github.com/tree-sitter/tree-sitter-python/blob/master/grammar.js
"""

from tree_sitter import Node, Tree

from .base_extractor import TreeSitterStructureExtractor
from .models import (
    CallInfo,
    ClassInfo,
    CodeStructure,
    ExportInfo,
    ExportKind,
    FunctionInfo,
    ImportInfo,
    ImportSpecifier,
    MethodInfo,
    MethodKind,
    ParameterInfo,
    SpecifierType,
    VariableInfo,
)

# Compound statements whose bodies are scanned as if they were top level
TRANSPARENT_BLOCKS = (
    "if_statement",
    "elif_clause",
    "else_clause",
    "try_statement",
    "except_clause",
    "finally_clause",
    "with_statement",
    "block",
)

# Scopes that own their own yield expressions
NESTED_SCOPES = ("function_definition", "lambda", "class_definition")

# Newer grammars emit these directly under ``module``
ASSIGNMENT_TYPES = ("assignment", "augmented_assignment")


class PythonStructureExtractor(TreeSitterStructureExtractor):
    """Python structure extractor.

    Tree-sitter node types used:
      - import_statement / import_from_statement / aliased_import / relative_import
      - class_definition (name, superclasses, body)
      - function_definition (name, parameters, body) and decorated_definition
      - expression_statement / assignment
      - call (function, arguments) / attribute (object, attribute)
    """

    @property
    def language(self) -> str:
        return "python"

    def _extract_from_tree(
        self,
        tree: Tree,
        content: bytes,
        structure: CodeStructure,
    ) -> None:
        for child in tree.root_node.named_children:
            self._visit_top_level(child, content, structure, depth=1)
        self._collect_calls(tree.root_node, content, structure)

    def _visit_top_level(
        self,
        node: Node,
        content: bytes,
        structure: CodeStructure,
        depth: int,
    ) -> None:
        self._check_depth(depth)

        if node.type == "import_statement":
            structure.imports.extend(self._extract_import(node, content))
        elif node.type == "import_from_statement":
            structure.imports.append(self._extract_from_import(node, content))
        elif node.type == "future_import_statement":
            return
        elif node.type == "class_definition":
            structure.classes.append(self._extract_class(node, content))
        elif node.type == "function_definition":
            structure.functions.append(self._extract_function(node, content))
        elif node.type == "decorated_definition":
            definition = node.child_by_field_name("definition")
            if definition is None:
                return
            if definition.type == "class_definition":
                structure.classes.append(self._extract_class(definition, content))
            elif definition.type == "function_definition":
                structure.functions.append(self._extract_function(definition, content))
        elif node.type in ("expression_statement",) + ASSIGNMENT_TYPES:
            self._extract_assignment(node, content, structure)
        elif node.type in TRANSPARENT_BLOCKS:
            for child in node.named_children:
                self._visit_top_level(child, content, structure, depth + 1)

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def _extract_import(self, node: Node, content: bytes) -> list[ImportInfo]:
        """``import a.b, c as d`` gives one ImportInfo per module."""
        imports = []
        for child in node.named_children:
            if child.type == "dotted_name":
                module = self._extract_text(content, child)
                local = module
            elif child.type == "aliased_import":
                module = self._extract_text(content, child.child_by_field_name("name"))
                local = self._extract_text(content, child.child_by_field_name("alias"))
            else:
                continue
            imports.append(
                ImportInfo(
                    source=module,
                    specifiers=[ImportSpecifier(type=SpecifierType.NAMESPACE, local=local)],
                    line=self._line(node),
                )
            )
        return imports

    def _extract_from_import(self, node: Node, content: bytes) -> ImportInfo:
        module_node = node.child_by_field_name("module_name")
        import_info = ImportInfo(
            source=self._extract_text(content, module_node),
            line=self._line(node),
        )
        for name_node in node.children_by_field_name("name"):
            if name_node.type == "aliased_import":
                imported = self._extract_text(content, name_node.child_by_field_name("name"))
                local = self._extract_text(content, name_node.child_by_field_name("alias"))
            else:
                imported = self._extract_text(content, name_node)
                local = imported
            import_info.specifiers.append(
                ImportSpecifier(type=SpecifierType.NAMED, local=local, imported=imported)
            )
        return import_info

    # ------------------------------------------------------------------
    # Classes and functions
    # ------------------------------------------------------------------

    def _decorators(self, node: Node, content: bytes) -> list[str]:
        names = []
        for child in node.children:
            if child.type == "decorator":
                names.append(self._extract_text(content, child).lstrip("@").strip())
        return names

    def _extract_class(self, node: Node, content: bytes) -> ClassInfo:
        class_info = ClassInfo(
            name=self._extract_text(content, node.child_by_field_name("name")),
            super_class_name=self._extract_superclass(node, content),
            line=self._line(node),
        )

        body = node.child_by_field_name("body")
        if body is None:
            return class_info

        for member in body.named_children:
            if member.type == "function_definition":
                class_info.methods.append(self._extract_method(member, content, []))
            elif member.type == "decorated_definition":
                definition = member.child_by_field_name("definition")
                if definition is not None and definition.type == "function_definition":
                    class_info.methods.append(
                        self._extract_method(definition, content, self._decorators(member, content))
                    )
        return class_info

    def _extract_superclass(self, node: Node, content: bytes) -> str | None:
        """First positional base class (``metaclass=`` and friends are skipped)."""
        superclasses = node.child_by_field_name("superclasses")
        if superclasses is None:
            return None
        for arg in superclasses.named_children:
            if arg.type in ("identifier", "attribute"):
                return self._extract_text(content, arg)
            if arg.type == "subscript":
                # Generic[T] -> Generic
                value = arg.child_by_field_name("value")
                return self._extract_text(content, value) if value is not None else None
        return None

    def _extract_method(
        self,
        node: Node,
        content: bytes,
        decorators: list[str],
    ) -> MethodInfo:
        name = self._extract_text(content, node.child_by_field_name("name"))
        if name == "__init__":
            kind = MethodKind.CONSTRUCTOR
        elif "property" in decorators or any(d.endswith(".getter") for d in decorators):
            kind = MethodKind.GET
        elif any(d.endswith(".setter") for d in decorators):
            kind = MethodKind.SET
        else:
            kind = MethodKind.METHOD

        return MethodInfo(
            name=name,
            kind=kind,
            is_static="staticmethod" in decorators,
            is_async=self._has_child_token(node, "async"),
            line=self._line(node),
            parameters=self._extract_parameters(node, content),
        )

    def _extract_function(self, node: Node, content: bytes) -> FunctionInfo:
        body = node.child_by_field_name("body")
        return FunctionInfo(
            name=self._extract_text(content, node.child_by_field_name("name")),
            is_async=self._has_child_token(node, "async"),
            is_generator=body is not None and self._contains_yield(body),
            line=self._line(node),
            parameters=self._extract_parameters(node, content),
        )

    def _contains_yield(self, body: Node) -> bool:
        """Check for a yield that belongs to this function, not a nested scope."""
        stack = list(body.children)
        while stack:
            node = stack.pop()
            if node.type == "yield":
                return True
            if node.type in NESTED_SCOPES:
                continue
            stack.extend(node.children)
        return False

    def _extract_parameters(self, node: Node, content: bytes) -> list[ParameterInfo]:
        params_node = node.child_by_field_name("parameters")
        if params_node is None:
            return []

        parameters = []
        for param in params_node.named_children:
            if param.type in ("identifier", "list_splat_pattern", "dictionary_splat_pattern"):
                parameters.append(ParameterInfo(name=self._extract_text(content, param)))
            elif param.type == "typed_parameter":
                name_node = next(
                    (c for c in param.named_children if c.type != "type"), None
                )
                parameters.append(
                    ParameterInfo(
                        name=self._extract_text(content, name_node),
                        type_annotation=self._extract_text(content, param.child_by_field_name("type")) or None,
                    )
                )
            elif param.type in ("default_parameter", "typed_default_parameter"):
                type_node = param.child_by_field_name("type")
                parameters.append(
                    ParameterInfo(
                        name=self._extract_text(content, param.child_by_field_name("name")),
                        type_annotation=self._extract_text(content, type_node) if type_node else None,
                    )
                )
        return parameters

    # ------------------------------------------------------------------
    # Module-level assignments
    # ------------------------------------------------------------------

    def _extract_assignment(self, node: Node, content: bytes, structure: CodeStructure) -> None:
        """Record a module-level assignment.

        Older grammars wrap assignments in an ``expression_statement``, newer
        ones put them directly under ``module``; both shapes are accepted.
        ``x += ...`` only matters for ``__all__``.
        """
        expression = node
        if node.type == "expression_statement":
            expression = node.named_children[0] if node.named_children else None
        if expression is None or expression.type not in ASSIGNMENT_TYPES:
            return

        left = expression.child_by_field_name("left")
        if left is None or left.type != "identifier":
            return
        name = self._extract_text(content, left)
        right = expression.child_by_field_name("right")

        if name == "__all__" and right is not None and right.type in ("list", "tuple"):
            names = [
                self._extract_text(content, item).strip("'\"")
                for item in right.named_children
                if item.type == "string"
            ]
            structure.exports.append(
                ExportInfo(kind=ExportKind.NAMED, declaration_type="__all__", line=self._line(node), names=names)
            )
            return
        if expression.type == "augmented_assignment":
            return

        structure.variables.append(VariableInfo(name=name, kind="assignment", line=self._line(node)))

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def _collect_calls(self, root: Node, content: bytes, structure: CodeStructure) -> None:
        stack = [root]
        calls: list[CallInfo] = []
        while stack:
            node = stack.pop()
            if node.type == "call":
                callee = self._callee_name(node.child_by_field_name("function"), content)
                if callee:
                    arguments = node.child_by_field_name("arguments")
                    if arguments is None:
                        count = 0
                    elif arguments.type == "generator_expression":
                        count = 1
                    else:
                        count = sum(1 for arg in arguments.named_children if arg.type != "comment")
                    calls.append(CallInfo(callee_name=callee, line=self._line(node), argument_count=count))
            stack.extend(reversed(node.children))
        calls.sort(key=lambda c: c.line)
        structure.calls.extend(calls)

    def _callee_name(self, node: Node | None, content: bytes) -> str | None:
        if node is None:
            return None
        if node.type == "identifier":
            return self._extract_text(content, node)
        if node.type == "attribute":
            obj = self._callee_name(node.child_by_field_name("object"), content)
            attr = node.child_by_field_name("attribute")
            if obj is None or attr is None:
                return None
            return f"{obj}.{self._extract_text(content, attr)}"
        return None
