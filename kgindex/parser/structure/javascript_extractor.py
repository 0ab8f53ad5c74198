"""
JavaScript/TypeScript structure extractor using Tree-sitter.

This module builds a CodeStructure for JavaScript and TypeScript sources,
handling:
  - ES module imports and exports, including re-exports
  - CommonJS ``require()`` bindings and ``module.exports``/``exports.x`` assignments
  - Classes (with ``extends``), methods, accessors and arrow-function fields
  - Top-level functions, including arrow functions and function expressions
    bound to ``const``/``let``/``var``
  - Top-level variables
  - TypeScript interfaces and type aliases
  - Call sites anywhere in the file

TypeScript shares the JavaScript node shapes for all of the above and adds a
few of its own (required_parameter, interface_declaration, ...), so one walker
serves both languages.

JavaScript Tree-sitter grammar reference:
  https://github.com/tree-sitter/tree-sitter-javascript/blob/master/grammar.js

TypeScript Tree-sitter grammar reference:
  https://github.com/tree-sitter/tree-sitter-typescript/blob/master/common/define-grammar.js
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
    InterfaceInfo,
    MethodInfo,
    MethodKind,
    ParameterInfo,
    SpecifierType,
    TypeAliasInfo,
    VariableInfo,
)

CLASS_NODE_TYPES = ("class_declaration", "abstract_class_declaration", "class")
FUNCTION_DECLARATION_TYPES = ("function_declaration", "generator_function_declaration")
FUNCTION_VALUE_TYPES = (
    "arrow_function",
    "function_expression",
    "function",
    "generator_function",
)
METHOD_NODE_TYPES = ("method_definition", "abstract_method_signature", "method_signature")
FIELD_NODE_TYPES = ("field_definition", "public_field_definition")
DECLARATION_NODE_TYPES = (
    "lexical_declaration",
    "variable_declaration",
)


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        return text[1:-1]
    return text


class JavaScriptStructureExtractor(TreeSitterStructureExtractor):
    """JavaScript structure extractor.

    Tree-sitter node types used:
      - import_statement / import_clause / named_imports / namespace_import
      - export_statement / export_clause / export_specifier
      - class_declaration / class_heritage / class_body / method_definition
      - function_declaration / generator_function_declaration
      - lexical_declaration / variable_declaration / variable_declarator
      - arrow_function / function_expression
      - call_expression / member_expression / arguments
      - formal_parameters and the parameter patterns inside them
    """

    @property
    def language(self) -> str:
        return "javascript"

    def _extract_from_tree(
        self,
        tree: Tree,
        content: bytes,
        structure: CodeStructure,
    ) -> None:
        root = tree.root_node
        for child in root.named_children:
            self._visit_top_level(child, content, structure)
        self._collect_calls(root, content, structure)

    # ------------------------------------------------------------------
    # Top-level statements
    # ------------------------------------------------------------------

    def _visit_top_level(self, node: Node, content: bytes, structure: CodeStructure) -> None:
        node_type = node.type

        if node_type == "import_statement":
            structure.imports.append(self._extract_import(node, content))
        elif node_type == "export_statement":
            self._extract_export(node, content, structure)
        elif node_type in CLASS_NODE_TYPES:
            class_info = self._extract_class(node, content)
            if class_info:
                structure.classes.append(class_info)
        elif node_type in FUNCTION_DECLARATION_TYPES:
            function_info = self._extract_function(node, content)
            if function_info:
                structure.functions.append(function_info)
        elif node_type in DECLARATION_NODE_TYPES:
            self._extract_declaration(node, content, structure)
        elif node_type == "expression_statement":
            self._extract_commonjs_statement(node, content, structure)
        elif node_type == "interface_declaration":
            structure.interfaces.append(self._extract_interface(node, content))
        elif node_type == "type_alias_declaration":
            name = self._extract_text(content, node.child_by_field_name("name"))
            structure.type_aliases.append(TypeAliasInfo(name=name, line=self._line(node)))
        elif node_type == "enum_declaration":
            name = self._extract_text(content, node.child_by_field_name("name"))
            structure.variables.append(VariableInfo(name=name, kind="enum", line=self._line(node)))

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def _extract_import(self, node: Node, content: bytes) -> ImportInfo:
        """Extract an ES import (or TS ``import x = require()``) statement."""
        source_node = node.child_by_field_name("source")
        import_info = ImportInfo(
            source=_unquote(self._extract_text(content, source_node)),
            line=self._line(node),
        )

        for child in node.named_children:
            if child.type == "import_clause":
                import_info.specifiers.extend(self._extract_import_clause(child, content))
            elif child.type == "import_require_clause":
                # import x = require('y')
                for part in child.named_children:
                    if part.type == "identifier":
                        import_info.specifiers.append(
                            ImportSpecifier(type=SpecifierType.DEFAULT, local=self._extract_text(content, part))
                        )
                    elif part.type == "string":
                        import_info.source = _unquote(self._extract_text(content, part))
        return import_info

    def _extract_import_clause(self, clause: Node, content: bytes) -> list[ImportSpecifier]:
        specifiers: list[ImportSpecifier] = []
        for child in clause.named_children:
            if child.type == "identifier":
                specifiers.append(
                    ImportSpecifier(type=SpecifierType.DEFAULT, local=self._extract_text(content, child))
                )
            elif child.type == "namespace_import":
                for part in child.named_children:
                    if part.type == "identifier":
                        specifiers.append(
                            ImportSpecifier(type=SpecifierType.NAMESPACE, local=self._extract_text(content, part))
                        )
            elif child.type == "named_imports":
                for spec in child.named_children:
                    if spec.type != "import_specifier":
                        continue
                    imported = _unquote(self._extract_text(content, spec.child_by_field_name("name")))
                    alias_node = spec.child_by_field_name("alias")
                    local = self._extract_text(content, alias_node) if alias_node else imported
                    specifiers.append(
                        ImportSpecifier(type=SpecifierType.NAMED, local=local, imported=imported)
                    )
        return specifiers

    def _require_source(self, node: Node | None, content: bytes) -> str | None:
        """Return the module of a ``require('x')`` call, or None."""
        if node is None or node.type != "call_expression":
            return None
        function_node = node.child_by_field_name("function")
        if function_node is None or self._extract_text(content, function_node) != "require":
            return None
        arguments = node.child_by_field_name("arguments")
        if arguments is None:
            return None
        args = [arg for arg in arguments.named_children if arg.type != "comment"]
        if len(args) != 1 or args[0].type not in ("string", "template_string"):
            return None
        return _unquote(self._extract_text(content, args[0]))

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------

    def _extract_export(self, node: Node, content: bytes, structure: CodeStructure) -> None:
        line = self._line(node)
        source_node = node.child_by_field_name("source")
        source = _unquote(self._extract_text(content, source_node)) if source_node else None
        declaration = node.child_by_field_name("declaration")
        value = node.child_by_field_name("value")
        is_default = self._has_child_token(node, "default") or self._has_child_token(node, "=")

        if is_default:
            target = declaration or value
            export = ExportInfo(kind=ExportKind.DEFAULT, line=line)
            if target is not None:
                export.declaration_type = target.type
                if target.type == "identifier":
                    export.name = self._extract_text(content, target)
                else:
                    name_node = target.child_by_field_name("name")
                    if name_node is not None:
                        export.name = self._extract_text(content, name_node)
                        if target.type in FUNCTION_VALUE_TYPES:
                            self._record_value(export.name, target, content, structure, self._line(target))
                        else:
                            self._visit_top_level(target, content, structure)
            structure.exports.append(export)
            return

        if declaration is not None:
            before = self._declared_names(structure)
            self._visit_top_level(declaration, content, structure)
            names = [name for name in self._declared_names(structure) if name not in before]
            structure.exports.append(
                ExportInfo(
                    kind=ExportKind.NAMED,
                    declaration_type=declaration.type,
                    line=line,
                    name=names[0] if len(names) == 1 else None,
                    names=names,
                )
            )
            return

        export_clause = None
        namespace_export = None
        for child in node.named_children:
            if child.type == "export_clause":
                export_clause = child
            elif child.type == "namespace_export":
                namespace_export = child

        if export_clause is not None:
            names: list[str] = []
            reexport_specifiers: list[ImportSpecifier] = []
            for spec in export_clause.named_children:
                if spec.type != "export_specifier":
                    continue
                name = _unquote(self._extract_text(content, spec.child_by_field_name("name")))
                alias_node = spec.child_by_field_name("alias")
                exported = _unquote(self._extract_text(content, alias_node)) if alias_node else name
                names.append(exported)
                reexport_specifiers.append(
                    ImportSpecifier(type=SpecifierType.NAMED, local=exported, imported=name)
                )
            structure.exports.append(
                ExportInfo(kind=ExportKind.NAMED, source=source, line=line, names=names)
            )
            if source:
                structure.imports.append(
                    ImportInfo(source=source, specifiers=reexport_specifiers, line=line)
                )
            return

        # export * from 'x' / export * as ns from 'x'
        export = ExportInfo(kind=ExportKind.ALL, source=source, line=line)
        if namespace_export is not None:
            for part in namespace_export.named_children:
                export.name = _unquote(self._extract_text(content, part))
        structure.exports.append(export)
        if source:
            structure.imports.append(ImportInfo(source=source, line=line))

    @staticmethod
    def _declared_names(structure: CodeStructure) -> list[str]:
        names = [c.name for c in structure.classes]
        names += [f.name for f in structure.functions]
        names += [v.name for v in structure.variables]
        names += [i.name for i in structure.interfaces]
        names += [t.name for t in structure.type_aliases]
        return names

    def _extract_commonjs_statement(self, node: Node, content: bytes, structure: CodeStructure) -> None:
        """Handle ``module.exports = ...``, ``exports.x = ...`` and bare ``require('x')``."""
        expression = node.named_children[0] if node.named_children else None
        if expression is None:
            return

        if expression.type == "call_expression":
            source = self._require_source(expression, content)
            if source is not None:
                structure.imports.append(ImportInfo(source=source, line=self._line(node)))
            return

        if expression.type != "assignment_expression":
            return

        left = self._extract_text(content, expression.child_by_field_name("left"))
        right = expression.child_by_field_name("right")
        line = self._line(node)

        if left == "module.exports" and right is not None:
            if right.type == "object":
                names = self._object_keys(right, content)
                structure.exports.append(
                    ExportInfo(kind=ExportKind.NAMED, declaration_type="object", line=line, names=names)
                )
                return
            export = ExportInfo(kind=ExportKind.DEFAULT, declaration_type=right.type, line=line)
            if right.type == "identifier":
                export.name = self._extract_text(content, right)
            else:
                name_node = right.child_by_field_name("name")
                if name_node is not None:
                    export.name = self._extract_text(content, name_node)
                    self._record_value(export.name, right, content, structure, line)
            structure.exports.append(export)
            return

        for prefix in ("module.exports.", "exports."):
            if left.startswith(prefix):
                name = left[len(prefix):]
                if not name or "." in name:
                    return
                structure.exports.append(
                    ExportInfo(
                        kind=ExportKind.NAMED,
                        declaration_type=right.type if right is not None else None,
                        line=line,
                        name=name,
                        names=[name],
                    )
                )
                if right is not None and right.type in FUNCTION_VALUE_TYPES + ("class",):
                    self._record_value(name, right, content, structure, line)
                return

    def _object_keys(self, node: Node, content: bytes) -> list[str]:
        names = []
        for child in node.named_children:
            if child.type == "shorthand_property_identifier":
                names.append(self._extract_text(content, child))
            elif child.type in ("pair", "method_definition"):
                key = child.child_by_field_name("key") or child.child_by_field_name("name")
                if key is not None:
                    names.append(_unquote(self._extract_text(content, key)))
        return names

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _extract_declaration(self, node: Node, content: bytes, structure: CodeStructure) -> None:
        """Handle ``const``/``let``/``var`` declarations at the top level."""
        kind = node.children[0].type if node.children else "var"
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            line = self._line(declarator)

            source = self._require_source(value, content)
            if source is not None:
                structure.imports.append(
                    ImportInfo(source=source, specifiers=self._require_bindings(name_node, content), line=line)
                )
                continue

            # const helper = require('./x').helper
            if value is not None and value.type == "member_expression":
                source = self._require_source(value.child_by_field_name("object"), content)
                if source is not None and name_node is not None and name_node.type == "identifier":
                    structure.imports.append(
                        ImportInfo(
                            source=source,
                            specifiers=[
                                ImportSpecifier(
                                    type=SpecifierType.NAMED,
                                    local=self._extract_text(content, name_node),
                                    imported=self._extract_text(content, value.child_by_field_name("property")),
                                )
                            ],
                            line=line,
                        )
                    )
                    continue

            if name_node is None or name_node.type != "identifier":
                continue
            name = self._extract_text(content, name_node)
            if value is not None and value.type in FUNCTION_VALUE_TYPES + ("class",):
                self._record_value(name, value, content, structure, line)
            else:
                structure.variables.append(VariableInfo(name=name, kind=kind, line=line))

    def _require_bindings(self, name_node: Node | None, content: bytes) -> list[ImportSpecifier]:
        if name_node is None:
            return []
        if name_node.type == "identifier":
            return [ImportSpecifier(type=SpecifierType.DEFAULT, local=self._extract_text(content, name_node))]
        specifiers = []
        if name_node.type == "object_pattern":
            for child in name_node.named_children:
                if child.type == "shorthand_property_identifier_pattern":
                    name = self._extract_text(content, child)
                    specifiers.append(ImportSpecifier(type=SpecifierType.NAMED, local=name, imported=name))
                elif child.type == "pair_pattern":
                    imported = _unquote(self._extract_text(content, child.child_by_field_name("key")))
                    local = self._extract_text(content, child.child_by_field_name("value"))
                    specifiers.append(ImportSpecifier(type=SpecifierType.NAMED, local=local, imported=imported))
        return specifiers

    def _record_value(
        self,
        name: str,
        value: Node,
        content: bytes,
        structure: CodeStructure,
        line: int,
    ) -> None:
        """Record a function or class expression bound to ``name``."""
        if value.type == "class":
            class_info = self._extract_class(value, content, name=name)
            if class_info:
                class_info.line = line
                structure.classes.append(class_info)
            return
        structure.functions.append(
            FunctionInfo(
                name=name,
                is_async=self._has_child_token(value, "async"),
                is_generator=value.type == "generator_function" or self._has_child_token(value, "*"),
                line=line,
                parameters=self._extract_parameters(value, content),
            )
        )

    # ------------------------------------------------------------------
    # Classes and functions
    # ------------------------------------------------------------------

    def _extract_class(self, node: Node, content: bytes, name: str | None = None) -> ClassInfo | None:
        """Extract a class declaration or named class expression.

        Args:
            node: class_declaration, abstract_class_declaration or class node
            content: Raw file content as bytes
            name: Binding name for anonymous class expressions

        Returns:
            ClassInfo, or None for an anonymous class with no binding
        """
        name_node = node.child_by_field_name("name")
        if name is None and name_node is not None:
            name = self._extract_text(content, name_node)
        if not name:
            return None

        class_info = ClassInfo(
            name=name,
            super_class_name=self._extract_superclass(node, content),
            line=self._line(node),
        )

        body = node.child_by_field_name("body")
        if body is not None:
            for member in body.named_children:
                method = self._extract_member(member, content)
                if method:
                    class_info.methods.append(method)
        return class_info

    def _extract_superclass(self, node: Node, content: bytes) -> str | None:
        heritage = next((c for c in node.named_children if c.type == "class_heritage"), None)
        if heritage is None:
            return None

        # JavaScript: class_heritage -> expression
        # TypeScript: class_heritage -> extends_clause(value) / implements_clause
        for child in heritage.named_children:
            if child.type == "extends_clause":
                value = child.child_by_field_name("value")
                if value is None and child.named_children:
                    value = child.named_children[0]
                return self._superclass_name(value, content)
            if child.type == "implements_clause":
                continue
            return self._superclass_name(child, content)
        return None

    def _superclass_name(self, node: Node | None, content: bytes) -> str | None:
        if node is None:
            return None
        if node.type in ("identifier", "member_expression", "type_identifier"):
            return self._extract_text(content, node)
        return None

    def _extract_member(self, node: Node, content: bytes) -> MethodInfo | None:
        if node.type in METHOD_NODE_TYPES:
            name = self._extract_text(content, node.child_by_field_name("name"))
            if self._has_child_token(node, "get"):
                kind = MethodKind.GET
            elif self._has_child_token(node, "set"):
                kind = MethodKind.SET
            elif name == "constructor":
                kind = MethodKind.CONSTRUCTOR
            else:
                kind = MethodKind.METHOD
            return MethodInfo(
                name=name,
                kind=kind,
                is_static=self._has_child_token(node, "static"),
                is_async=self._has_child_token(node, "async"),
                line=self._line(node),
                parameters=self._extract_parameters(node, content),
            )

        if node.type in FIELD_NODE_TYPES:
            # handler = () => {} / handler = function () {}
            value = node.child_by_field_name("value")
            name_node = node.child_by_field_name("property") or node.child_by_field_name("name")
            if value is None or name_node is None or value.type not in FUNCTION_VALUE_TYPES:
                return None
            return MethodInfo(
                name=self._extract_text(content, name_node),
                kind=MethodKind.METHOD,
                is_static=self._has_child_token(node, "static"),
                is_async=self._has_child_token(value, "async"),
                line=self._line(node),
                parameters=self._extract_parameters(value, content),
            )
        return None

    def _extract_function(self, node: Node, content: bytes) -> FunctionInfo | None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        return FunctionInfo(
            name=self._extract_text(content, name_node),
            is_async=self._has_child_token(node, "async"),
            is_generator=(
                node.type == "generator_function_declaration" or self._has_child_token(node, "*")
            ),
            line=self._line(node),
            parameters=self._extract_parameters(node, content),
        )

    def _extract_parameters(self, node: Node, content: bytes) -> list[ParameterInfo]:
        """Extract parameters of a function-like node.

        Arrow functions with a single bare parameter expose it through the
        ``parameter`` field instead of ``parameters``.
        """
        single = node.child_by_field_name("parameter")
        if single is not None:
            return [ParameterInfo(name=self._extract_text(content, single))]

        params_node = node.child_by_field_name("parameters")
        if params_node is None:
            return []

        parameters = []
        for param in params_node.named_children:
            if param.type == "comment":
                continue
            if param.type in ("required_parameter", "optional_parameter"):
                pattern = param.child_by_field_name("pattern")
                type_node = param.child_by_field_name("type")
                annotation = self._extract_text(content, type_node).lstrip(":").strip() if type_node else None
                parameters.append(
                    ParameterInfo(name=self._extract_text(content, pattern), type_annotation=annotation or None)
                )
            elif param.type == "assignment_pattern":
                parameters.append(
                    ParameterInfo(name=self._extract_text(content, param.child_by_field_name("left")))
                )
            else:
                parameters.append(ParameterInfo(name=self._extract_text(content, param)))
        return parameters

    def _extract_interface(self, node: Node, content: bytes) -> InterfaceInfo:
        interface = InterfaceInfo(
            name=self._extract_text(content, node.child_by_field_name("name")),
            line=self._line(node),
        )
        for child in node.named_children:
            if child.type == "extends_type_clause":
                for parent in child.named_children:
                    interface.extends.append(self._extract_text(content, parent))
        return interface

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def _collect_calls(self, root: Node, content: bytes, structure: CodeStructure) -> None:
        """Record every call expression in the file, in source order."""
        stack = [root]
        calls: list[CallInfo] = []
        while stack:
            node = stack.pop()
            if node.type == "call_expression":
                callee = self._callee_name(node.child_by_field_name("function"), content)
                if callee:
                    arguments = node.child_by_field_name("arguments")
                    if arguments is None:
                        count = 0
                    elif arguments.type == "template_string":
                        count = 1
                    else:
                        count = sum(1 for arg in arguments.named_children if arg.type != "comment")
                    calls.append(CallInfo(callee_name=callee, line=self._line(node), argument_count=count))
            stack.extend(reversed(node.children))
        calls.sort(key=lambda c: c.line)
        structure.calls.extend(calls)

    def _callee_name(self, node: Node | None, content: bytes) -> str | None:
        """Dotted name of a callee (``foo``, ``obj.method``, ``this.a.b``)."""
        if node is None:
            return None
        if node.type in ("identifier", "this", "super", "property_identifier"):
            return self._extract_text(content, node)
        if node.type == "member_expression":
            obj = self._callee_name(node.child_by_field_name("object"), content)
            prop = node.child_by_field_name("property")
            if obj is None or prop is None:
                return None
            return f"{obj}.{self._extract_text(content, prop)}"
        if node.type == "parenthesized_expression" and node.named_children:
            return self._callee_name(node.named_children[0], content)
        return None


class TypeScriptStructureExtractor(JavaScriptStructureExtractor):
    """TypeScript structure extractor.

    Adds nothing to the JavaScript walker beyond its language tag: interfaces,
    type aliases, enums, abstract classes and typed parameters are recognised
    by the shared walker whenever the grammar produces them.
    """

    @property
    def language(self) -> str:
        return "typescript"
