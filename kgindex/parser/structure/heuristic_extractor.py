"""
Heuristic, line-oriented Python structure extractor.

This is the lower-fidelity variant: it recognises ``import``/``from``,
``class``/``def`` headers and call-like tokens with regular expressions and
uses indentation to attach methods to classes. It never parses, so it never
fails, but it accepts lower recall:

  - decorators, multi-line signatures and string literals are not understood
  - a call-like token inside a string or comment is still recorded
  - parameter lists are split on commas without regard to nesting

It is selected with ``PYTHON_EXTRACTION_STRATEGY=heuristic``.
"""

import re
from pathlib import Path

from .base_extractor import StructureExtractor
from .models import (
    CallInfo,
    ClassInfo,
    CodeStructure,
    FunctionInfo,
    ImportInfo,
    ImportSpecifier,
    MethodInfo,
    MethodKind,
    ParameterInfo,
    SpecifierType,
    VariableInfo,
)

IMPORT_RE = re.compile(r"^import\s+(.+)$")
FROM_IMPORT_RE = re.compile(r"^from\s+(\S+)\s+import\s+(.+)$")
CLASS_RE = re.compile(r"^class\s+(\w+)\s*(?:\(([^)]*)\))?\s*:")
DEF_RE = re.compile(r"^(async\s+)?def\s+(\w+)\s*\(([^)]*)\)?")
ASSIGN_RE = re.compile(r"^([A-Za-z_]\w*)\s*(?::[^=]+)?=(?!=)")
CALL_RE = re.compile(r"([A-Za-z_][\w.]*)\s*\(")

KEYWORDS = frozenset({
    "if", "elif", "while", "for", "return", "and", "or", "not", "in", "is",
    "with", "assert", "yield", "await", "print", "lambda", "except", "del",
    "raise", "def", "class", "import", "from", "else",
})


class HeuristicPythonExtractor(StructureExtractor):
    """Regex-based Python extractor; see the module docstring for its limits."""

    @property
    def language(self) -> str:
        return "python"

    def extract(self, file_path: Path | str, content: str) -> CodeStructure:
        structure = self._new_structure(file_path)
        # [class indent, ClassInfo, method indent] of the top-level class whose body is open
        open_class: list | None = None
        pending_import: tuple[str, int, list[str]] | None = None

        for index, raw_line in enumerate(content.split("\n")):
            line_number = index + 1
            stripped = raw_line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            indent = len(raw_line) - len(raw_line.lstrip())

            if pending_import is not None:
                module, line, parts = pending_import
                parts.append(stripped)
                if ")" in stripped:
                    names = " ".join(parts).replace("(", "").replace(")", "")
                    structure.imports.append(self._from_import(module, names, line))
                    pending_import = None
                continue

            if open_class is not None and indent <= open_class[0]:
                open_class = None

            from_match = FROM_IMPORT_RE.match(stripped)
            if from_match:
                module, names = from_match.groups()
                if names.startswith("(") and ")" not in names:
                    pending_import = (module, line_number, [names])
                else:
                    structure.imports.append(
                        self._from_import(module, names.replace("(", "").replace(")", ""), line_number)
                    )
                continue

            import_match = IMPORT_RE.match(stripped)
            if import_match:
                for part in import_match.group(1).split(","):
                    pieces = part.split(" as ")
                    module = pieces[0].strip()
                    local = pieces[1].strip() if len(pieces) > 1 else module
                    if module:
                        structure.imports.append(
                            ImportInfo(
                                source=module,
                                specifiers=[ImportSpecifier(type=SpecifierType.NAMESPACE, local=local)],
                                line=line_number,
                            )
                        )
                continue

            class_match = CLASS_RE.match(stripped)
            if class_match:
                bases = [b.strip() for b in (class_match.group(2) or "").split(",")]
                positional = [b for b in bases if b and "=" not in b]
                class_info = ClassInfo(
                    name=class_match.group(1),
                    super_class_name=positional[0] if positional else None,
                    line=line_number,
                )
                if indent == 0:
                    structure.classes.append(class_info)
                    open_class = [indent, class_info, None]
                continue

            def_match = DEF_RE.match(stripped)
            if def_match:
                is_async = bool(def_match.group(1))
                name = def_match.group(2)
                parameters = self._parameters(def_match.group(3) or "")
                if indent == 0:
                    structure.functions.append(
                        FunctionInfo(name=name, is_async=is_async, line=line_number, parameters=parameters)
                    )
                elif open_class is not None and open_class[2] in (None, indent):
                    open_class[2] = indent
                    open_class[1].methods.append(
                        MethodInfo(
                            name=name,
                            kind=MethodKind.CONSTRUCTOR if name == "__init__" else MethodKind.METHOD,
                            is_async=is_async,
                            line=line_number,
                            parameters=parameters,
                        )
                    )
                continue

            if indent == 0:
                assign_match = ASSIGN_RE.match(stripped)
                if assign_match:
                    structure.variables.append(
                        VariableInfo(name=assign_match.group(1), kind="assignment", line=line_number)
                    )

            for call_match in CALL_RE.finditer(stripped):
                callee = call_match.group(1)
                if callee.split(".")[0] in KEYWORDS:
                    continue
                structure.calls.append(CallInfo(callee_name=callee, line=line_number))

        return structure

    def _from_import(self, module: str, names: str, line: int) -> ImportInfo:
        import_info = ImportInfo(source=module, line=line)
        for part in names.split(","):
            part = part.strip()
            if not part or part == "*":
                continue
            pieces = part.split(" as ")
            imported = pieces[0].strip()
            local = pieces[1].strip() if len(pieces) > 1 else imported
            import_info.specifiers.append(
                ImportSpecifier(type=SpecifierType.NAMED, local=local, imported=imported)
            )
        return import_info

    @staticmethod
    def _parameters(raw: str) -> list[ParameterInfo]:
        parameters = []
        for part in raw.split(","):
            part = part.split("=")[0].strip()
            if not part or part in ("/", "*"):
                continue
            name, _, annotation = part.partition(":")
            parameters.append(
                ParameterInfo(name=name.strip(), type_annotation=annotation.strip() or None)
            )
        return parameters
