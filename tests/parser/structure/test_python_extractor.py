"""
Tests for Python structure extraction (tree-sitter and heuristic strategies).
"""

import pytest

from kgindex.parser.structure import (
    CodeStructure,
    ExportKind,
    HeuristicPythonExtractor,
    MethodKind,
    PythonStructureExtractor,
    SpecifierType,
    extract,
)
from kgindex.parser.tree_sitter_parser import parse_source

SERVICE_PY = """\
from __future__ import annotations

import os.path as osp
import json
from .models import User, Account as Acct
from .. import settings
from typing import *

__all__ = ["UserService", "load_users"]
DEFAULT_LIMIT = 10

if TYPE_CHECKING:
    from .cache import Cache


class UserService(BaseService, metaclass=Meta):
    def __init__(self, repo):
        self.repo = repo

    @property
    def size(self):
        return len(self.repo)

    @staticmethod
    async def fetch(user_id: int, *args, limit: int = 5, **kwargs):
        return await get_user(user_id)


def load_users(path, strict=False):
    with open(path) as f:
        return json.load(f)


def iter_users(users):
    def inner():
        yield 1
    for user in users:
        yield user
"""


@pytest.fixture
def service():
    return extract("python", "app/service.py", SERVICE_PY)


class TestPythonDeclarations:
    def test_counts_match_source(self, service):
        assert [f.name for f in service.functions] == ["load_users", "iter_users"]
        assert [c.name for c in service.classes] == ["UserService"]
        assert len(service.classes[0].methods) == 3

    def test_class_and_methods(self, service):
        user_service = service.classes[0]
        assert user_service.super_class_name == "BaseService"
        assert user_service.line == 16

        init, size, fetch = user_service.methods
        assert init.kind == MethodKind.CONSTRUCTOR
        assert size.kind == MethodKind.GET
        # Decorated definitions report the def line, not the decorator line
        assert size.line == 21
        assert fetch.is_static
        assert fetch.is_async
        assert [(p.name, p.type_annotation) for p in fetch.parameters] == [
            ("user_id", "int"),
            ("*args", None),
            ("limit", "int"),
            ("**kwargs", None),
        ]

    def test_generator_detection_ignores_nested_scopes(self, service):
        load_users, iter_users = service.functions
        assert not load_users.is_generator
        assert iter_users.is_generator
        assert [p.name for p in load_users.parameters] == ["path", "strict"]


class TestPythonImports:
    def test_imports(self, service):
        by_source = {imp.source: imp for imp in service.imports}

        assert "__future__" not in by_source
        osp = by_source["os.path"]
        assert [(s.type, s.local) for s in osp.specifiers] == [(SpecifierType.NAMESPACE, "osp")]
        assert [(s.type, s.local) for s in by_source["json"].specifiers] == [(SpecifierType.NAMESPACE, "json")]

        models = by_source[".models"]
        assert [(s.type, s.local, s.imported) for s in models.specifiers] == [
            (SpecifierType.NAMED, "User", "User"),
            (SpecifierType.NAMED, "Acct", "Account"),
        ]
        assert [s.local for s in by_source[".."].specifiers] == ["settings"]
        assert by_source["typing"].specifiers == []

    def test_imports_inside_if_blocks_count(self, service):
        assert ".cache" in [imp.source for imp in service.imports]

    def test_dunder_all_and_variables(self, service):
        all_export = service.exports[0]
        assert all_export.kind == ExportKind.NAMED
        assert all_export.names == ["UserService", "load_users"]
        assert [v.name for v in service.variables] == ["DEFAULT_LIMIT"]

    def test_calls(self, service):
        callees = [c.callee_name for c in service.calls]
        assert "get_user" in callees
        assert "json.load" in callees
        assert "open" in callees


class TestAssignmentShapes:
    """Module-level assignments are found whether or not the grammar wraps them."""

    @staticmethod
    def assignment_nodes(source: bytes):
        tree, _ = parse_source("python", "shapes.py", source)
        for child in tree.root_node.named_children:
            if child.type == "expression_statement":
                child = child.named_children[0]
            yield child

    def visit(self, source: str) -> CodeStructure:
        content = source.encode()
        extractor = PythonStructureExtractor()
        structure = CodeStructure(language="python", file="shapes.py")
        for node in self.assignment_nodes(content):
            assert node.type in ("assignment", "augmented_assignment")
            # Visit the bare node, as grammars without the wrapper emit it
            extractor._visit_top_level(node, content, structure, depth=1)
        return structure

    def test_bare_assignment_is_a_variable(self):
        structure = self.visit("LIMIT = 10\nNAME: str = \"svc\"\n")
        assert [(v.name, v.line) for v in structure.variables] == [("LIMIT", 1), ("NAME", 2)]

    def test_bare_dunder_all_is_an_export(self):
        structure = self.visit("__all__ = [\"a\", \"b\"]\n__all__ += [\"c\"]\n")
        assert [e.names for e in structure.exports] == [["a", "b"], ["c"]]
        assert structure.variables == [], "__all__ is not a variable"

    def test_augmented_assignment_is_not_a_new_variable(self):
        structure = self.visit("COUNT = 0\nCOUNT += 1\n")
        assert [v.name for v in structure.variables] == ["COUNT"]


class TestPythonParseFailure:
    def test_syntax_error_raises_parse_error(self):
        from kgindex.parser.structure import ParseError

        with pytest.raises(ParseError):
            PythonStructureExtractor().extract("broken.py", "def broken(:\n    pass\n")


class TestHeuristicPythonExtractor:
    def test_regex_strategy_on_simple_module(self):
        source = (
            "import os\n"
            "from .models import (\n"
            "    User,\n"
            "    Account as Acct,\n"
            ")\n"
            "\n"
            "class Repo(Base):\n"
            "    def __init__(self):\n"
            "        pass\n"
            "\n"
            "    async def get(self, key):\n"
            "        return lookup(key)\n"
            "\n"
            "def helper(a, b):\n"
            "    return a\n"
        )

        structure = HeuristicPythonExtractor().extract("repo.py", source)

        assert [imp.source for imp in structure.imports] == ["os", ".models"]
        assert [(s.local, s.imported) for s in structure.imports[1].specifiers] == [
            ("User", "User"),
            ("Acct", "Account"),
        ]
        repo = structure.classes[0]
        assert (repo.name, repo.super_class_name, repo.line) == ("Repo", "Base", 7)
        assert [(m.name, m.kind) for m in repo.methods] == [
            ("__init__", MethodKind.CONSTRUCTOR),
            ("get", MethodKind.METHOD),
        ]
        assert repo.methods[1].is_async
        assert [f.name for f in structure.functions] == ["helper"]
        assert "lookup" in [c.callee_name for c in structure.calls]
