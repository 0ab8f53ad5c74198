"""
Tests for FileDiscovery: pruning, skip reasons and record contents.
"""

import pytest

from kgindex.parser.discovery import FileDiscovery, SkipReason
from kgindex.parser.file_types import FileCategory
from kgindex.parser.ignore_rules import IgnoreRules


def _skips(result):
    return {skipped.path: skipped.reason for skipped in result.skipped}


class TestFileDiscovery:
    def test_discovers_text_files_with_relative_posix_paths(self, make_tree):
        root = make_tree({
            "src/app.js": "console.log('hi')\n",
            "src/util/helpers.py": "def f():\n    pass\n",
            "README.md": "# Title\n",
        })

        result = FileDiscovery(IgnoreRules([])).discover(root)

        paths = [record.path for record in result.files]
        assert sorted(paths) == ["README.md", "src/app.js", "src/util/helpers.py"]
        by_path = {record.path: record for record in result.files}
        assert by_path["src/app.js"].category == FileCategory.CODE
        assert by_path["README.md"].category == FileCategory.MARKUP
        assert by_path["src/app.js"].absolute_path == (root / "src/app.js").resolve()
        assert result.total_directories == 2

    def test_excluded_directories_are_pruned(self, make_tree):
        root = make_tree({
            "node_modules/lib/index.js": "module.exports = 1\n",
            "src/index.js": "export default 1\n",
        })

        result = FileDiscovery(IgnoreRules([])).discover(root)

        assert [record.path for record in result.files] == ["src/index.js"]
        # Pruned directories are never descended into, so nothing below is listed
        assert not any(s.path.startswith("node_modules") for s in result.skipped)

    def test_skip_reasons(self, make_tree):
        root = make_tree({
            "debug.log": "noise\n",
            "image.bin": b"\x00\x01\x02binary",
            "empty.txt": "",
            "big.txt": "x" * 2048,
            "ok.txt": "fine\n",
        })

        result = FileDiscovery(IgnoreRules([]), max_file_size_bytes=1024).discover(root)

        assert [record.path for record in result.files] == ["ok.txt"]
        assert _skips(result) == {
            "debug.log": SkipReason.IGNORED,
            "image.bin": SkipReason.BINARY,
            "empty.txt": SkipReason.EMPTY,
            "big.txt": SkipReason.OVERSIZED,
        }

    def test_project_ignore_file(self, make_tree):
        root = make_tree({
            ".gitignore": "generated/\n",
            "generated/out.js": "x\n",
            "src/in.js": "y\n",
        })

        result = FileDiscovery(IgnoreRules.from_directory(root)).discover(root)

        paths = [record.path for record in result.files]
        assert "src/in.js" in paths
        assert "generated/out.js" not in paths

    def test_single_file_root(self, make_tree):
        root = make_tree({"only.py": "x = 1\n"})

        result = FileDiscovery(IgnoreRules([])).discover(root / "only.py")

        assert [record.path for record in result.files] == ["only.py"]
        assert result.root == root.resolve()

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FileDiscovery(IgnoreRules([])).discover(tmp_path / "nope")
