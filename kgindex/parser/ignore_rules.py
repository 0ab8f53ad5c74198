"""Gitignore-style path filtering.

Patterns are translated into path-segment aware regular expressions:

  - ``*`` matches within one path segment, ``?`` matches one non-slash char
  - ``**`` matches across any number of segments
  - a leading ``/`` anchors the pattern to the indexed root, otherwise the
    pattern may match at any depth
  - a trailing ``/`` restricts the pattern to directories
  - ``!pattern`` re-includes a path excluded by an earlier pattern

Rules are evaluated in order and the last matching rule decides, as git does.
When a project has no ignore file (or it yields no patterns) a fixed default
exclusion set is used instead.
"""

import re
from dataclasses import dataclass
from pathlib import Path

from kgindex.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    "node_modules",
    ".git",
    "dist",
    "build",
    ".env",
    ".env.*",
    "*.log",
    "*.tmp",
    "*.cache",
    ".DS_Store",
    "Thumbs.db",
    ".vscode",
    ".idea",
    "__pycache__",
    "*.pyc",
    ".pytest_cache",
    "target/",
    "bin/",
    "obj/",
    ".gradle/",
    ".mvn/",
)

# Never indexed, even when a project ignore file forgets to list them
ALWAYS_EXCLUDED_DIRS: frozenset[str] = frozenset({".git"})


def translate_pattern(pattern: str) -> str:
    """Translate the body of a glob pattern into a regular expression fragment."""
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
            continue
        if pattern.startswith("**", i):
            parts.append(".*")
            i += 2
            continue
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
        i += 1
    return "".join(parts)


@dataclass(frozen=True)
class IgnoreRule:
    """A single compiled ignore pattern.

    Attributes:
        pattern: The pattern as written in the ignore file
        regex: Compiled expression matched against POSIX relative paths
        negated: True for ``!`` patterns that re-include a path
        directory_only: True when the pattern ended with ``/``
    """
    pattern: str
    regex: re.Pattern
    negated: bool = False
    directory_only: bool = False

    @classmethod
    def parse(cls, raw: str) -> "IgnoreRule | None":
        """Compile one ignore-file line; blank lines and comments give None."""
        line = raw.strip()
        if not line or line.startswith("#"):
            return None

        negated = line.startswith("!")
        if negated:
            line = line[1:]

        directory_only = line.endswith("/")
        line = line.rstrip("/")

        anchored = line.startswith("/")
        line = line.lstrip("/")
        if not line:
            return None

        prefix = "^" if anchored else "(?:^|/)"
        regex = re.compile(f"{prefix}{translate_pattern(line)}(?:/|$)")
        return cls(
            pattern=raw.strip(),
            regex=regex,
            negated=negated,
            directory_only=directory_only,
        )

    def matches(self, relative_path: str, is_dir: bool) -> bool:
        """Check whether the rule applies to a POSIX path relative to the root."""
        if self.directory_only and not is_dir:
            # Only a parent directory of a file can satisfy a directory rule
            parent, sep, _ = relative_path.rpartition("/")
            if not sep:
                return False
            return self.regex.search(parent) is not None
        return self.regex.search(relative_path) is not None


class IgnoreRules:
    """Ordered set of ignore rules for one indexed root."""

    def __init__(self, patterns: list[str] | None = None):
        self.patterns: list[str] = list(patterns or [])
        self.using_defaults = not self.patterns
        source = DEFAULT_EXCLUDE_PATTERNS if self.using_defaults else self.patterns

        self.rules: list[IgnoreRule] = []
        for pattern in source:
            rule = IgnoreRule.parse(pattern)
            if rule is not None:
                self.rules.append(rule)

    @classmethod
    def from_directory(cls, root: Path, ignore_file_name: str = ".gitignore") -> "IgnoreRules":
        """Load the ignore file at the top of ``root``; fall back to defaults."""
        return cls(load_ignore_patterns(root / ignore_file_name))

    def is_ignored(self, relative_path: str | Path, is_dir: bool = False) -> bool:
        """Decide whether a path relative to the root is excluded.

        Args:
            relative_path: Path relative to the indexed root
            is_dir: Whether the path denotes a directory

        Returns:
            True when the last matching rule excludes the path
        """
        path = Path(relative_path).as_posix().strip("/")
        if not path or path == ".":
            return False
        if set(path.split("/")) & ALWAYS_EXCLUDED_DIRS:
            return True

        ignored = False
        for rule in self.rules:
            if rule.matches(path, is_dir):
                ignored = not rule.negated
        return ignored


def load_ignore_patterns(ignore_file: Path) -> list[str]:
    """Read the patterns of an ignore file.

    Blank lines and ``#`` comments are dropped. A missing or unreadable file
    gives an empty list, which selects the default exclusion set.
    """
    if not ignore_file.is_file():
        return []
    try:
        content = ignore_file.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning(f"Could not read ignore file {ignore_file}: {e}")
        return []

    patterns = []
    for line in content.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            patterns.append(stripped)
    return patterns
