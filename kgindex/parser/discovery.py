"""File discovery for an indexing run.

Walks the indexed root depth-first, pruning excluded directories before
descending into them, and produces immutable FileRecord entries for every
eligible file plus a SkippedFile entry (with a reason) for everything that
was looked at and left out.
"""

import enum
from dataclasses import dataclass, field
from pathlib import Path

from kgindex.parser.file_types import FileCategory, classify, is_binary_file
from kgindex.parser.ignore_rules import IgnoreRules
from kgindex.utils.logging import get_logger

logger = get_logger(__name__)


class SkipReason(enum.StrEnum):
    """Why a file was excluded from indexing. Skips are not failures."""

    IGNORED = "ignored"
    BINARY = "binary"
    OVERSIZED = "oversized"
    EMPTY = "empty"
    UNREADABLE = "unreadable"
    ALREADY_INDEXED = "already_indexed"


@dataclass(frozen=True)
class FileRecord:
    """A unit of indexing.

    Attributes:
        path: POSIX path relative to the indexed root, like 'src/app.js'
        absolute_path: Resolved absolute path on disk
        category: Coarse content category
        size_bytes: File size at discovery time
        mtime: Modification time (seconds since the epoch)
    """
    path: str
    absolute_path: Path
    category: FileCategory
    size_bytes: int
    mtime: float


@dataclass(frozen=True)
class SkippedFile:
    path: str
    reason: SkipReason
    detail: str | None = None


@dataclass
class DiscoveryResult:
    """Outcome of walking one root."""
    root: Path
    files: list[FileRecord] = field(default_factory=list)
    skipped: list[SkippedFile] = field(default_factory=list)
    total_directories: int = 0


class FileDiscovery:
    """Discovers indexable files under a root directory.

    Args:
        ignore_rules: Rules deciding which paths are excluded
        max_file_size_bytes: Files above this size are skipped before reading
    """

    def __init__(self, ignore_rules: IgnoreRules, max_file_size_bytes: int = 10 * 1024 * 1024):
        self.ignore_rules = ignore_rules
        self.max_file_size_bytes = max_file_size_bytes

    def discover(self, root: Path) -> DiscoveryResult:
        """Walk ``root`` and classify every file below it.

        ``root`` may also be a single file, which is then the only candidate.

        Raises:
            FileNotFoundError: If ``root`` does not exist
        """
        root = Path(root).resolve()
        if not root.exists():
            raise FileNotFoundError(f"Path not found: {root}")

        if root.is_file():
            result = DiscoveryResult(root=root.parent)
            self._consider_file(root, root.name, result)
            return result

        result = DiscoveryResult(root=root)
        self._walk(root, root, result)
        logger.info(
            f"Discovered {len(result.files)} files under {root} "
            f"({len(result.skipped)} skipped, {result.total_directories} directories)"
        )
        return result

    def _walk(self, root: Path, dir_path: Path, result: DiscoveryResult) -> None:
        try:
            entries = sorted(dir_path.iterdir(), key=lambda p: (not p.is_dir(), p.name.lower()))
        except PermissionError as e:
            logger.warning(f"Permission denied accessing {dir_path}: {e}")
            return
        except OSError as e:
            logger.warning(f"Error accessing directory {dir_path}: {e}")
            return

        for entry in entries:
            relative_path = entry.relative_to(root).as_posix()

            if entry.is_dir():
                if entry.is_symlink():
                    continue
                # Excluded directories are pruned, never listed
                if self.ignore_rules.is_ignored(relative_path, is_dir=True):
                    logger.debug(f"Pruned directory {relative_path}")
                    continue
                result.total_directories += 1
                self._walk(root, entry, result)
            elif entry.is_file():
                self._consider_file(entry, relative_path, result)

    def _consider_file(self, entry: Path, relative_path: str, result: DiscoveryResult) -> None:
        if self.ignore_rules.is_ignored(relative_path, is_dir=False):
            result.skipped.append(SkippedFile(relative_path, SkipReason.IGNORED))
            return

        try:
            stat = entry.stat()
        except OSError as e:
            result.skipped.append(SkippedFile(relative_path, SkipReason.UNREADABLE, str(e)))
            return

        if stat.st_size > self.max_file_size_bytes:
            logger.warning(
                f"Skipping large file {relative_path}: "
                f"{stat.st_size} bytes > {self.max_file_size_bytes} bytes"
            )
            result.skipped.append(
                SkippedFile(relative_path, SkipReason.OVERSIZED, f"{stat.st_size} bytes")
            )
            return

        if stat.st_size == 0:
            result.skipped.append(SkippedFile(relative_path, SkipReason.EMPTY))
            return

        if is_binary_file(entry):
            result.skipped.append(SkippedFile(relative_path, SkipReason.BINARY))
            return

        result.files.append(
            FileRecord(
                path=relative_path,
                absolute_path=entry.resolve(),
                category=classify(entry),
                size_bytes=stat.st_size,
                mtime=stat.st_mtime,
            )
        )
