import enum
from dataclasses import dataclass, field
from pathlib import Path

from kgindex.graph.graph_types import RelationshipEdge
from kgindex.parser.structure.models import CodeStructure


class FileStatus(enum.StrEnum):
    INDEXED = "indexed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class FileOutcome:
    """What happened to one file during a run.

    Attributes:
        path: Path relative to the indexed root
        status: Indexed, skipped or failed
        reason: Skip reason or failure message
        chunks: Number of chunks produced
        vectors_stored: Number of chunks embedded and stored
        embedding_failures: Chunks whose embedding failed and were left out
        has_structure: Whether structural metadata was extracted
    """
    path: str
    status: FileStatus
    reason: str | None = None
    chunks: int = 0
    vectors_stored: int = 0
    embedding_failures: int = 0
    has_structure: bool = False


@dataclass
class IndexingStats:
    """Statistics collected during one indexing run.

    Attributes:
        total_files: Files discovered, including skipped ones.
        indexed_files: Files chunked (and embedded where a store is configured).
        skipped_files: Files excluded with a reason (ignored, binary, ...).
        failed_files: Files that could not be processed.
        total_directories: Directories walked.
        total_chunks: Chunks produced across all files.
        total_vectors: Chunks embedded and stored.
        files_with_structure: Files with extracted structural metadata.
        total_entities: Graph entities created.
        edges_by_type: Resolved cross-file edges per relationship type.
        edges_persisted: Resolved edges written to the graph store.
        errors: Diagnostic messages for failures encountered during the run.
    """
    total_files: int = 0
    indexed_files: int = 0
    skipped_files: int = 0
    failed_files: int = 0
    total_directories: int = 0
    total_chunks: int = 0
    total_vectors: int = 0
    files_with_structure: int = 0
    total_entities: int = 0
    edges_by_type: dict[str, int] = field(default_factory=dict)
    edges_persisted: int = 0
    errors: list[str] = field(default_factory=list)

    def record(self, outcome: FileOutcome) -> None:
        self.total_files += 1
        if outcome.status == FileStatus.INDEXED:
            self.indexed_files += 1
        elif outcome.status == FileStatus.SKIPPED:
            self.skipped_files += 1
        else:
            self.failed_files += 1
            self.errors.append(f"{outcome.path}: {outcome.reason}")
        self.total_chunks += outcome.chunks
        self.total_vectors += outcome.vectors_stored
        if outcome.has_structure:
            self.files_with_structure += 1


@dataclass
class IndexingResult:
    """Everything a run produced: the tally, the structures and the edges."""
    root: Path
    run_id: str
    stats: IndexingStats
    outcomes: list[FileOutcome] = field(default_factory=list)
    structures: dict[str, CodeStructure] = field(default_factory=dict)
    edges: list[RelationshipEdge] = field(default_factory=list)
