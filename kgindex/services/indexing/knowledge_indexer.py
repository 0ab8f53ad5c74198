"""Knowledge indexer - orchestrates one indexing run.

A run proceeds in four phases:

  1. Discovery: walk the root, apply ignore rules, skip binary, oversized and
     empty files.
  2. Per file (concurrently, bounded by a semaphore): read the text, then
     chunk it and extract its structure at the same time (extraction runs in
     a worker thread). Chunks are embedded and written to the vector store;
     the document and its structure are written to the graph store.
  3. Barrier: once every file is done, the symbol registry is built from all
     structures and the cross-file resolver derives the relationship edges.
  4. Edges are persisted between the entities created in phase 2, and a
     run-level dependency-graph entity links every indexed document.

Failures are caught per file, per chunk and per edge and end up in the
returned tally; only a missing root propagates to the caller.
"""

import asyncio
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from kgindex.chunking import Chunk, SemanticChunker
from kgindex.core.config import Settings
from kgindex.graph import (
    CrossFileResolver,
    FileStructure,
    RelationshipEdge,
    SymbolKind,
    SymbolRef,
    SymbolRegistry,
)
from kgindex.models import FileOutcome, FileStatus, IndexingResult, IndexingStats
from kgindex.parser.discovery import FileDiscovery, FileRecord, SkipReason
from kgindex.parser.ignore_rules import IgnoreRules
from kgindex.parser.structure import CodeStructure, extract_structure
from kgindex.services.storage.protocols import Embedder, GraphSink, VectorPoint, VectorSink
from kgindex.utils.logging import Logger

EntityKey = tuple[str, SymbolKind, str, int | None]


@dataclass
class _RunState:
    """Mutable state shared by the per-file tasks of one run."""
    run_id: str
    logger: Logger
    document_ids: dict[str, str] = field(default_factory=dict)
    entity_ids: dict[EntityKey, str] = field(default_factory=dict)
    entities_created: int = 0


@dataclass
class _FileResult:
    record: FileRecord
    outcome: FileOutcome
    structure: CodeStructure | None = None


class KnowledgeIndexer:
    """Indexes a source tree into a vector store and a knowledge graph.

    Every collaborator is injected; the caller owns their lifecycle. Without
    an embedder or vector sink no vectors are stored, and without a graph
    sink no entities or edges are written, but chunking, extraction and
    resolution still run and their results are returned.

    Args:
        chunker: Semantic chunker used for every file
        embedder: Embedding service for chunk texts
        vector_sink: Store for embedded chunks
        graph_sink: Store for entities and edges
        collection: Vector collection name
        ignore_file_name: Ignore file read from the root when no explicit
            patterns are given
        max_file_size_bytes: Files above this size are skipped
        max_concurrent_files: Files processed at the same time
        skip_indexed: Probe the vector store and skip files already in it
        project_name: Name recorded on the dependency-graph entity
    """

    def __init__(
        self,
        chunker: SemanticChunker,
        embedder: Embedder | None = None,
        vector_sink: VectorSink | None = None,
        graph_sink: GraphSink | None = None,
        collection: str = "codebase",
        ignore_file_name: str = ".gitignore",
        max_file_size_bytes: int = 10 * 1024 * 1024,
        max_concurrent_files: int = 8,
        skip_indexed: bool = True,
        project_name: str | None = None,
    ):
        self.chunker = chunker
        self.embedder = embedder
        self.vector_sink = vector_sink
        self.graph_sink = graph_sink
        self.collection = collection
        self.ignore_file_name = ignore_file_name
        self.max_file_size_bytes = max_file_size_bytes
        self.max_concurrent_files = max_concurrent_files
        self.skip_indexed = skip_indexed
        self.project_name = project_name

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        chunker: SemanticChunker,
        embedder: Embedder | None = None,
        vector_sink: VectorSink | None = None,
        graph_sink: GraphSink | None = None,
        **kwargs,
    ) -> "KnowledgeIndexer":
        return cls(
            chunker=chunker,
            embedder=embedder,
            vector_sink=vector_sink,
            graph_sink=graph_sink,
            collection=settings.COLLECTION_NAME,
            ignore_file_name=settings.IGNORE_FILE_NAME,
            max_file_size_bytes=settings.MAX_FILE_SIZE_BYTES,
            max_concurrent_files=settings.MAX_CONCURRENT_FILES,
            **kwargs,
        )

    async def index(
        self,
        root: Path | str,
        ignore_patterns: list[str] | None = None,
    ) -> IndexingResult:
        """Run the full pipeline on ``root``.

        Args:
            root: Directory (or single file) to index
            ignore_patterns: Explicit ignore patterns; None reads the ignore
                file from the root, an empty list selects the defaults

        Returns:
            IndexingResult with the per-file tally, structures and edges

        Raises:
            FileNotFoundError: If ``root`` does not exist
        """
        root = Path(root).resolve()
        if not root.exists():
            raise FileNotFoundError(f"Path not found: {root}")

        run_id = uuid.uuid4().hex
        state = _RunState(
            run_id=run_id,
            logger=Logger(__name__, run_context={"run_id": run_id, "root": str(root)}),
        )
        state.logger.info(f"Starting indexing run for {root}")

        if ignore_patterns is not None:
            rules = IgnoreRules(ignore_patterns)
        else:
            search_dir = root if root.is_dir() else root.parent
            rules = IgnoreRules.from_directory(search_dir, self.ignore_file_name)

        discovery = await asyncio.to_thread(
            FileDiscovery(rules, self.max_file_size_bytes).discover, root
        )

        stats = IndexingStats(total_directories=discovery.total_directories)
        result = IndexingResult(root=discovery.root, run_id=run_id, stats=stats)
        for skipped in discovery.skipped:
            outcome = FileOutcome(
                path=skipped.path,
                status=FileStatus.SKIPPED,
                reason=str(skipped.reason),
            )
            result.outcomes.append(outcome)
            stats.record(outcome)

        semaphore = asyncio.Semaphore(self.max_concurrent_files)

        async def bounded(record: FileRecord) -> _FileResult:
            async with semaphore:
                return await self._process_file(record, state)

        file_results = await asyncio.gather(*(bounded(record) for record in discovery.files))

        for file_result in file_results:
            result.outcomes.append(file_result.outcome)
            stats.record(file_result.outcome)
            if file_result.structure is not None:
                result.structures[file_result.record.path] = file_result.structure
        result.outcomes.sort(key=lambda o: o.path)

        # Barrier: the registry needs every file's structure, whatever
        # happened to its vectors and entities
        registry = SymbolRegistry.build(
            (
                FileStructure(r.record.path, r.structure, r.record.absolute_path)
                for r in file_results
            ),
            root=discovery.root,
        )
        resolver = CrossFileResolver(registry)
        result.edges = resolver.resolve()
        for failed in resolver.failed_files:
            stats.errors.append(f"{failed}: relationship resolution failed")
        stats.edges_by_type = dict(Counter(str(edge.edge_type) for edge in result.edges))

        if self.graph_sink is not None:
            stats.edges_persisted = await self._persist_edges(result.edges, state)
            await self._create_dependency_graph(file_results, state)
        stats.total_entities = state.entities_created

        state.logger.info(
            f"Indexing complete: {stats.indexed_files} indexed, {stats.skipped_files} skipped, "
            f"{stats.failed_files} failed, {stats.total_chunks} chunks, {len(result.edges)} edges"
        )
        return result

    # ------------------------------------------------------------------
    # Per-file processing
    # ------------------------------------------------------------------

    async def _process_file(self, record: FileRecord, state: _RunState) -> _FileResult:
        try:
            return await self._index_file(record, state)
        except Exception as e:
            state.logger.error(f"Failed to index {record.path}: {e}")
            return _FileResult(
                record,
                FileOutcome(path=record.path, status=FileStatus.FAILED, reason=str(e)),
            )

    async def _index_file(self, record: FileRecord, state: _RunState) -> _FileResult:
        text = await asyncio.to_thread(
            record.absolute_path.read_text, encoding="utf-8", errors="replace"
        )
        if not text.strip():
            return _FileResult(
                record,
                FileOutcome(path=record.path, status=FileStatus.SKIPPED, reason=str(SkipReason.EMPTY)),
            )

        if await self._already_indexed(record, state):
            # Still extracted: the registry is rebuilt from every file each run
            structure = await asyncio.to_thread(extract_structure, record.path, text)
            return _FileResult(
                record,
                FileOutcome(
                    path=record.path,
                    status=FileStatus.SKIPPED,
                    reason=str(SkipReason.ALREADY_INDEXED),
                    has_structure=structure is not None,
                ),
                structure,
            )

        chunks, structure = await asyncio.gather(
            self.chunker.chunk(text, record.category, record.path),
            asyncio.to_thread(extract_structure, record.path, text),
        )

        outcome = FileOutcome(
            path=record.path,
            status=FileStatus.INDEXED,
            chunks=len(chunks),
            has_structure=structure is not None,
        )

        try:
            points = await self._embed_chunks(record, chunks, outcome, state)
            if points and self.vector_sink is not None:
                await self.vector_sink.upsert_points(self.collection, points)
                outcome.vectors_stored = len(points)

            if self.graph_sink is not None:
                await self._persist_document(record, chunks, structure, state)
        except Exception as e:
            # The structure still takes part in resolution
            state.logger.error(f"Failed to store {record.path}: {e}")
            outcome.status = FileStatus.FAILED
            outcome.reason = str(e)
            return _FileResult(record, outcome, structure)

        state.logger.debug(
            f"Indexed {record.path}: {len(chunks)} chunks, {outcome.vectors_stored} vectors"
        )
        return _FileResult(record, outcome, structure)

    async def _already_indexed(self, record: FileRecord, state: _RunState) -> bool:
        if not self.skip_indexed or self.vector_sink is None:
            return False
        if await self.vector_sink.has_file(self.collection, record.path):
            state.logger.info(f"Skipping already indexed file {record.path}")
            return True
        return False

    async def _embed_chunks(
        self,
        record: FileRecord,
        chunks: list[Chunk],
        outcome: FileOutcome,
        state: _RunState,
    ) -> list[VectorPoint]:
        if self.embedder is None:
            return []

        indexed_at = datetime.now(timezone.utc).isoformat()
        points = []
        for index, chunk in enumerate(chunks):
            try:
                vector = await self.embedder.embed(chunk.text)
            except Exception as e:
                # One bad chunk never aborts the file
                state.logger.warning(f"Failed to embed chunk {index} of {record.path}: {e}")
                outcome.embedding_failures += 1
                continue

            points.append(
                VectorPoint(
                    id=str(uuid.uuid5(uuid.NAMESPACE_URL, f"{record.path}#{index}")),
                    vector=vector,
                    payload={
                        "file_path": record.path,
                        "full_path": str(record.absolute_path),
                        "file_name": record.absolute_path.name,
                        "file_type": str(record.category),
                        "chunk_index": index,
                        "chunk_text": chunk.text,
                        "content_length": len(chunk.text),
                        "start_offset": chunk.start_offset,
                        "end_offset": chunk.end_offset,
                        "indexed_at": indexed_at,
                    },
                )
            )
        return points

    # ------------------------------------------------------------------
    # Graph entities
    # ------------------------------------------------------------------

    async def _create_entity(self, state: _RunState, label: str, properties: dict[str, Any]) -> str:
        entity_id = await self.graph_sink.create_entity(label, properties)
        state.entities_created += 1
        return entity_id

    async def _persist_document(
        self,
        record: FileRecord,
        chunks: list[Chunk],
        structure: CodeStructure | None,
        state: _RunState,
    ) -> None:
        document_id = await self._create_entity(
            state,
            "document",
            {
                "name": record.absolute_path.name,
                "file_path": record.path,
                "full_path": str(record.absolute_path),
                "file_type": str(record.category),
                "language": structure.language if structure else None,
                "size_bytes": record.size_bytes,
                "chunk_count": len(chunks),
                "indexed_at": datetime.now(timezone.utc).isoformat(),
            },
        )
        state.document_ids[record.path] = document_id

        if structure is not None:
            await self._persist_structure(record.path, document_id, structure, state)

    async def _persist_structure(
        self,
        path: str,
        document_id: str,
        structure: CodeStructure,
        state: _RunState,
    ) -> None:
        sink = self.graph_sink

        for imp in structure.imports:
            import_id = await self._create_entity(
                state,
                "import",
                {
                    "name": f"import-{imp.source}",
                    "source_module": imp.source,
                    "line_number": imp.line,
                    "specifiers": [
                        {"type": str(s.type), "local": s.local, "imported": s.imported}
                        for s in imp.specifiers
                    ],
                    "language": structure.language,
                    "file_path": path,
                },
            )
            await sink.create_edge(document_id, import_id, "IMPORTS", {"line": imp.line})
            for spec in imp.specifiers:
                state.entity_ids[(path, SymbolKind.IMPORT, spec.local, imp.line)] = import_id

        for class_info in structure.classes:
            class_id = await self._create_entity(
                state,
                "class",
                {
                    "name": class_info.name,
                    "line_number": class_info.line,
                    "super_class": class_info.super_class_name,
                    "method_count": len(class_info.methods),
                    "language": structure.language,
                    "file_path": path,
                },
            )
            await sink.create_edge(
                document_id, class_id, "DEFINES", {"line": class_info.line, "entity_type": "class"}
            )
            state.entity_ids[(path, SymbolKind.CLASS, class_info.name, class_info.line)] = class_id

            for method in class_info.methods:
                method_id = await self._create_entity(
                    state,
                    "method",
                    {
                        "name": method.name,
                        "line_number": method.line,
                        "method_kind": str(method.kind),
                        "is_static": method.is_static,
                        "is_async": method.is_async,
                        "parameter_count": len(method.parameters),
                        "parameters": [p.name for p in method.parameters],
                        "language": structure.language,
                    },
                )
                await sink.create_edge(
                    class_id, method_id, "HAS_METHOD", {"line": method.line, "kind": str(method.kind)}
                )

        for function in structure.functions:
            function_id = await self._create_entity(
                state,
                "function",
                {
                    "name": function.name,
                    "line_number": function.line,
                    "is_async": function.is_async,
                    "is_generator": function.is_generator,
                    "parameter_count": len(function.parameters),
                    "parameters": [p.name for p in function.parameters],
                    "language": structure.language,
                    "file_path": path,
                },
            )
            await sink.create_edge(
                document_id, function_id, "DEFINES", {"line": function.line, "entity_type": "function"}
            )
            state.entity_ids[(path, SymbolKind.FUNCTION, function.name, function.line)] = function_id

        call_counts = Counter(call.callee_name for call in structure.calls)
        for callee_name, count in call_counts.items():
            call_id = await self._create_entity(
                state,
                "function_call",
                {
                    "name": f"call-{callee_name}",
                    "function_name": callee_name,
                    "call_count": count,
                    "language": structure.language,
                    "file_path": path,
                },
            )
            await sink.create_edge(document_id, call_id, "CALLS", {"call_count": count})
            state.entity_ids[(path, SymbolKind.CALL, callee_name, None)] = call_id

    def _entity_for(self, ref: SymbolRef, state: _RunState) -> str | None:
        """Entity id for a resolved endpoint, falling back to its document."""
        if ref.kind == SymbolKind.FILE:
            return state.document_ids.get(ref.file_path)
        line = None if ref.kind == SymbolKind.CALL else ref.line
        entity_id = state.entity_ids.get((ref.file_path, ref.kind, ref.name, line))
        return entity_id or state.document_ids.get(ref.file_path)

    async def _persist_edges(self, edges: list[RelationshipEdge], state: _RunState) -> int:
        persisted = 0
        for edge in edges:
            from_id = self._entity_for(edge.source, state)
            to_id = self._entity_for(edge.target, state)
            if from_id is None or to_id is None:
                # Endpoint file was skipped this run (e.g. already indexed)
                continue
            try:
                await self.graph_sink.create_edge(from_id, to_id, str(edge.edge_type), edge.properties)
                persisted += 1
            except Exception as e:
                state.logger.warning(
                    f"Failed to persist {edge.edge_type} edge "
                    f"{edge.source.file_path}:{edge.source.name} -> {edge.target.file_path}:{edge.target.name}: {e}"
                )
        return persisted

    async def _create_dependency_graph(self, file_results: list[_FileResult], state: _RunState) -> None:
        indexed = [r for r in file_results if r.record.path in state.document_ids]
        if not indexed:
            return

        try:
            graph_id = await self._create_entity(
                state,
                "dependency_graph",
                {
                    "name": f"{self.project_name or 'project'}-dependency-graph",
                    "project_name": self.project_name,
                    "file_count": len(indexed),
                    "run_id": state.run_id,
                    "created_at": datetime.now(timezone.utc).isoformat(),
                    "graph_type": "project_dependencies",
                },
            )
            for file_result in indexed:
                await self.graph_sink.create_edge(
                    graph_id,
                    state.document_ids[file_result.record.path],
                    "INCLUDES_FILE",
                    {"file_type": str(file_result.record.category)},
                )
        except Exception as e:
            state.logger.warning(f"Failed to create dependency graph entity: {e}")
