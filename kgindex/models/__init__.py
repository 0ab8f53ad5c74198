from .indexing_stats import FileOutcome, FileStatus, IndexingResult, IndexingStats

__all__ = ["FileOutcome", "FileStatus", "IndexingResult", "IndexingStats"]
