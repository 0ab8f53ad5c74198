"""kg-indexer: index a source tree into a searchable knowledge graph."""

__version__ = "0.1.0"
