from .indexer_factory import open_knowledge_indexer
from .knowledge_indexer import KnowledgeIndexer

__all__ = ["KnowledgeIndexer", "open_knowledge_indexer"]
