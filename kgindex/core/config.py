import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Chunking
    CHUNK_SIZE: int = 2000
    CHUNK_OVERLAP: int = 200
    MIN_CHUNK_SIZE: int = 100
    MAX_CHUNK_SIZE: int = 4000
    SINGLE_CHUNK_THRESHOLD: int = 1000
    MIN_RETENTION_RATIO: float = 0.8
    ADVISOR_PREVIEW_CHARS: int = 3000
    ADVISOR_TIMEOUT_SECONDS: float = 30.0

    # Discovery / indexing limits
    MAX_FILE_SIZE_BYTES: int = 10 * 1024 * 1024
    VECTOR_BATCH_SIZE: int = 100
    MAX_CONCURRENT_FILES: int = 8
    IGNORE_FILE_NAME: str = ".gitignore"
    PYTHON_EXTRACTION_STRATEGY: str = "tree_sitter"

    # Embeddings
    OLLAMA_HOST: str = os.getenv("OLLAMA_HOST", "http://localhost:11434")
    EMBEDDING_MODEL: str = os.getenv("EMBEDDING_MODEL", "nomic-embed-text")
    EMBEDDING_DIMENSIONS: int = 768
    EMBEDDING_TIMEOUT_SECONDS: float = 60.0

    # Boundary advisor
    ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")
    BOUNDARY_MODEL: str = os.getenv("BOUNDARY_MODEL", "claude-3-5-haiku-20241022")
    ENABLE_BOUNDARY_ADVISOR: bool = True

    # Stores
    NEO4J_URI: str = os.getenv("NEO4J_URI", "bolt://localhost:7687")
    NEO4J_USERNAME: str = os.getenv("NEO4J_USERNAME", "neo4j")
    NEO4J_PASSWORD: str = os.getenv("NEO4J_PASSWORD", "")
    NEO4J_DATABASE: str = os.getenv("NEO4J_DATABASE", "neo4j")
    QDRANT_URL: str = os.getenv("QDRANT_URL", "http://localhost:6333")
    COLLECTION_NAME: str = os.getenv("COLLECTION_NAME", "codebase")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
