from .ollama_client import EmbeddingError, OllamaEmbeddingClient

__all__ = ["EmbeddingError", "OllamaEmbeddingClient"]
