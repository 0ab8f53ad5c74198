"""Base interface for LLM clients."""
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients."""

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 1024,
        temperature: float = 0.0,
        timeout: int = 60
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout

    @abstractmethod
    async def generate_completion(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Generate completion from the LLM.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            **kwargs: Per-call overrides (max_tokens, temperature)

        Returns:
            Dict with standardized response:
            {
                "content": str,
                "usage": {
                    "input_tokens": int,
                    "output_tokens": int
                },
                "model": str,
                "stop_reason": str
            }
        """
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'claude')."""
        pass

    async def close(self) -> None:
        """Release network resources held by the client."""
        return None
