"""Anthropic Claude API client for chunk-boundary advice."""
from typing import Optional, Dict, Any
from anthropic import AsyncAnthropic

from kgindex.core.config import Settings
from kgindex.utils.logging import get_logger

from .base_client import BaseLLMClient

logger = get_logger(__name__)


class ClaudeClient(BaseLLMClient):
    """Wrapper for the Anthropic Claude API with error logging."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-haiku-20241022",
        max_tokens: int = 1024,
        temperature: float = 0.0,
        timeout: int = 60
    ):
        super().__init__(api_key, model, max_tokens, temperature, timeout)
        self.client = AsyncAnthropic(api_key=api_key, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClaudeClient":
        return cls(
            api_key=settings.ANTHROPIC_API_KEY,
            model=settings.BOUNDARY_MODEL,
            timeout=int(settings.ADVISOR_TIMEOUT_SECONDS),
        )

    @property
    def provider_name(self) -> str:
        """Return provider name."""
        return "claude"

    async def generate_completion(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """Generate completion with Claude."""
        try:
            messages = [{"role": "user", "content": prompt}]

            response = await self.client.messages.create(
                model=self.model,
                max_tokens=kwargs.get("max_tokens", self.max_tokens),
                temperature=kwargs.get("temperature", self.temperature),
                system=system_prompt if system_prompt else "",
                messages=messages
            )

            return {
                "content": response.content[0].text,
                "usage": {
                    "input_tokens": response.usage.input_tokens,
                    "output_tokens": response.usage.output_tokens,
                },
                "model": response.model,
                "stop_reason": response.stop_reason
            }
        except Exception as e:
            logger.error(f"Claude API error: {e}")
            raise

    async def close(self) -> None:
        await self.client.close()
