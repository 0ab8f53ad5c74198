"""LLM clients used by the boundary advisor."""

from .base_client import BaseLLMClient
from .claude_client import ClaudeClient
