"""Advisory chunk-boundary detection.

A boundary advisor suggests character offsets at which a file could be split
into semantically coherent chunks. Its answer is advisory only: the chunker
validates it, and any failure (timeout, malformed answer, unreachable
service) sends the chunker to fixed-size chunking.

Responses are parsed into a BoundaryAdvice before anything else sees them.
"""

import re
from typing import Any, Protocol

from pydantic import BaseModel, Field, ValidationError

from kgindex.parser.file_types import FileCategory
from kgindex.services.llm.base_client import BaseLLMClient
from kgindex.utils.logging import get_logger

logger = get_logger(__name__)

BOUNDARIES_RE = re.compile(r"BOUNDARIES:\s*([0-9,\s]+)", re.IGNORECASE)


class BoundaryAdvisorError(Exception):
    """Raised when a boundary advisor cannot produce an answer."""
    pass


class BoundaryAdvice(BaseModel):
    """Typed result of one advisory call.

    Attributes:
        available: False when the advisor could not give an answer
        boundaries: Suggested character offsets, unvalidated against the text
        reason: Why the advice is unavailable
    """
    available: bool = True
    boundaries: list[int] = Field(default_factory=list)
    reason: str | None = None

    @classmethod
    def unavailable(cls, reason: str) -> "BoundaryAdvice":
        return cls(available=False, reason=reason)


class CompletionPayload(BaseModel):
    """Subset of an LLM completion the advisor relies on."""
    content: str
    model: str | None = None
    stop_reason: str | None = None


class BoundaryAdvisor(Protocol):
    async def advise(
        self,
        text_preview: str,
        file_category: FileCategory,
        file_name: str,
    ) -> BoundaryAdvice:
        ...


_CATEGORY_GUIDANCE = {
    FileCategory.CODE: (
        "For code files, identify boundaries at:\n"
        "- Function/method definitions\n"
        "- Class definitions\n"
        "- Import/export sections\n"
        "- Major code blocks\n"
        "- Comment blocks\n\n"
        "Respond with character positions where chunks should split. "
        "Format: BOUNDARIES: 0,250,680,1200"
    ),
    FileCategory.MARKUP: (
        "For markup/documentation, identify boundaries at:\n"
        "- Heading sections (##, ###)\n"
        "- Paragraph breaks\n"
        "- Code block boundaries\n"
        "- List sections\n"
        "- Topic changes\n\n"
        "Respond with character positions where chunks should split. "
        "Format: BOUNDARIES: 0,250,680,1200"
    ),
    FileCategory.DATA: (
        "For data files, identify boundaries at:\n"
        "- Record groups\n"
        "- Section headers\n"
        "- Logical data divisions\n"
        "- Schema changes\n\n"
        "Respond with character positions where chunks should split. "
        "Format: BOUNDARIES: 0,300,750,1100"
    ),
}

_DEFAULT_GUIDANCE = (
    "Identify natural boundaries at:\n"
    "- Paragraph breaks\n"
    "- Section changes\n"
    "- Topic shifts\n"
    "- Logical divisions\n\n"
    "Respond with character positions where chunks should split. "
    "Format: BOUNDARIES: 0,400,850,1300"
)


def make_preview(text: str, preview_chars: int = 3000) -> str:
    """Cut the text shown to the advisor, marking truncation with '...'."""
    if len(text) > preview_chars:
        return text[:preview_chars] + "..."
    return text


def build_boundary_prompt(text_preview: str, file_category: FileCategory, file_name: str) -> str:
    """Build the category-specific boundary prompt."""
    base = (
        f"Analyze this {file_category} file and identify optimal chunk boundaries for semantic search.\n"
        f"File: {file_name}\n"
        f"Content preview:\n"
        f"{text_preview}\n\n"
    )
    return base + _CATEGORY_GUIDANCE.get(file_category, _DEFAULT_GUIDANCE)


def parse_boundary_response(response: str) -> list[int] | None:
    """Pull the offsets out of a ``BOUNDARIES: a,b,c`` answer.

    Returns:
        The offsets in the order given, or None when the answer has no
        BOUNDARIES line or no integer in it
    """
    match = BOUNDARIES_RE.search(response)
    if not match:
        return None
    offsets = [int(part) for part in re.split(r"[,\s]+", match.group(1)) if part.isdigit()]
    return offsets or None


class LLMBoundaryAdvisor:
    """Boundary advisor backed by an LLM completion client.

    Args:
        client: Any BaseLLMClient (ClaudeClient in production)
        max_tokens: Response budget; the answer is a single short line
    """

    SYSTEM_PROMPT = (
        "You split files into chunks for semantic search. "
        "Answer with exactly one line of the form BOUNDARIES: n,n,n"
    )

    def __init__(self, client: BaseLLMClient, max_tokens: int = 500):
        self.client = client
        self.max_tokens = max_tokens

    async def advise(
        self,
        text_preview: str,
        file_category: FileCategory,
        file_name: str,
    ) -> BoundaryAdvice:
        prompt = build_boundary_prompt(text_preview, file_category, file_name)
        try:
            raw: Any = await self.client.generate_completion(
                prompt,
                system_prompt=self.SYSTEM_PROMPT,
                max_tokens=self.max_tokens,
                temperature=0.1,
            )
        except Exception as e:
            provider = self.client.provider_name
            logger.warning(f"Boundary advisor ({provider}) unavailable for {file_name}: {e}")
            return BoundaryAdvice.unavailable(f"{provider} error: {e}")

        try:
            payload = CompletionPayload.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Malformed advisor payload for {file_name}: {e}")
            return BoundaryAdvice.unavailable("malformed payload")

        offsets = parse_boundary_response(payload.content)
        if offsets is None:
            logger.debug(f"No BOUNDARIES line in advisor answer for {file_name}")
            return BoundaryAdvice.unavailable("malformed response")
        return BoundaryAdvice(boundaries=offsets)
