"""Protocol definitions for completion providers."""

from typing import Protocol, runtime_checkable
from pydantic import BaseModel


class CompletionOptions(BaseModel):
    """Per-call options for a completion request."""

    model: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    system_prompt: str | None = None


class TokenUsage(BaseModel):
    """Token accounting reported by the completion service."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class CompletionResult(BaseModel):
    """Text returned by the completion service."""

    text: str
    usage: TokenUsage = TokenUsage()


@runtime_checkable
class CompletionProvider(Protocol):
    """Protocol for completion providers.

    Implement this protocol to add support for new LLM APIs.
    """

    async def complete(
        self,
        prompt: str,
        options: CompletionOptions | None = None,
    ) -> CompletionResult:
        """
        Generate a completion for a prompt.

        Args:
            prompt: The user prompt
            options: Optional model, token limit, temperature and system prompt

        Returns:
            CompletionResult with the generated text and token usage

        Raises:
            CompletionFailure: If the upstream service call fails
        """
        ...
