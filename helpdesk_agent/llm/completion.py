"""Convenience functions for LLM completions."""

from .adapters import AnthropicAdapter
from .protocols import CompletionOptions, CompletionProvider


async def complete(
    prompt: str,
    system_prompt: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
    provider: CompletionProvider | None = None,
) -> str:
    """
    Generate a completion for a simple prompt.

    Args:
        prompt: The user prompt
        system_prompt: Optional system prompt
        temperature: Sampling temperature (0-1)
        max_tokens: Maximum tokens to generate
        provider: Optional completion provider. Defaults to AnthropicAdapter.

    Returns:
        The generated text

    Example:
        text = await complete("Summarize these support articles: ...")
    """
    options = CompletionOptions(
        system_prompt=system_prompt,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    if provider:
        result = await provider.complete(prompt, options)
    else:
        async with AnthropicAdapter() as llm:
            result = await llm.complete(prompt, options)
    return result.text
