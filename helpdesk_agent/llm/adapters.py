"""Adapter implementations for completion providers."""

import logging

from openai import AsyncOpenAI

from ..errors import CompletionFailure
from ..settings import (
    ANTHROPIC_API_KEY,
    ANTHROPIC_MAX_TOKENS,
    ANTHROPIC_MODEL,
    ANTHROPIC_TEMPERATURE,
    DEFAULT_SYSTEM_PROMPT,
    OPENROUTER_API_KEY,
    OPENROUTER_BASE_URL,
    OPENROUTER_DEFAULT_MODEL,
)
from .protocols import CompletionOptions, CompletionProvider, CompletionResult, TokenUsage

logger = logging.getLogger(__name__)


class AnthropicAdapter(CompletionProvider):
    """
    Adapter for Anthropic API (direct).

    Uses the Anthropic Python SDK directly for Claude models.

    Usage:
        async with AnthropicAdapter() as llm:
            result = await llm.complete("Why is my microphone muted?")
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        system_prompt: str | None = None,
        timeout: float = 120.0,
    ):
        """
        Initialize the Anthropic adapter.

        Args:
            api_key: Optional API key. If not provided, uses ANTHROPIC_API_KEY env var.
            model: Default model. Defaults to ANTHROPIC_MODEL.
            max_tokens: Default output limit when a call does not set one.
            temperature: Default temperature when a call does not set one.
            system_prompt: Default system prompt when a call does not set one.
            timeout: Per-request timeout in seconds.
        """
        self.api_key = api_key or ANTHROPIC_API_KEY
        self.model = model or ANTHROPIC_MODEL
        self.max_tokens = max_tokens or ANTHROPIC_MAX_TOKENS
        self.temperature = ANTHROPIC_TEMPERATURE if temperature is None else temperature
        self.system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
        self.timeout = timeout
        self._client = None

        if not self.api_key:
            raise ValueError(
                "Anthropic API key required. Set ANTHROPIC_API_KEY in .env"
            )

        logger.info(f"Anthropic adapter initialized with model: {self.model}")

    async def __aenter__(self) -> "AnthropicAdapter":
        import anthropic

        self._client = anthropic.AsyncAnthropic(
            api_key=self.api_key,
            max_retries=2,
            timeout=self.timeout,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.close()
            self._client = None

    @property
    def client(self):
        if self._client is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with' context manager."
            )
        return self._client

    async def complete(
        self,
        prompt: str,
        options: CompletionOptions | None = None,
    ) -> CompletionResult:
        """Generate a completion for a simple prompt."""
        options = options or CompletionOptions()
        model = options.model or self.model
        max_tokens = options.max_tokens or self.max_tokens
        temperature = self.temperature if options.temperature is None else options.temperature

        logger.debug(f"Sending request to Anthropic (model: {model}, max_tokens: {max_tokens})")

        try:
            message = await self.client.messages.create(
                model=model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=options.system_prompt or self.system_prompt,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            logger.error(f"Error calling Anthropic API: {e}")
            raise CompletionFailure(f"Failed to get completion from Claude: {e}") from e

        text = message.content[0].text if message.content else ""
        usage = TokenUsage(
            prompt_tokens=message.usage.input_tokens,
            completion_tokens=message.usage.output_tokens,
            total_tokens=message.usage.input_tokens + message.usage.output_tokens,
        )
        logger.debug(f"Received response from Anthropic (usage: {usage.model_dump()})")

        return CompletionResult(text=text, usage=usage)


class OpenRouterAdapter(CompletionProvider):
    """
    Adapter for OpenRouter API.

    OpenRouter provides access to many LLMs through an OpenAI-compatible API.

    Usage:
        async with OpenRouterAdapter() as llm:
            result = await llm.complete("How do I share my screen?")
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        max_tokens: int | None = None,
        temperature: float = 0.3,
        system_prompt: str | None = None,
        timeout: float = 120.0,
    ):
        self.api_key = api_key or OPENROUTER_API_KEY
        self.model = model or OPENROUTER_DEFAULT_MODEL
        self.base_url = base_url or OPENROUTER_BASE_URL
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
        self.timeout = timeout
        self._client: AsyncOpenAI | None = None

        if not self.api_key:
            raise ValueError(
                "OpenRouter API key required. Set OPENROUTER_API_KEY in .env"
            )

        logger.info(f"OpenRouter adapter initialized with model: {self.model}")

    async def __aenter__(self) -> "OpenRouterAdapter":
        self._client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            max_retries=2,
            timeout=self.timeout,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.close()
            self._client = None

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with' context manager."
            )
        return self._client

    async def complete(
        self,
        prompt: str,
        options: CompletionOptions | None = None,
    ) -> CompletionResult:
        """Generate a completion for a simple prompt."""
        options = options or CompletionOptions()
        messages: list[dict] = [
            {"role": "system", "content": options.system_prompt or self.system_prompt},
            {"role": "user", "content": prompt},
        ]

        logger.debug(f"Completing prompt ({len(prompt)} chars) with {options.model or self.model}")

        try:
            response = await self.client.chat.completions.create(
                model=options.model or self.model,
                messages=messages,
                temperature=self.temperature if options.temperature is None else options.temperature,
                max_tokens=options.max_tokens or self.max_tokens,
            )
        except Exception as e:
            logger.error(f"Error calling OpenRouter API: {e}")
            raise CompletionFailure(f"Failed to get completion from OpenRouter: {e}") from e

        text = response.choices[0].message.content or ""
        usage = TokenUsage()
        if response.usage:
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )
        logger.debug(f"Usage: {usage.model_dump()}")

        return CompletionResult(text=text, usage=usage)


class MockCompletionProvider(CompletionProvider):
    """Scripted completion provider for tests and offline runs.

    Replies are consumed in order; once exhausted the last reply repeats.
    A reply that is an exception instance is raised instead of returned.
    Every prompt is recorded in ``prompts``.
    """

    def __init__(
        self,
        replies: list | None = None,
        default_reply: str = "Thought: I have enough information.\nFinal Answer: true",
    ):
        self._replies = list(replies or [])
        self.default_reply = default_reply
        self.prompts: list[str] = []
        self.options: list[CompletionOptions] = []

    async def __aenter__(self) -> "MockCompletionProvider":
        return self

    async def __aexit__(self, *args) -> None:
        pass

    async def complete(
        self,
        prompt: str,
        options: CompletionOptions | None = None,
    ) -> CompletionResult:
        self.prompts.append(prompt)
        self.options.append(options or CompletionOptions())

        if self._replies:
            reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        else:
            reply = self.default_reply

        if isinstance(reply, Exception):
            raise reply

        return CompletionResult(
            text=reply,
            usage=TokenUsage(
                prompt_tokens=len(prompt) // 4,
                completion_tokens=len(reply) // 4,
                total_tokens=(len(prompt) + len(reply)) // 4,
            ),
        )
