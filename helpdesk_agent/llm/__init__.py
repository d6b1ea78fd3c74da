"""Completion service integrations with protocol-based adapter pattern."""

from .protocols import CompletionOptions, CompletionProvider, CompletionResult, TokenUsage
from .adapters import AnthropicAdapter, MockCompletionProvider, OpenRouterAdapter
from .completion import complete

__all__ = [
    # Protocols
    "CompletionProvider",
    "CompletionOptions",
    "CompletionResult",
    "TokenUsage",
    # Adapters
    "AnthropicAdapter",
    "OpenRouterAdapter",
    "MockCompletionProvider",
    # Convenience functions
    "complete",
]
