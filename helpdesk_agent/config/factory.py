"""Factory functions to create agent components from configuration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..llm.protocols import CompletionProvider
    from ..orchestration.agent import HelpdeskAgent
    from ..sources.protocols import SourceConnector
    from .loader import CompletionConfig, ProfileConfig, SearchConfig, SourcesConfig

logger = logging.getLogger(__name__)


def create_completion_provider(config: CompletionConfig) -> CompletionProvider:
    """Create a completion backend from configuration.

    Args:
        config: Completion configuration

    Returns:
        CompletionProvider instance (AnthropicAdapter, OpenRouterAdapter, or mock)

    Raises:
        ValueError: If backend type is not supported or the key is missing
    """
    if config.backend == "anthropic":
        from ..llm import AnthropicAdapter

        return AnthropicAdapter(
            api_key=config.api_key,
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            system_prompt=config.system_prompt,
            timeout=config.timeout_seconds,
        )

    elif config.backend == "openrouter":
        from ..llm import OpenRouterAdapter

        return OpenRouterAdapter(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url,
            max_tokens=config.max_tokens,
            temperature=0.3 if config.temperature is None else config.temperature,
            system_prompt=config.system_prompt,
            timeout=config.timeout_seconds,
        )

    elif config.backend == "mock":
        from ..llm import MockCompletionProvider

        return MockCompletionProvider()

    else:
        raise ValueError(f"Unsupported completion backend: {config.backend}")


def build_connectors(
    config: SourcesConfig,
    search: SearchConfig | None = None,
) -> dict[str, SourceConnector]:
    """Create the name-keyed source connectors.

    Zoom Community and Zoom Support have no public search API and always use
    the article catalog. Google uses the live API unless mock search is
    requested or credentials are missing.

    Args:
        config: Sources configuration
        search: Search configuration, for the per-request timeout

    Returns:
        Mapping of source id to connector
    """
    from ..sources import GoogleSearchConnector, default_catalog_connectors

    connectors: dict[str, SourceConnector] = dict(default_catalog_connectors())

    google = config.google
    if config.use_mock:
        logger.info("Mock search enabled, using catalog for all sources")
    elif not (google.api_key and google.cx):
        logger.warning("Google search credentials not configured, using catalog for google")
    else:
        connectors["google"] = GoogleSearchConnector(
            api_key=google.api_key,
            cx=google.cx,
            base_url=google.base_url,
            site_filter=google.site_filter,
            num_results=google.num_results,
            timeout=search.source_timeout_seconds if search else 15.0,
        )

    return connectors


def create_agent(
    profile: ProfileConfig,
    llm_provider: CompletionProvider | None = None,
    connectors: dict[str, SourceConnector] | None = None,
) -> HelpdeskAgent:
    """Create a fully wired HelpdeskAgent from a profile.

    Args:
        profile: Profile configuration containing all component configs
        llm_provider: Overrides the configured completion backend
        connectors: Overrides the configured source connectors

    Returns:
        HelpdeskAgent (use as an async context manager)
    """
    from ..orchestration.agent import HelpdeskAgent

    return HelpdeskAgent(
        llm_provider=llm_provider or create_completion_provider(profile.completion),
        connectors=connectors if connectors is not None else build_connectors(profile.sources, profile.search),
        agent_config=profile.agent,
        planner_config=profile.planner,
        search_config=profile.search,
    )


def create_from_profile(profile_name: str | None = None) -> HelpdeskAgent:
    """Load a profile by name and create the agent it describes."""
    from .loader import load_config

    return create_agent(load_config(profile_name))
