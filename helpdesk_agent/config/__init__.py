"""Configuration system for completion backends, sources and the agent loop."""

from .loader import (
    load_config,
    load_config_from_env,
    load_config_from_yaml,
    list_profiles,
    ProfileConfig,
    CompletionConfig,
    AgentConfig,
    PlannerConfig,
    SearchConfig,
    SourcesConfig,
    GoogleSourceConfig,
)
from .factory import (
    create_completion_provider,
    build_connectors,
    create_agent,
    create_from_profile,
)

__all__ = [
    # Loader
    "load_config",
    "load_config_from_env",
    "load_config_from_yaml",
    "list_profiles",
    "ProfileConfig",
    "CompletionConfig",
    "AgentConfig",
    "PlannerConfig",
    "SearchConfig",
    "SourcesConfig",
    "GoogleSourceConfig",
    # Factory
    "create_completion_provider",
    "build_connectors",
    "create_agent",
    "create_from_profile",
]
