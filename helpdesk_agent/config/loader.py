"""Configuration loader with Pydantic validation and env var expansion."""

import logging
import os
import re
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "dev"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "profiles.yaml"


class CompletionConfig(BaseModel):
    """Configuration for the completion backend."""

    backend: Literal["anthropic", "openrouter", "mock"] = "anthropic"
    model: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    system_prompt: str | None = None
    timeout_seconds: float = 120.0


class AgentConfig(BaseModel):
    """Configuration for the reasoning loop."""

    max_iterations: int = Field(default=5, ge=1)
    debug: bool = False
    default_sources: list[str] = ["zoom_community", "zoom_support", "google"]
    max_response_sources: int = Field(default=5, ge=1)


class PlannerConfig(BaseModel):
    """Configuration for the action planner."""

    max_tokens: int = 500
    temperature: float = 0.2
    answer_max_tokens: int = 1000
    answer_temperature: float = 0.3
    default_tool: str = "search"
    timeout_seconds: float | None = None  # None leaves timeouts to the adapter


class SearchConfig(BaseModel):
    """Configuration for the multi-source search tool."""

    top_k: int = Field(default=5, ge=1)
    summary_max_tokens: int = 300
    summary_temperature: float = 0.2
    source_timeout_seconds: float = 15.0


class GoogleSourceConfig(BaseModel):
    """Google Custom Search credentials and query shaping."""

    api_key: str | None = None
    cx: str | None = None
    base_url: str = "https://www.googleapis.com/customsearch/v1"
    site_filter: str = "site:community.zoom.com OR site:support.zoom.com"
    num_results: int = 5


class SourcesConfig(BaseModel):
    """Configuration for source connectors."""

    use_mock: bool = False
    google: GoogleSourceConfig = GoogleSourceConfig()


class ProfileConfig(BaseModel):
    """Configuration profile containing all component configs."""

    completion: CompletionConfig
    agent: AgentConfig = AgentConfig()
    planner: PlannerConfig = PlannerConfig()
    search: SearchConfig = SearchConfig()
    sources: SourcesConfig = SourcesConfig()


class ConfigFile(BaseModel):
    """Root configuration file structure."""

    profiles: dict[str, ProfileConfig]


def expand_env_vars(value: str) -> str:
    """Expand ${VAR} references in a string with environment variables.

    Unset variables are left as written.
    """
    if not isinstance(value, str):
        return value

    def replacer(match):
        return os.environ.get(match.group(1), match.group(0))

    return re.sub(r"\$\{([^}]+)\}", replacer, value)


def expand_env_vars_recursive(data):
    """Recursively expand env vars in nested dict/list structures."""
    if isinstance(data, dict):
        return {k: expand_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def _drop_unexpanded(data):
    # "${VAR}" that stayed literal, or expanded to "", means the variable is unset
    if isinstance(data, dict):
        return {
            k: _drop_unexpanded(v)
            for k, v in data.items()
            if not (isinstance(v, str) and (v == "" or re.fullmatch(r"\$\{[^}]+\}", v)))
        }
    elif isinstance(data, list):
        return [_drop_unexpanded(item) for item in data]
    return data


def read_config_file(config_path: Path) -> ConfigFile:
    """Read, expand and validate a profiles file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config is invalid
    """
    with open(config_path) as f:
        raw_data = yaml.safe_load(f) or {}

    expanded_data = _drop_unexpanded(expand_env_vars_recursive(raw_data))
    return ConfigFile(**expanded_data)


def load_config_from_yaml(config_path: Path, profile_name: str) -> ProfileConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config YAML file
        profile_name: Name of profile to load

    Returns:
        ProfileConfig for the requested profile

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config is invalid
        KeyError: If profile doesn't exist
    """
    config_file = read_config_file(config_path)

    if profile_name not in config_file.profiles:
        available = ", ".join(config_file.profiles.keys())
        raise KeyError(
            f"Profile '{profile_name}' not found. Available profiles: {available}"
        )

    return config_file.profiles[profile_name]


def load_config_from_env() -> ProfileConfig:
    """Load configuration from environment variables (fallback mode).

    Returns:
        ProfileConfig constructed from environment variables
    """
    from ..settings import (
        ANTHROPIC_API_KEY,
        ANTHROPIC_MAX_TOKENS,
        ANTHROPIC_MODEL,
        ANTHROPIC_TEMPERATURE,
        DEBUG_AGENT,
        DEFAULT_SOURCES,
        GOOGLE_API_KEY,
        GOOGLE_SEARCH_CX,
        USE_MOCK_SEARCH,
    )

    completion = CompletionConfig(
        backend="anthropic",
        model=ANTHROPIC_MODEL,
        api_key=ANTHROPIC_API_KEY,
        max_tokens=ANTHROPIC_MAX_TOKENS,
        temperature=ANTHROPIC_TEMPERATURE,
    )

    agent = AgentConfig(debug=DEBUG_AGENT, default_sources=list(DEFAULT_SOURCES))

    sources = SourcesConfig(
        use_mock=USE_MOCK_SEARCH,
        google=GoogleSourceConfig(api_key=GOOGLE_API_KEY, cx=GOOGLE_SEARCH_CX),
    )

    return ProfileConfig(completion=completion, agent=agent, sources=sources)


def list_profiles(config_path: Path | None = None) -> list[str]:
    """Names of the profiles defined in the config file."""
    return list(read_config_file(config_path or DEFAULT_CONFIG_PATH).profiles)


def load_config(
    profile: str | None = None,
    config_path: Path | None = None,
) -> ProfileConfig:
    """Load configuration from YAML file or environment variables.

    Tries the YAML profile first and falls back to environment variables if
    the file is missing or the profile cannot be loaded.

    Args:
        profile: Profile name to load. If None, uses MODEL_PROFILE env var
                or "dev" as default.
        config_path: Path to config file. If None, uses the packaged
                    helpdesk_agent/config/profiles.yaml.

    Returns:
        ProfileConfig with all component configurations
    """
    if profile is None:
        profile = os.environ.get("MODEL_PROFILE", DEFAULT_PROFILE)

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        try:
            return load_config_from_yaml(config_path, profile)
        except Exception as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")
            logger.warning("Falling back to environment variables")
            return load_config_from_env()
    else:
        logger.warning(f"Config file {config_path} not found, using environment variables")
        return load_config_from_env()
