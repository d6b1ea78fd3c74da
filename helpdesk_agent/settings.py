"""Configuration settings for the helpdesk agent."""

import logging
import os
from dotenv import load_dotenv

load_dotenv()

# Logging setup
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)

# Anthropic (direct API)
# Available models:
# - claude-3-haiku-20240307 (fast, cheap)
# - claude-3-5-sonnet-20241022 (balanced)
# - claude-3-opus-20240229 (most capable)
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-3-opus-20240229")
ANTHROPIC_MAX_TOKENS = int(os.getenv("ANTHROPIC_MAX_TOKENS", "4000"))
ANTHROPIC_TEMPERATURE = float(os.getenv("ANTHROPIC_TEMPERATURE", "0.3"))

# OpenRouter (OpenAI-compatible)
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
OPENROUTER_DEFAULT_MODEL = os.getenv("OPENROUTER_DEFAULT_MODEL", "anthropic/claude-3-5-sonnet")

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant that provides accurate and detailed information."
)

# Google Custom Search
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
GOOGLE_SEARCH_CX = os.getenv("GOOGLE_SEARCH_CX")
GOOGLE_SEARCH_BASE_URL = "https://www.googleapis.com/customsearch/v1"
GOOGLE_SITE_FILTER = "site:community.zoom.com OR site:support.zoom.com"

# Agent behaviour
DEBUG_AGENT = os.getenv("DEBUG_AGENT", "false").lower() == "true"
USE_MOCK_SEARCH = os.getenv("USE_MOCK_SEARCH", "false").lower() == "true"
DEFAULT_SOURCES = ["zoom_community", "zoom_support", "google"]

# Retry settings for source HTTP calls
MAX_RETRIES = 3
RETRY_BACKOFF_FACTOR = 2.0
