"""Tools the reasoning loop can call."""

from .search_tool import SearchTool, SourceOutcome, rank_evidence

__all__ = [
    "SearchTool",
    "SourceOutcome",
    "rank_evidence",
]
