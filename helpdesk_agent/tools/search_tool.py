"""Multi-source search tool.

Queries every requested source concurrently, keeps whatever succeeded,
ranks the merged hits and asks the completion service for a short summary
of the top results.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping

from ..errors import SourceFetchError, ToolExecutionError
from ..llm.protocols import CompletionOptions
from ..orchestration.models import Evidence, ToolContext, ToolOutcome
from ..sources.deduplication import deduplicate_evidence

if TYPE_CHECKING:
    from ..config.loader import SearchConfig
    from ..llm.protocols import CompletionProvider
    from ..sources.models import SourceResult
    from ..sources.protocols import SourceConnector

logger = logging.getLogger(__name__)


SUMMARY_UNAVAILABLE = "Unable to generate summary due to an error."

SUMMARY_PROMPT_TEMPLATE = """Based on the following search results for the query "{query}", provide a concise summary of the key information:

{results}

Summarize the most relevant information from these sources that directly answers the query. Focus on factual information."""


@dataclass
class SourceOutcome:
    """What one source contributed to a fan-out."""

    source_id: str
    results: list[SourceResult] = field(default_factory=list)
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def rank_evidence(items: list[Evidence]) -> list[Evidence]:
    """Sort by relevance, highest first; equal scores keep arrival order."""
    return sorted(items, key=lambda e: e.relevance_score, reverse=True)


def _normalize_sources(value: Any) -> list[str]:
    if value is None:
        return []
    # The line-based parameter parser hands lists over as "[a, b]" or "a, b"
    if isinstance(value, str):
        value = value.strip().strip("[]").split(",")
    names = (str(s).strip().strip("\"' ") for s in value)
    return [name for name in names if name]


class SearchTool:
    """
    Search tool spanning several named sources.

    Usage:
        tool = SearchTool(connectors=default_catalog_connectors(), llm_provider=llm)
        outcome = await tool.execute({"query": "audio issue"}, context)
    """

    name = "search"
    description = "Search for information from Zoom Community, Zoom Support, and Google"
    parameters = ["query", "sources"]

    def __init__(
        self,
        connectors: Mapping[str, SourceConnector],
        llm_provider: CompletionProvider,
        config: SearchConfig | None = None,
        default_sources: list[str] | None = None,
    ):
        """
        Initialize the search tool.

        Args:
            connectors: Source connectors keyed by source id
            llm_provider: Completion provider for the result summary
            config: Search configuration (top-k, summary limits, per-source timeout)
            default_sources: Sources used when neither the call nor the session names any
        """
        if config is None:
            from ..config.loader import SearchConfig
            config = SearchConfig()

        self._connectors = dict(connectors)
        self._llm_provider = llm_provider
        self.top_k = config.top_k
        self.summary_max_tokens = config.summary_max_tokens
        self.summary_temperature = config.summary_temperature
        self.source_timeout = config.source_timeout_seconds
        self.default_sources = list(default_sources or self._connectors.keys())

    def resolve_sources(self, params: dict[str, Any], context: ToolContext) -> list[str]:
        """Sources named by the call, else by the session, else the defaults."""
        for candidate in (params.get("sources"), context.context.get("sources")):
            sources = _normalize_sources(candidate)
            if sources:
                return list(dict.fromkeys(sources))
        return list(self.default_sources)

    async def execute(self, params: dict[str, Any], context: ToolContext) -> ToolOutcome:
        """
        Search all resolved sources and summarize the top results.

        Args:
            params: ``query`` and ``sources`` (both optional)
            context: Read-only session view; supplies the fallback query

        Returns:
            ToolOutcome with an observation and the ranked top evidence
        """
        query = str(params.get("query") or context.query or "").strip()

        try:
            if not query:
                raise ToolExecutionError("No query to search for")

            sources = self.resolve_sources(params, context)
            if not sources:
                raise ToolExecutionError("No sources to search")

            logger.info(f"Searching for \"{query}\" in sources: {', '.join(sources)}")

            outcomes = await self.fan_out(query, sources)

            all_evidence = [
                Evidence.from_source_result(result)
                for outcome in outcomes
                for result in outcome.results
            ]
            top_results = rank_evidence(deduplicate_evidence(all_evidence))[: self.top_k]

            summary = ""
            if top_results:
                summary = await self.summarize(top_results, query)

            return ToolOutcome(
                observation=self._format_observation(all_evidence, outcomes, top_results, summary),
                evidence=top_results,
            )

        except Exception as e:
            logger.error(f"Error executing search: {e}")
            return ToolOutcome(
                observation=f"Error searching for \"{query}\": {e}",
                error=str(e),
                evidence=[],
            )

    async def fan_out(self, query: str, sources: list[str]) -> list[SourceOutcome]:
        """
        Query every source concurrently and wait for all of them.

        A failing or slow source yields an empty outcome with its error;
        the others are unaffected. Outcomes are returned in ``sources`` order.
        """
        tasks = [self._query_source(source_id, query) for source_id in sources]
        results_lists = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes: list[SourceOutcome] = []
        for source_id, results in zip(sources, results_lists):
            if isinstance(results, BaseException):
                logger.warning(f"Error searching {source_id}: {results}")
                outcomes.append(SourceOutcome(source_id=source_id, error=str(results) or type(results).__name__))
                continue
            outcomes.append(SourceOutcome(source_id=source_id, results=results))

        succeeded = sum(1 for o in outcomes if not o.failed)
        logger.info(f"Fan-out finished: {succeeded}/{len(outcomes)} sources succeeded")
        return outcomes

    async def _query_source(self, source_id: str, query: str) -> list[SourceResult]:
        connector = self._connectors.get(source_id)
        if connector is None:
            raise SourceFetchError(source_id, "unknown source")

        logger.debug(f"Searching {source_id} for \"{query}\"")
        try:
            return await asyncio.wait_for(connector.query(query), timeout=self.source_timeout)
        except asyncio.TimeoutError as e:
            raise SourceFetchError(source_id, f"timed out after {self.source_timeout}s") from e

    async def summarize(self, results: list[Evidence], query: str) -> str:
        """Short synthesis over exactly these results; never raises."""
        prompt = SUMMARY_PROMPT_TEMPLATE.format(
            query=query,
            results="\n".join(
                f"[{i}] {r.title}\nSource: {r.origin_label}\nSnippet: {r.snippet}\n"
                for i, r in enumerate(results, 1)
            ),
        )

        try:
            result = await self._llm_provider.complete(
                prompt,
                CompletionOptions(
                    max_tokens=self.summary_max_tokens,
                    temperature=self.summary_temperature,
                ),
            )
        except Exception as e:
            logger.error(f"Error summarizing results: {e}")
            return SUMMARY_UNAVAILABLE

        return result.text

    def _format_observation(
        self,
        all_evidence: list[Evidence],
        outcomes: list[SourceOutcome],
        top_results: list[Evidence],
        summary: str,
    ) -> str:
        per_source = ", ".join(
            f"{o.source_id}: unavailable" if o.failed else f"{o.source_id}: {len(o.results)}"
            for o in outcomes
        )
        header = (
            f"Found {len(all_evidence)} results across {len(outcomes)} sources "
            f"({per_source})."
        )

        if not top_results:
            return f"{header} No relevant results were found."

        listing = "\n".join(
            f"{i}. {r.title} ({r.origin_label})" for i, r in enumerate(top_results, 1)
        )
        return f"{header} Top results:\n{listing}\n\nSummary: {summary}"
