"""
HelpdeskAgent: entry point that wires tools, planner and loop together.

Usage:
    async with create_from_profile("dev") as agent:
        response = await agent.process("My Zoom audio is not working")
        print(response.answer)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Mapping

from ..tools.search_tool import SearchTool
from .models import AgentResponse, ProcessOptions
from .planner import ActionPlanner
from .reasoning_loop import ReasoningLoop
from .tools import ToolDescription, ToolExecutor, ToolRegistry

if TYPE_CHECKING:
    from ..config.loader import AgentConfig, PlannerConfig, SearchConfig
    from ..llm.protocols import CompletionProvider
    from ..sources.protocols import SourceConnector

logger = logging.getLogger(__name__)


class HelpdeskAgent:
    """
    Answers support questions with a plan/act/observe loop over search tools.

    The agent is stateless between calls; every ``process`` call runs an
    isolated session. Enter it as an async context manager so the completion
    provider's client is opened and closed.
    """

    def __init__(
        self,
        llm_provider: CompletionProvider,
        connectors: Mapping[str, SourceConnector],
        agent_config: AgentConfig | None = None,
        planner_config: PlannerConfig | None = None,
        search_config: SearchConfig | None = None,
    ):
        """
        Initialize the agent.

        Args:
            llm_provider: Completion provider for planning, summaries and answers
            connectors: Source connectors keyed by source id
            agent_config: Loop configuration
            planner_config: Planner configuration
            search_config: Search tool configuration
        """
        if agent_config is None:
            from ..config.loader import AgentConfig
            agent_config = AgentConfig()

        self.llm_provider = llm_provider
        self.default_sources = list(agent_config.default_sources)

        self.registry = ToolRegistry()
        self.registry.register(
            SearchTool(
                connectors=connectors,
                llm_provider=llm_provider,
                config=search_config,
                default_sources=self.default_sources,
            )
        )

        self.executor = ToolExecutor(self.registry)
        self.planner = ActionPlanner(llm_provider, planner_config)
        self.loop = ReasoningLoop(self.planner, self.executor, self.registry, agent_config)

        logger.info(f"Helpdesk agent initialized with {len(self.registry)} tools")

    async def __aenter__(self) -> HelpdeskAgent:
        await self.llm_provider.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.llm_provider.__aexit__(exc_type, exc_val, exc_tb)

    def describe_tools(self) -> list[ToolDescription]:
        return self.registry.describe_all()

    def build_context(self, options: ProcessOptions) -> dict:
        return {
            "sources": list(options.sources or self.default_sources),
            "files": list(options.files or []),
            **options.context,
        }

    async def process(self, query: str, options: ProcessOptions | None = None) -> AgentResponse:
        """
        Answer one query.

        Args:
            query: The user's question
            options: Sources to consult, attached files, extra caller context

        Returns:
            AgentResponse; failures are reported in ``error`` rather than raised
        """
        if not query or not query.strip():
            return AgentResponse(answer="", sources=[], error="Query is required")

        options = options or ProcessOptions()

        try:
            return await self.loop.process(query.strip(), self.build_context(options))
        except Exception as e:
            logger.error(f"Error in agent processing: {e}")
            return AgentResponse(
                answer=(
                    f"I encountered an error while processing your query: {e}. "
                    "Please try again or rephrase your question."
                ),
                sources=[],
                error=str(e),
            )
