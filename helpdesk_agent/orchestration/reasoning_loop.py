"""
Reasoning Loop: plan, act, observe until an answer is ready.

Each session runs strictly sequentially: one planner call, at most one tool
call and one state merge per iteration. The loop makes at most
``max_iterations`` planning calls plus one answer synthesis.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..sources.deduplication import deduplicate_evidence
from .models import AgentResponse, SessionState, TerminationReason
from .state_store import StateStore

if TYPE_CHECKING:
    from ..config.loader import AgentConfig
    from .planner import ActionPlanner
    from .tools import ToolExecutor, ToolRegistry

logger = logging.getLogger(__name__)


NO_ANSWER_TEXT = (
    "I was unable to generate a complete answer. Please try rephrasing your question."
)


class ReasoningLoop:
    """
    Drives the plan -> act -> observe cycle for one query at a time.

    States:
    - Running: iterations remain and no answer is set
    - Finishing: the planner asked to finish, or the iteration ceiling was hit
    - Done: the answer is set and the response is formatted

    A fresh StateStore is created for every call to ``process`` so concurrent
    sessions never share state.
    """

    def __init__(
        self,
        planner: ActionPlanner,
        executor: ToolExecutor,
        registry: ToolRegistry,
        config: AgentConfig | None = None,
    ):
        """
        Initialize the Reasoning Loop.

        Args:
            planner: Decides next actions and writes the final answer
            executor: Runs the chosen tools
            registry: Tool catalog shown to the planner
            config: Agent configuration (iteration ceiling, debug, response size)
        """
        if config is None:
            from ..config.loader import AgentConfig
            config = AgentConfig()

        self.planner = planner
        self.executor = executor
        self.registry = registry
        self.max_iterations = config.max_iterations
        self.max_response_sources = config.max_response_sources
        self.debug = config.debug

    async def process(self, query: str, context: dict[str, Any] | None = None) -> AgentResponse:
        """
        Answer a query.

        Never raises; any failure produces a degraded response whose answer
        explains the error.

        Args:
            query: User query
            context: Session scope (sources, files, caller metadata)

        Returns:
            AgentResponse with answer and top evidence
        """
        logger.info(f"Processing query \"{query}\"")
        store = StateStore()

        try:
            store.initialize(query, context)
            await self._run(store)
            response = self.format_response(store.state)
        except Exception as e:
            logger.error(f"Error processing query: {e}")
            response = AgentResponse(
                answer=(
                    f"I encountered an error while processing your query: {e}. "
                    "Please try again or rephrase your question."
                ),
                sources=[],
                error=str(e),
            )
            if store.is_initialized:
                store.state.termination_reason = TerminationReason.ERROR
                if self.debug:
                    response.debug_info = self._debug_info(store.state)
            return response

        logger.info(
            f"Processing complete for query \"{query}\" "
            f"({store.state.iterations} iterations, {store.state.termination_reason.value})"
        )
        return response

    async def _run(self, store: StateStore) -> None:
        state = store.state
        tool_descriptions = self.registry.describe_all()

        while state.iterations < self.max_iterations and not state.is_done:
            iteration = store.increment_iteration()
            logger.info(f"Starting iteration {iteration}")

            decision = await self.planner.decide_next_action(state, tool_descriptions)
            store.add_reasoning(decision.reasoning)

            if decision.should_finish:
                await self._finish(store, TerminationReason.PLANNER_FINISHED)
                break

            action = decision.action or self.planner.default_action(state)
            outcome = await self.executor.execute(action, state)
            store.add_observation(outcome.observation, action.name)
            if outcome.evidence:
                store.merge({"evidence": outcome.evidence})

        if not state.is_done:
            logger.info("Reached max iterations, generating final answer")
            await self._finish(store, TerminationReason.MAX_ITERATIONS)

    async def _finish(self, store: StateStore, reason: TerminationReason) -> None:
        answer = await self.planner.synthesize_final_answer(
            store.state, self.max_response_sources
        )
        store.set_answer(answer)
        store.merge({"termination_reason": reason})

    def format_response(self, state: SessionState) -> AgentResponse:
        """Deduplicate and cap evidence, attach debug info when enabled."""
        sources = deduplicate_evidence(state.ranked_evidence())[: self.max_response_sources]

        response = AgentResponse(
            answer=state.answer or NO_ANSWER_TEXT,
            sources=sources,
        )

        if self.debug:
            response.debug_info = self._debug_info(state)

        return response

    def _debug_info(self, state: SessionState) -> dict:
        return {
            "iterations": state.iterations,
            "terminationReason": (
                state.termination_reason.value if state.termination_reason else None
            ),
            "conversationHistory": [entry.to_dict() for entry in state.trace],
        }
