"""Action planning for the reasoning loop.

Prompts the completion service for the next step, parses its labeled
free-text reply into a Decision, and writes the final answer once the loop
stops.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import TYPE_CHECKING, Any

from ..errors import PlannerParseError
from ..llm.protocols import CompletionOptions
from .models import Action, Decision, SessionState, TraceEntry, TraceKind
from .tools import ToolDescription, format_tool_descriptions

if TYPE_CHECKING:
    from ..config.loader import PlannerConfig
    from ..llm.protocols import CompletionProvider

logger = logging.getLogger(__name__)


PLANNING_PROMPT_TEMPLATE = """You are an intelligent assistant using the ReAct (Reasoning + Acting) framework to solve problems step by step.

User query: "{query}"

Current iteration: {iteration}

Conversation so far:
{trace}

Available tools:
{tools}

Based on the current state, think step by step about how to respond to the user's query. Then decide on the next action to take.

Your response should follow this format:

Thought: <your reasoning about what needs to be done>

Action: <tool_name>
Action Parameters: <parameters as JSON object>

If you have enough information to provide a final answer, add:

Final Answer: true

Think carefully about which sources would be most relevant for this query. For Zoom-related questions, prioritize Zoom Community and Zoom Support."""


ANSWER_PROMPT_TEMPLATE = """You are a helpful AI assistant that provides detailed, accurate information about Zoom. Based on the user's query and the information collected, provide a comprehensive answer.

User query: "{query}"

Information collected:
{trace}

{sources}

Your answer should:
1. Be comprehensive and directly answer the user's question
2. Include specific details and troubleshooting steps when appropriate
3. Be well-structured with clear organization
4. Cite sources by referring to them by number, e.g. [1], [2], when providing information from them
5. Be factual and avoid speculation

Answer:"""


FALLBACK_ANSWER = (
    "I apologize, but I encountered an error while generating a response to your "
    "query. Please try asking again or rephrasing your question."
)

# A segment runs until the next label or the end of the reply.
_NEXT_LABEL = r"(?=Thought:|Action Parameters:|Action:|Final Answer:|\Z)"

_THOUGHT_RE = re.compile(r"Thought:(.*?)" + _NEXT_LABEL, re.DOTALL)
_ACTION_RE = re.compile(r"Action:(.*?)" + _NEXT_LABEL, re.DOTALL)
_PARAMS_RE = re.compile(r"Action Parameters:(.*?)" + _NEXT_LABEL, re.DOTALL)
_FINISH_RE = re.compile(r"Final Answer:\s*(true|false)", re.IGNORECASE)
_FENCE_RE = re.compile(r"```(?:json|JSON)?")
_PAIR_SPLIT_RE = re.compile(r""",\s*(?=["']?[A-Za-z_]\w*["']?\s*:)""")


def parse_parameters_json(text: str) -> dict[str, Any]:
    """
    Parse an object literal, ignoring code fences and surrounding prose.

    Raises:
        PlannerParseError: If no JSON object can be decoded
    """
    cleaned = _FENCE_RE.sub("", text).strip()

    json_start = cleaned.find("{")
    json_end = cleaned.rfind("}") + 1
    if json_start == -1 or json_end <= json_start:
        raise PlannerParseError("no JSON object found")

    try:
        data = json.loads(cleaned[json_start:json_end])
    except json.JSONDecodeError as e:
        raise PlannerParseError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise PlannerParseError("parameters are not an object")
    return data


def parse_parameters_lines(text: str) -> dict[str, str]:
    """Extract ``key: value`` pairs, one or more per line.

    Pairs on the same line are split at commas that start a new ``key:``,
    so ``query: audio, sources: [zoom_support]`` yields two parameters.
    """
    params: dict[str, str] = {}
    pairs = (
        pair
        for line in _FENCE_RE.sub("", text).splitlines()
        for pair in _PAIR_SPLIT_RE.split(line)
    )
    for pair in pairs:
        if ":" not in pair:
            continue
        key, _, value = pair.partition(":")
        key = key.strip().strip("{},").strip().strip("\"'")
        value = value.strip().rstrip(",").strip().strip("\"'")
        if key and value:
            params[key] = value
    return params


def parse_parameters(text: str) -> dict[str, Any]:
    """Structured parse, then line-by-line parse, then empty."""
    try:
        return parse_parameters_json(text)
    except PlannerParseError as e:
        logger.warning(f"Failed to parse action parameters as JSON: {e.message}")

    params = parse_parameters_lines(text)
    if not params and text.strip():
        logger.warning("Dropping unparseable action parameters")
    return params


def _clean_action_name(segment: str) -> str:
    lines = [line.strip() for line in segment.strip().splitlines() if line.strip()]
    if not lines:
        return ""
    return lines[0].strip("`*\"' ")


def parse_decision(text: str, fallback_action: Action) -> Decision:
    """
    Parse a planner reply into a Decision.

    Args:
        text: Raw completion text
        fallback_action: Action used when the reply names none and does not finish

    Returns:
        A Decision; never one with neither an action nor a finish signal
    """
    thought_match = _THOUGHT_RE.search(text)
    thought = thought_match.group(1).strip() if thought_match else ""

    action_match = _ACTION_RE.search(text)
    action_name = _clean_action_name(action_match.group(1)) if action_match else ""

    params_match = _PARAMS_RE.search(text)
    params = parse_parameters(params_match.group(1)) if params_match else {}

    finish_match = _FINISH_RE.search(text)
    should_finish = finish_match.group(1).lower() == "true" if finish_match else False

    if not action_name and not should_finish:
        logger.info(f"No action in planner reply, defaulting to '{fallback_action.name}'")
        return Decision(reasoning=thought, action=fallback_action, should_finish=False)

    return Decision(
        reasoning=thought,
        action=Action(name=action_name, parameters=params) if action_name else None,
        should_finish=should_finish,
    )


def render_trace(trace: list[TraceEntry]) -> str:
    """Role-labeled transcript for the planning prompt."""
    return "\n\n".join(f"{entry.role.value}: {entry.content}" for entry in trace)


def render_trace_for_answer(trace: list[TraceEntry]) -> str:
    """Transcript with observations and reasoning labeled apart."""
    labels = {
        TraceKind.QUERY: "User",
        TraceKind.REASONING: "Reasoning",
        TraceKind.OBSERVATION: "Observation",
        TraceKind.ANSWER: "Assistant",
    }
    return "\n\n".join(f"{labels[entry.kind]}: {entry.content}" for entry in trace)


class ActionPlanner:
    """
    Decides the next step of the reasoning loop.

    The planner asks the completion service for a labeled reply
    (Thought / Action / Action Parameters / Final Answer) and parses it
    tolerantly. Planning never raises: completion failures become a
    decision that runs the default tool on the original query.
    """

    def __init__(
        self,
        llm_provider: CompletionProvider,
        config: PlannerConfig | None = None,
    ):
        """
        Initialize the action planner.

        Args:
            llm_provider: Completion provider used for planning and answers
            config: Planner configuration (token limits, temperatures, default tool)
        """
        if config is None:
            from ..config.loader import PlannerConfig
            config = PlannerConfig()

        self._llm_provider = llm_provider
        self.default_tool = config.default_tool
        self.max_tokens = config.max_tokens
        self.temperature = config.temperature
        self.answer_max_tokens = config.answer_max_tokens
        self.answer_temperature = config.answer_temperature
        self.timeout_seconds = config.timeout_seconds

    def default_action(self, state: SessionState) -> Action:
        return Action(name=self.default_tool, parameters={"query": state.query})

    def build_planning_prompt(
        self,
        state: SessionState,
        tool_descriptions: list[ToolDescription],
    ) -> str:
        return PLANNING_PROMPT_TEMPLATE.format(
            query=state.query,
            iteration=state.iterations,
            trace=render_trace(state.trace),
            tools=format_tool_descriptions(tool_descriptions),
        )

    def build_answer_prompt(self, state: SessionState, max_sources: int | None = None) -> str:
        ranked = state.ranked_evidence()[:max_sources]
        if ranked:
            sources = "Sources found:\n" + "\n".join(
                f"[{i}] {e.title} ({e.origin_label}): {e.locator}"
                for i, e in enumerate(ranked, 1)
            )
        else:
            sources = "No sources were found."

        return ANSWER_PROMPT_TEMPLATE.format(
            query=state.query,
            trace=render_trace_for_answer(state.trace),
            sources=sources,
        )

    async def _complete(self, prompt: str, options: CompletionOptions) -> str:
        call = self._llm_provider.complete(prompt, options)
        if self.timeout_seconds:
            result = await asyncio.wait_for(call, timeout=self.timeout_seconds)
        else:
            result = await call
        return result.text

    async def decide_next_action(
        self,
        state: SessionState,
        tool_descriptions: list[ToolDescription],
    ) -> Decision:
        """
        Ask the completion service what to do next.

        Args:
            state: Current session state
            tool_descriptions: Catalog of available tools

        Returns:
            A Decision; on completion failure, the default action
        """
        logger.info(f"Planning next action for iteration {state.iterations}")
        prompt = self.build_planning_prompt(state, tool_descriptions)

        try:
            text = await self._complete(
                prompt,
                CompletionOptions(max_tokens=self.max_tokens, temperature=self.temperature),
            )
        except Exception as e:
            logger.error(f"Error planning next action: {e}")
            return Decision(
                reasoning=f"Error planning next action: {e}",
                action=self.default_action(state),
                should_finish=False,
            )

        decision = parse_decision(text, self.default_action(state))
        logger.debug(
            f"Next action planned: {decision.action.name if decision.action else None}, "
            f"finish={decision.should_finish}"
        )
        return decision

    async def synthesize_final_answer(
        self,
        state: SessionState,
        max_sources: int | None = None,
    ) -> str:
        """
        Write the final, citation-bearing answer.

        Args:
            state: Current session state
            max_sources: Number the top evidence only, so citations match
                the sources returned to the caller

        Returns:
            The answer text, or a fixed apology if the completion fails
        """
        logger.info("Generating final answer")
        prompt = self.build_answer_prompt(state, max_sources)

        try:
            text = await self._complete(
                prompt,
                CompletionOptions(
                    max_tokens=self.answer_max_tokens,
                    temperature=self.answer_temperature,
                ),
            )
        except Exception as e:
            logger.error(f"Error generating final answer: {e}")
            return FALLBACK_ANSWER

        if not text.strip():
            logger.warning("Completion service returned an empty answer")
            return FALLBACK_ANSWER

        logger.debug("Final answer generated successfully")
        return text
