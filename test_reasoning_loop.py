"""
Reasoning Loop Tests

End-to-end tests for the plan -> act -> observe loop using scripted
completions and in-memory sources.
"""

import asyncio

from helpdesk_agent.config.loader import AgentConfig
from helpdesk_agent.errors import CompletionFailure
from helpdesk_agent.llm import MockCompletionProvider
from helpdesk_agent.orchestration.models import TerminationReason, TraceKind
from helpdesk_agent.orchestration.planner import FALLBACK_ANSWER, ActionPlanner
from helpdesk_agent.orchestration.reasoning_loop import ReasoningLoop
from helpdesk_agent.orchestration.tools import ToolExecutor, ToolRegistry
from helpdesk_agent.sources import SourceResult
from helpdesk_agent.tools import SearchTool

SEARCH_REPLY = 'Thought: I need to look this up.\nAction: search\nAction Parameters: {"query": "zoom audio not working"}\nFinal Answer: false'
FINISH_REPLY = "Thought: I have enough information to answer.\nFinal Answer: true"
ANSWER = "Check that the right microphone is selected in Audio Settings [1]."


class RoutingProvider(MockCompletionProvider):
    """Answers planning, summary and answer prompts from separate scripts."""

    def __init__(self, plans: list, summary="Audio issues are usually device settings.", answer=ANSWER):
        super().__init__()
        self.plans = list(plans)
        self.summary = summary
        self.answer = answer
        self.planning_calls = 0

    async def complete(self, prompt, options=None):
        if prompt.startswith("You are an intelligent assistant using the ReAct"):
            self.planning_calls += 1
            reply = self.plans.pop(0) if len(self.plans) > 1 else self.plans[0]
        elif prompt.startswith("Based on the following search results"):
            reply = self.summary
        else:
            reply = self.answer
        self._replies = [reply]
        return await super().complete(prompt, options)


class StaticConnector:
    def __init__(self, source_id, results):
        self.source_id = source_id
        self.label = "Zoom Community" if source_id == "zoom_community" else "Zoom Support"
        self._results = results

    async def query(self, text):
        return [
            SourceResult(
                title=title,
                url=f"https://{self.source_id}.example.com/{i}",
                snippet=title,
                origin_label=self.label,
                relevance_score=score,
            )
            for i, (title, score) in enumerate(self._results)
        ]


def build_loop(llm, connectors=None, **agent_options):
    if connectors is None:
        connectors = {
            "zoom_community": StaticConnector("zoom_community", [("Audio settings", 0.6)]),
            "zoom_support": StaticConnector("zoom_support", [("Fix audio problems", 0.9)]),
        }
    config = AgentConfig(default_sources=list(connectors), **agent_options)

    registry = ToolRegistry()
    registry.register(SearchTool(connectors, llm, default_sources=config.default_sources))
    return ReasoningLoop(ActionPlanner(llm), ToolExecutor(registry), registry, config)


def test_end_to_end_audio_question():
    llm = RoutingProvider([SEARCH_REPLY, FINISH_REPLY])
    loop = build_loop(llm, debug=True)

    response = asyncio.run(loop.process("My audio isn't working"))

    assert response.answer == ANSWER
    assert response.error is None
    assert [e.relevance_score for e in response.sources] == [0.9, 0.6]
    assert [e.title for e in response.sources] == ["Fix audio problems", "Audio settings"]
    assert response.debug_info["iterations"] == 2
    assert response.debug_info["terminationReason"] == "planner_finished"

    kinds = [entry["kind"] for entry in response.debug_info["conversationHistory"]]
    assert kinds == ["query", "reasoning", "observation", "reasoning", "answer"]


def test_forced_termination_after_max_iterations():
    llm = RoutingProvider([SEARCH_REPLY])
    loop = build_loop(llm, debug=True)

    response = asyncio.run(loop.process("My audio isn't working"))

    assert response.answer
    assert llm.planning_calls == 5
    assert response.debug_info["iterations"] == 5
    assert response.debug_info["terminationReason"] == TerminationReason.MAX_ITERATIONS.value


def test_iterations_never_exceed_max():
    for max_iterations in (1, 2, 3):
        llm = RoutingProvider([SEARCH_REPLY])
        loop = build_loop(llm, debug=True, max_iterations=max_iterations)

        response = asyncio.run(loop.process("camera is black"))

        assert response.debug_info["iterations"] == max_iterations
        assert llm.planning_calls == max_iterations
        assert response.answer


def test_finish_on_first_iteration_runs_no_tool():
    llm = RoutingProvider([FINISH_REPLY])
    loop = build_loop(llm, debug=True)

    response = asyncio.run(loop.process("hello"))

    assert response.sources == []
    assert response.debug_info["iterations"] == 1
    history = response.debug_info["conversationHistory"]
    assert not any(entry["kind"] == TraceKind.OBSERVATION.value for entry in history)


def test_unknown_tool_is_observed_and_loop_continues():
    bad_action = "Thought: try the wiki\nAction: wiki_lookup\nAction Parameters: {}"
    llm = RoutingProvider([bad_action, FINISH_REPLY])
    loop = build_loop(llm, debug=True)

    response = asyncio.run(loop.process("How do I record?"))

    history = response.debug_info["conversationHistory"]
    observations = [e["content"] for e in history if e["kind"] == "observation"]
    assert observations == ["Observation from wiki_lookup: Error: Tool 'wiki_lookup' not found"]
    assert response.answer == ANSWER


def test_completion_outage_still_answers():
    llm = MockCompletionProvider(replies=[CompletionFailure("service down")])
    loop = build_loop(llm, debug=True)

    response = asyncio.run(loop.process("My audio isn't working"))

    # Planning failures fall back to searching, so evidence is still collected
    assert response.answer == FALLBACK_ANSWER
    assert response.debug_info["iterations"] == 5
    assert len(response.sources) == 2


def test_response_sources_capped():
    connectors = {
        "zoom_support": StaticConnector(
            "zoom_support", [(f"Article {i}", i / 10) for i in range(5)]
        ),
        "zoom_community": StaticConnector(
            "zoom_community", [(f"Thread {i}", i / 10 + 0.05) for i in range(5)]
        ),
    }
    llm = RoutingProvider([SEARCH_REPLY, FINISH_REPLY])
    loop = build_loop(llm, connectors, max_response_sources=3)

    response = asyncio.run(loop.process("audio"))

    assert [e.title for e in response.sources] == ["Thread 4", "Article 4", "Thread 3"]
    assert response.debug_info is None

    # Citation numbers in the answer prompt line up with the returned sources
    answer_prompt = next(p for p in llm.prompts if p.startswith("You are a helpful AI assistant"))
    assert "[1] Thread 4 (Zoom Community)" in answer_prompt
    assert "[3] Thread 3 (Zoom Community)" in answer_prompt
    assert "[4]" not in answer_prompt


def test_degraded_response_on_internal_failure():
    class ExplodingPlanner(ActionPlanner):
        async def decide_next_action(self, state, tool_descriptions):
            raise RuntimeError("planner state corrupted")

    llm = MockCompletionProvider()
    registry = ToolRegistry()
    loop = ReasoningLoop(ExplodingPlanner(llm), ToolExecutor(registry), registry, AgentConfig(debug=True))

    response = asyncio.run(loop.process("anything"))

    assert response.error == "planner state corrupted"
    assert response.sources == []
    assert "planner state corrupted" in response.answer
    assert response.debug_info["terminationReason"] == TerminationReason.ERROR.value
    assert response.debug_info["iterations"] == 1


def test_sessions_are_isolated():
    loop = build_loop(RoutingProvider([SEARCH_REPLY, FINISH_REPLY]), debug=True)

    async def run_two():
        return await asyncio.gather(
            loop.process("first question"),
            loop.process("second question"),
        )

    first, second = asyncio.run(run_two())

    assert first.debug_info["conversationHistory"][0]["content"] == "first question"
    assert second.debug_info["conversationHistory"][0]["content"] == "second question"
