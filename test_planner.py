"""
Action Planner Tests

Tests for parsing planner replies and for the planner's fallbacks when the
completion service misbehaves.
"""

import asyncio

import pytest

from helpdesk_agent.config.loader import PlannerConfig
from helpdesk_agent.errors import CompletionFailure, PlannerParseError
from helpdesk_agent.llm import MockCompletionProvider
from helpdesk_agent.orchestration.models import Action, Evidence
from helpdesk_agent.orchestration.planner import (
    FALLBACK_ANSWER,
    ActionPlanner,
    parse_decision,
    parse_parameters,
    parse_parameters_json,
    parse_parameters_lines,
)
from helpdesk_agent.orchestration.state_store import StateStore
from helpdesk_agent.orchestration.tools import ToolDescription

DEFAULT = Action(name="search", parameters={"query": "original question"})

TOOLS = [
    ToolDescription(
        name="search",
        description="Search for information from Zoom Community, Zoom Support, and Google",
        parameter_names=("query", "sources"),
    )
]


def make_store(query: str = "My audio isn't working") -> StateStore:
    store = StateStore()
    store.initialize(query, {"sources": ["zoom_community"]})
    return store


def test_parse_labeled_reply():
    text = (
        'Thought: X\n'
        'Action: search\n'
        'Action Parameters: {"query":"audio issue"}\n'
        'Final Answer: false'
    )

    decision = parse_decision(text, DEFAULT)

    assert decision.reasoning == "X"
    assert decision.action == Action(name="search", parameters={"query": "audio issue"})
    assert decision.should_finish is False


def test_parse_fenced_json_parameters():
    text = (
        "Thought: The user has an audio problem, search the support sites.\n\n"
        "Action: search\n"
        "Action Parameters: ```json\n"
        '{"query": "zoom audio not working", "sources": ["zoom_support", "zoom_community"]}\n'
        "```\n"
    )

    decision = parse_decision(text, DEFAULT)

    assert decision.action.name == "search"
    assert decision.action.parameters == {
        "query": "zoom audio not working",
        "sources": ["zoom_support", "zoom_community"],
    }
    assert decision.reasoning.startswith("The user has an audio problem")


def test_parse_parameters_line_fallback():
    text = 'query: "camera not detected",\nsources: zoom_support'

    with pytest.raises(PlannerParseError):
        parse_parameters_json(text)

    assert parse_parameters_lines(text) == {
        "query": "camera not detected",
        "sources": "zoom_support",
    }
    assert parse_parameters(text) == parse_parameters_lines(text)


def test_parse_parameters_several_pairs_on_one_line():
    text = "Thought: search\nAction: search\nAction Parameters: query: audio, sources: [zoom_support]"

    decision = parse_decision(text, DEFAULT)

    assert decision.action.parameters == {"query": "audio", "sources": "[zoom_support]"}
    assert parse_parameters('"query": "no sound", "sources": "zoom_community"') == {
        "query": "no sound",
        "sources": "zoom_community",
    }


def test_parse_parameters_total_failure_is_empty():
    assert parse_parameters("just look it up please") == {}
    assert parse_parameters("") == {}


def test_parse_parameters_rejects_non_object_json():
    with pytest.raises(PlannerParseError):
        parse_parameters_json('["query", "audio"]')


def test_parse_action_name_is_cleaned():
    decision = parse_decision("Thought: ok\nAction: `search`\n", DEFAULT)

    assert decision.action.name == "search"
    assert decision.action.parameters == {}


def test_parse_missing_action_uses_fallback():
    for text in (
        "Thought: I am not sure what to do.\nFinal Answer: false",
        "Thought: I am not sure what to do.",
        "",
    ):
        decision = parse_decision(text, DEFAULT)
        assert decision.action == DEFAULT
        assert decision.should_finish is False


def test_parse_finish_case_insensitive():
    decision = parse_decision("Thought: Enough context.\nFinal Answer: TRUE", DEFAULT)

    assert decision.should_finish is True
    assert decision.action is None
    assert decision.reasoning == "Enough context."


def test_decide_next_action_sends_low_temperature_prompt():
    llm = MockCompletionProvider(
        replies=['Thought: search\nAction: search\nAction Parameters: {"query": "audio"}']
    )
    planner = ActionPlanner(llm, PlannerConfig(max_tokens=500, temperature=0.2))
    store = make_store()
    store.increment_iteration()

    decision = asyncio.run(planner.decide_next_action(store.state, TOOLS))

    assert decision.action.parameters == {"query": "audio"}
    prompt = llm.prompts[0]
    assert 'User query: "My audio isn\'t working"' in prompt
    assert "Current iteration: 1" in prompt
    assert "user: My audio isn't working" in prompt
    assert "search: Search for information" in prompt
    assert llm.options[0].max_tokens == 500
    assert llm.options[0].temperature == 0.2


def test_decide_next_action_completion_failure():
    llm = MockCompletionProvider(replies=[CompletionFailure("rate limited")])
    planner = ActionPlanner(llm)
    store = make_store()

    decision = asyncio.run(planner.decide_next_action(store.state, TOOLS))

    assert decision.reasoning == "Error planning next action: rate limited"
    assert decision.action == Action(name="search", parameters={"query": "My audio isn't working"})
    assert decision.should_finish is False


def test_decide_next_action_timeout_becomes_default_action():
    class SlowProvider(MockCompletionProvider):
        async def complete(self, prompt, options=None):
            await asyncio.sleep(1)
            return await super().complete(prompt, options)

    planner = ActionPlanner(SlowProvider(), PlannerConfig(timeout_seconds=0.01))
    store = make_store()

    decision = asyncio.run(planner.decide_next_action(store.state, TOOLS))

    assert decision.action.name == "search"
    assert decision.reasoning.startswith("Error planning next action")


def test_answer_prompt_numbers_ranked_evidence():
    store = make_store()
    store.add_reasoning("search the community")
    store.add_observation("Found 2 results", "search")
    store.merge({
        "evidence": [
            Evidence("a", "Audio settings", "https://support.zoom.com/audio", "Zoom Support", "", 0.6),
            Evidence("b", "Audio fixes", "https://community.zoom.com/audio", "Zoom Community", "", 0.9),
        ]
    })

    prompt = ActionPlanner(MockCompletionProvider()).build_answer_prompt(store.state)

    assert "[1] Audio fixes (Zoom Community): https://community.zoom.com/audio" in prompt
    assert "[2] Audio settings (Zoom Support): https://support.zoom.com/audio" in prompt
    assert "Reasoning: Thinking: search the community" in prompt
    assert "Observation: Observation from search: Found 2 results" in prompt


def test_answer_prompt_numbers_only_returned_sources():
    store = make_store()
    store.merge({
        "evidence": [
            Evidence(f"id{i}", f"Article {i}", f"https://support.zoom.com/{i}", "Zoom Support", "", i / 10)
            for i in range(7)
        ]
    })
    planner = ActionPlanner(MockCompletionProvider())

    prompt = planner.build_answer_prompt(store.state, max_sources=5)

    assert "[1] Article 6 (Zoom Support)" in prompt
    assert "[5] Article 2 (Zoom Support)" in prompt
    assert "[6]" not in prompt
    assert "[7] Article 0" in planner.build_answer_prompt(store.state)


def test_answer_prompt_without_evidence():
    prompt = ActionPlanner(MockCompletionProvider()).build_answer_prompt(make_store().state)

    assert "No sources were found." in prompt


def test_synthesize_final_answer():
    llm = MockCompletionProvider(replies=["Check your microphone permissions [1]."])
    planner = ActionPlanner(llm, PlannerConfig(answer_max_tokens=1000, answer_temperature=0.3))

    answer = asyncio.run(planner.synthesize_final_answer(make_store().state))

    assert answer == "Check your microphone permissions [1]."
    assert llm.options[0].max_tokens == 1000
    assert llm.options[0].temperature == 0.3


def test_synthesize_final_answer_failure_returns_fallback():
    planner = ActionPlanner(MockCompletionProvider(replies=[CompletionFailure("boom")]))

    answer = asyncio.run(planner.synthesize_final_answer(make_store().state))

    assert answer == FALLBACK_ANSWER


def test_synthesize_final_answer_empty_returns_fallback():
    planner = ActionPlanner(MockCompletionProvider(replies=["   "]))

    answer = asyncio.run(planner.synthesize_final_answer(make_store().state))

    assert answer == FALLBACK_ANSWER
