"""Data models for the reasoning/acting agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

from ..sources.deduplication import evidence_id

if TYPE_CHECKING:
    from ..sources.models import SourceResult


class Role(str, Enum):
    """Who produced a trace entry."""

    USER = "user"
    SYSTEM = "system"
    ASSISTANT = "assistant"


class TraceKind(str, Enum):
    """What a trace entry records."""

    QUERY = "query"
    REASONING = "reasoning"
    OBSERVATION = "observation"
    ANSWER = "answer"


class TerminationReason(str, Enum):
    """Why a session stopped."""

    PLANNER_FINISHED = "planner_finished"
    MAX_ITERATIONS = "max_iterations"
    ERROR = "error"


@dataclass(frozen=True)
class TraceEntry:
    """One line of the session transcript."""

    role: Role
    content: str
    kind: TraceKind
    tool_name: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        data = {"role": self.role.value, "content": self.content, "kind": self.kind.value}
        if self.tool_name:
            data["tool"] = self.tool_name
        return data


@dataclass(frozen=True)
class Evidence:
    """A retrieved, attributable piece of information."""

    id: str
    title: str
    locator: str
    origin_label: str
    snippet: str
    relevance_score: float

    @classmethod
    def from_source_result(cls, result: SourceResult) -> Evidence:
        """Build evidence from a connector hit; the id comes from the URL."""
        return cls(
            id=evidence_id(result.url),
            title=result.title,
            locator=result.url,
            origin_label=result.origin_label,
            snippet=result.snippet,
            relevance_score=result.relevance_score,
        )

    def to_dict(self) -> dict:
        """Outbound shape used by the HTTP layer and the CLI."""
        return {
            "id": self.id,
            "title": self.title,
            "url": self.locator,
            "source": self.origin_label,
            "snippet": self.snippet,
            "relevance": self.relevance_score,
        }


@dataclass
class Action:
    """A tool invocation chosen by the planner."""

    name: str
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass
class Decision:
    """Planner output for one iteration.

    When ``should_finish`` is true the action is ignored.
    """

    reasoning: str
    action: Action | None = None
    should_finish: bool = False


def freeze(value: Any) -> Any:
    """Read-only copy of session data: lists become tuples, dicts become proxies."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze(v) for v in value)
    return value


@dataclass(frozen=True)
class ToolContext:
    """Read-only view of the session handed to tools."""

    query: str
    context: Mapping[str, Any]

    @classmethod
    def from_state(cls, state: SessionState) -> ToolContext:
        return cls(query=state.query, context=freeze(state.context))


@dataclass
class ToolOutcome:
    """Uniform result of running a tool."""

    observation: str
    evidence: list[Evidence] | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class SessionState:
    """Mutable state of one session, owned by the reasoning loop."""

    query: str
    context: Mapping[str, Any] = field(default_factory=dict)
    trace: list[TraceEntry] = field(default_factory=list)
    evidence: list[Evidence] = field(default_factory=list)
    iterations: int = 0
    answer: str | None = None
    termination_reason: TerminationReason | None = None
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_done(self) -> bool:
        return self.answer is not None

    def ranked_evidence(self) -> list[Evidence]:
        """Evidence by relevance, highest first; ties keep insertion order."""
        return sorted(self.evidence, key=lambda e: e.relevance_score, reverse=True)


@dataclass
class ProcessOptions:
    """Caller-supplied options for one query."""

    sources: list[str] | None = None
    files: list[bytes] | None = None
    context: dict[str, Any] = field(default_factory=dict)


@dataclass
class AgentResponse:
    """Bounded response returned to the caller."""

    answer: str
    sources: list[Evidence] = field(default_factory=list)
    error: str | None = None
    debug_info: dict | None = None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "answer": self.answer,
            "sources": [e.to_dict() for e in self.sources],
        }
        if self.error is not None:
            data["error"] = self.error
        if self.debug_info is not None:
            data["debugInfo"] = self.debug_info
        return data
