"""In-memory state for a single agent session."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from types import MappingProxyType
from typing import Any

from ..sources.deduplication import deduplicate_evidence
from .models import Evidence, Role, SessionState, TraceEntry, TraceKind

logger = logging.getLogger(__name__)


class StateStore:
    """
    Owns the mutable state of one session.

    Provides:
    - Overwrite-style initialization per query
    - Append-only trace
    - Evidence merge with first-seen deduplication by id
    - A monotonic iteration counter
    - A single final answer
    """

    IMMUTABLE_FIELDS = frozenset({"query", "context", "trace", "created_at"})

    def __init__(self):
        self._state: SessionState | None = None

    @property
    def is_initialized(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> SessionState:
        if self._state is None:
            raise RuntimeError("State not initialized. Call initialize() first.")
        return self._state

    def initialize(self, query: str, context: dict[str, Any] | None = None) -> SessionState:
        """
        Start a fresh session, discarding anything held before.

        Args:
            query: The user's question
            context: Caller-supplied scope (sources, files, ...)

        Returns:
            The new session state
        """
        self._state = SessionState(
            query=query,
            context=MappingProxyType(dict(context or {})),
        )
        self._state.trace.append(
            TraceEntry(role=Role.USER, content=query, kind=TraceKind.QUERY)
        )
        logger.debug(f"Initialized state with query: {query}")
        return self._state

    def merge(self, update: dict[str, Any]) -> SessionState:
        """
        Shallow-merge fields into the state.

        ``evidence`` is appended and deduplicated rather than replaced.

        Args:
            update: Field values to merge

        Raises:
            ValueError: On an attempt to change an immutable field or to
                decrease the iteration counter
        """
        state = self.state

        for key, value in update.items():
            if key == "evidence":
                self.add_evidence(value or [])
            elif key in self.IMMUTABLE_FIELDS:
                raise ValueError(f"Session field '{key}' cannot be changed")
            elif key == "iterations":
                if value < state.iterations:
                    raise ValueError(
                        f"Iterations cannot decrease ({state.iterations} -> {value})"
                    )
                state.iterations = value
            elif key == "answer":
                self.set_answer(value)
            elif hasattr(state, key):
                setattr(state, key, value)
            else:
                raise ValueError(f"Unknown session field '{key}'")

        logger.debug(f"Updated state, iteration {state.iterations}")
        return state

    def add_evidence(self, items: Iterable[Evidence]) -> list[Evidence]:
        """Append evidence, keeping the first instance of every id."""
        state = self.state
        before = len(state.evidence)
        state.evidence = deduplicate_evidence([*state.evidence, *items])
        logger.debug(f"Evidence count {before} -> {len(state.evidence)}")
        return state.evidence

    def increment_iteration(self) -> int:
        self.state.iterations += 1
        return self.state.iterations

    def append_trace(self, entry: TraceEntry) -> None:
        """Append an entry; earlier entries are never touched."""
        self.state.trace.append(entry)

    def add_reasoning(self, thought: str) -> None:
        self.append_trace(
            TraceEntry(role=Role.SYSTEM, content=f"Thinking: {thought}", kind=TraceKind.REASONING)
        )

    def add_observation(self, observation: str, tool_name: str) -> None:
        self.append_trace(
            TraceEntry(
                role=Role.SYSTEM,
                content=f"Observation from {tool_name}: {observation}",
                kind=TraceKind.OBSERVATION,
                tool_name=tool_name,
            )
        )
        logger.debug(f"Added observation from {tool_name}")

    def set_answer(self, text: str) -> None:
        """
        Record the final answer and append it to the trace.

        Intended to be called once per session. A second call overwrites
        the answer and is logged as unexpected.
        """
        state = self.state
        if state.answer is not None:
            logger.warning("Final answer set more than once; keeping the latest")
        state.answer = text
        self.append_trace(
            TraceEntry(role=Role.ASSISTANT, content=text, kind=TraceKind.ANSWER)
        )
        logger.debug("Set final answer")
