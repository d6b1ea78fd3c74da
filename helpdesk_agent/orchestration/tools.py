"""Tool catalog and dispatch for the reasoning loop."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from ..errors import ToolNotFoundError
from .models import Action, SessionState, ToolContext, ToolOutcome

logger = logging.getLogger(__name__)


@runtime_checkable
class Tool(Protocol):
    """Capability interface every tool implements."""

    name: str
    description: str
    parameters: list[str]

    async def execute(self, params: dict[str, Any], context: ToolContext) -> ToolOutcome:
        """
        Run the tool.

        Args:
            params: Parameters chosen by the planner
            context: Read-only view of the query and session context

        Returns:
            ToolOutcome with an observation and optional evidence
        """
        ...


@dataclass(frozen=True)
class ToolDescription:
    """Serializable description of a tool for the planning prompt."""

    name: str
    description: str
    parameter_names: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": list(self.parameter_names),
        }


def format_tool_descriptions(descriptions: list[ToolDescription]) -> str:
    """
    Get human-readable tool descriptions.

    Returns:
        Formatted string describing all available tools
    """
    return "\n\n".join(
        f"{d.name}: {d.description}\n  Parameters: {', '.join(d.parameter_names)}"
        for d in descriptions
    )


class ToolRegistry:
    """Name-keyed catalog of tools, kept in registration order."""

    def __init__(self):
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Store a tool by name; a later registration of the same name wins."""
        if tool.name in self._tools:
            # Keep the original slot so describe_all() order is stable.
            logger.debug(f"Replacing tool '{tool.name}'")
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool '{tool.name}'")

    def lookup(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def describe_all(self) -> list[ToolDescription]:
        return [
            ToolDescription(
                name=tool.name,
                description=tool.description,
                parameter_names=tuple(tool.parameters),
            )
            for tool in self._tools.values()
        ]

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


class ToolExecutor:
    """
    Executes planner actions against the registry.

    Never raises: a missing tool or a failing tool comes back as a
    ToolOutcome carrying the error.
    """

    def __init__(self, registry: ToolRegistry):
        """
        Initialize the tool executor.

        Args:
            registry: Catalog to resolve tool names against
        """
        self.registry = registry

    def _resolve(self, name: str) -> Tool:
        tool = self.registry.lookup(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    async def execute(self, action: Action, state: SessionState) -> ToolOutcome:
        """
        Execute an action.

        Args:
            action: Tool name and parameters chosen by the planner
            state: Current session state (only query and context are exposed)

        Returns:
            ToolOutcome with observation and evidence, or error
        """
        logger.info(f"Executing action {action.name}")

        try:
            tool = self._resolve(action.name)
        except ToolNotFoundError as e:
            logger.error(f"Tool '{action.name}' not found")
            return ToolOutcome(observation=f"Error: {e.message}", error=ToolNotFoundError.code)

        try:
            outcome = await tool.execute(dict(action.parameters), ToolContext.from_state(state))
        except Exception as e:
            logger.error(f"Error executing action {action.name}: {e}")
            return ToolOutcome(observation=f"Error executing {action.name}: {e}", error=str(e))

        logger.debug(f"Action {action.name} executed successfully")
        return outcome
