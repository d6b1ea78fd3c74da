"""Orchestration for the helpdesk agent.

A ReAct-style loop over a tool registry:
- StateStore: per-session trace, evidence and iteration counter
- ActionPlanner: asks the completion service for the next step
- ToolExecutor: runs the chosen tool and normalizes failures
- ReasoningLoop: plan -> act -> observe until an answer is ready

``HelpdeskAgent`` lives in ``orchestration.agent`` and is re-exported from
the top-level package.
"""

from .models import (
    Action,
    AgentResponse,
    Decision,
    Evidence,
    ProcessOptions,
    Role,
    SessionState,
    TerminationReason,
    ToolContext,
    ToolOutcome,
    TraceEntry,
    TraceKind,
)
from .state_store import StateStore
from .tools import Tool, ToolDescription, ToolExecutor, ToolRegistry, format_tool_descriptions
from .planner import ActionPlanner, parse_decision, parse_parameters
from .reasoning_loop import ReasoningLoop

__all__ = [
    # Models
    "Action",
    "AgentResponse",
    "Decision",
    "Evidence",
    "ProcessOptions",
    "Role",
    "SessionState",
    "TerminationReason",
    "ToolContext",
    "ToolOutcome",
    "TraceEntry",
    "TraceKind",
    # Components
    "StateStore",
    "Tool",
    "ToolDescription",
    "ToolRegistry",
    "ToolExecutor",
    "format_tool_descriptions",
    "ActionPlanner",
    "parse_decision",
    "parse_parameters",
    "ReasoningLoop",
]
