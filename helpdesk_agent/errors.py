"""Error types raised inside the helpdesk agent.

Every error is caught at the smallest enclosing component and turned into an
observation or fallback value; none of these should reach the caller of
``HelpdeskAgent.process``.
"""


class HelpdeskAgentError(Exception):
    """Base class for agent errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ToolNotFoundError(HelpdeskAgentError):
    """Raised when an action names a tool that is not registered."""

    code = "TOOL_NOT_FOUND"

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Tool '{tool_name}' not found")


class ToolExecutionError(HelpdeskAgentError):
    """Raised by a tool that cannot complete its work."""


class PlannerParseError(HelpdeskAgentError):
    """Raised when a planner reply cannot be turned into a decision."""


class CompletionFailure(HelpdeskAgentError):
    """Raised when the completion service call fails.

    The message carries the upstream error text.
    """


class SourceFetchError(HelpdeskAgentError):
    """Raised when a single retrieval source fails."""

    def __init__(self, source_id: str, message: str) -> None:
        self.source_id = source_id
        super().__init__(f"{source_id}: {message}")
