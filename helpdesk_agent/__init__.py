"""Helpdesk agent: answers Zoom support questions with a plan/act/observe loop."""

from .orchestration.agent import HelpdeskAgent
from .orchestration.models import AgentResponse, ProcessOptions
from .config.factory import create_agent, create_from_profile

__all__ = [
    "HelpdeskAgent",
    "AgentResponse",
    "ProcessOptions",
    "create_agent",
    "create_from_profile",
]
