"""Assistant orchestration: tools, briefing, loop and service."""

from workctl.agent.context import ContextBuilder
from workctl.agent.loop import (
    ITERATION_LIMIT_MESSAGE,
    MAX_ROUND_TRIPS,
    AgentLoop,
    AgentResult,
    AgentState,
)
from workctl.agent.service import AgentService
from workctl.agent.tools import (
    Tool,
    ToolExecutionError,
    ToolName,
    ToolRegistry,
    build_registry,
)

__all__ = [
    "AgentLoop",
    "AgentResult",
    "AgentService",
    "AgentState",
    "ContextBuilder",
    "ITERATION_LIMIT_MESSAGE",
    "MAX_ROUND_TRIPS",
    "Tool",
    "ToolExecutionError",
    "ToolName",
    "ToolRegistry",
    "build_registry",
]
