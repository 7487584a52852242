"""Bounded tool-use conversation loop.

::

    AWAITING_MODEL --end_turn/other--> DONE
          |  ^
    tool_use  | results appended (fewer than 5 round trips)
          v  |
    EXECUTING_TOOLS --5th round trip--> ABORTED
    AWAITING_MODEL --TransportError--> ABORTED
"""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import BaseModel, ConfigDict

from workctl.agent.tools import ToolRegistry
from workctl.llm.base import ModelTransport
from workctl.llm.models import (
    ModelRequest,
    ToolResultBlock,
    ToolUseBlock,
    TransportError,
    Turn,
)

logger = logging.getLogger(__name__)

MAX_ROUND_TRIPS = 5
ITERATION_LIMIT_MESSAGE = "Agent reached maximum tool iterations. Please try a simpler query."


class AgentState(str, Enum):
    AWAITING_MODEL = "AWAITING_MODEL"
    EXECUTING_TOOLS = "EXECUTING_TOOLS"
    DONE = "DONE"
    ABORTED = "ABORTED"


class AgentResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: AgentState
    text: str
    iterations: int
    turns: tuple[Turn, ...]


class AgentLoop:
    """Drives one conversation to DONE or ABORTED.

    ``iterations`` counts requests sent to the transport, which is never more
    than ``max_round_trips``.
    """

    def __init__(
        self,
        transport: ModelTransport,
        registry: ToolRegistry,
        max_round_trips: int = MAX_ROUND_TRIPS,
    ) -> None:
        self.transport = transport
        self.registry = registry
        self.max_round_trips = max_round_trips

    def run(self, project: str, briefing: str, message: str) -> AgentResult:
        turns: list[Turn] = [Turn.user_text(message)]
        tool_specs = self.registry.specs()
        state = AgentState.AWAITING_MODEL
        pending: list[ToolUseBlock] = []
        iterations = 0
        text = ""

        while state in (AgentState.AWAITING_MODEL, AgentState.EXECUTING_TOOLS):
            if state is AgentState.AWAITING_MODEL:
                iterations += 1
                request = ModelRequest(system=briefing, turns=tuple(turns), tools=tool_specs)
                try:
                    response = self.transport.send(request)
                except TransportError as e:
                    logger.warning("model transport failed on round trip %d: %s", iterations, e)
                    text = f"Model transport error: {e}"
                    state = AgentState.ABORTED
                    continue

                logger.debug(
                    "round trip %d: stop_reason=%s tool_uses=%d",
                    iterations, response.stop_reason, len(response.tool_uses),
                )
                if response.stop_reason == "tool_use" and response.tool_uses:
                    turns.append(Turn(role="assistant", content=tuple(response.content)))
                    pending = response.tool_uses
                    state = AgentState.EXECUTING_TOOLS
                else:
                    text = response.text
                    state = AgentState.DONE

            else:
                results = tuple(self._call_tool(project, call) for call in pending)
                turns.append(Turn(role="user", content=results))
                pending = []
                if iterations >= self.max_round_trips:
                    logger.warning("stopping after %d round trips", iterations)
                    text = ITERATION_LIMIT_MESSAGE
                    state = AgentState.ABORTED
                else:
                    state = AgentState.AWAITING_MODEL

        return AgentResult(state=state, text=text, iterations=iterations, turns=tuple(turns))

    def _call_tool(self, project: str, call: ToolUseBlock) -> ToolResultBlock:
        tool = self.registry.get(call.name)
        if tool is None:
            logger.warning("model requested unknown tool %r", call.name)
            content = f"Unknown tool: {call.name}"
        else:
            content = tool.execute(project, call.input)
        return ToolResultBlock(tool_use_id=call.id, content=content)
