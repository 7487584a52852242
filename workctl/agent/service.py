"""Public entry points for talking to the assistant about a project."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from workctl.agent import prompts
from workctl.agent.context import ContextBuilder
from workctl.agent.loop import AgentLoop, AgentResult
from workctl.agent.tools import build_registry
from workctl.config import ConfigurationError, LLMSettings, WorkctlConfig, resolve_api_key
from workctl.core.store import ProjectStore
from workctl.events import EventBus
from workctl.llm import ModelTransport, create_transport

logger = logging.getLogger(__name__)

TransportFactory = Callable[[LLMSettings, str], ModelTransport]


class AgentService:
    """Wires the briefing, tool registry and transport into one ``ask`` call.

    ``ask`` and the convenience wrappers never raise; failures come back as
    text.
    """

    def __init__(
        self,
        config: WorkctlConfig,
        store: ProjectStore | None = None,
        transport_factory: TransportFactory = create_transport,
        today: Callable[[], date] = date.today,
        event_bus: EventBus | None = None,
    ) -> None:
        self.config = config
        self.today = today
        self.store = store or ProjectStore(config.workspace, today=today, event_bus=event_bus)
        self.context_builder = ContextBuilder(self.store, today)
        self._transport_factory = transport_factory

    def ask(self, project: str, message: str, allow_write: bool = False) -> str:
        try:
            return self.converse(project, message, allow_write).text
        except ConfigurationError as e:
            return str(e)
        except Exception as e:
            logger.exception("agent request failed for project %s", project)
            return f"Agent error: {e}"

    def converse(self, project: str, message: str, allow_write: bool = False) -> AgentResult:
        """Run the loop and return the full result. Raises on setup failures.

        The credential is checked before any project file is touched.
        """
        api_key = resolve_api_key(self.config.llm)
        briefing = self.context_builder.build(project, allow_write)
        registry = build_registry(self.store, allow_write, self.today)
        transport = self._transport_factory(self.config.llm, api_key)
        logger.debug("asking %s with tools %s", self.config.llm.provider, registry.names)
        result = AgentLoop(transport, registry).run(project, briefing, message)
        logger.info("agent finished: state=%s round_trips=%d", result.state.value, result.iterations)
        return result

    def weekly_summary(self, project: str, from_date: date | str, to_date: date | str) -> str:
        prompt = prompts.WEEKLY_SUMMARY.format(from_date=str(from_date), to_date=str(to_date))
        return self.ask(project, prompt, allow_write=False)

    def decompose_goal(self, project: str, goal: str) -> str:
        return self.ask(project, prompts.DECOMPOSE_GOAL.format(goal=goal), allow_write=True)

    def insights(self, project: str) -> str:
        return self.ask(project, prompts.INSIGHTS, allow_write=False)
