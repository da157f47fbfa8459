"""Post-restart handoff: bring the remote agent back online."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from scrapli.exceptions import ScrapliException

from hostcycle.config import Settings, settings
from hostcycle.errors import HandoffError
from hostcycle.models.target import Target
from hostcycle.services.ssh_session import DriverFactory, RemoteSession
from hostcycle.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class RestartContext:
    """Caller state passed through to the next pipeline stage."""

    restart_id: str
    cfg: Settings = field(default_factory=lambda: settings)
    cancel_event: threading.Event = field(default_factory=threading.Event)


Handoff = Callable[[Target, RestartContext], None]


class AgentStartHandoff:
    """Runs the configured agent start command on the restarted host.

    With no command configured the handoff is a logged no-op.
    """

    def __init__(self, driver_factory: Optional[DriverFactory] = None) -> None:
        self._driver_factory = driver_factory

    def __call__(self, target: Target, context: RestartContext) -> None:
        command = context.cfg.hostcycle_agent_start_command
        if not command:
            log.info("handoff.skipped", host=target.host, restart_id=context.restart_id)
            return

        session = RemoteSession(target, context.cfg, driver_factory=self._driver_factory)
        try:
            result = session.run(command)
        except (ScrapliException, OSError) as exc:
            raise HandoffError(f"Agent start on {target.host} failed: {exc}") from exc
        if result.failed:
            raise HandoffError(
                f"Agent start on {target.host} failed: {result.output[:200]}",
            )
        log.info("handoff.agent_started", host=target.host, restart_id=context.restart_id)
