"""Restart sequencing: detect → issue → await down → await up → handoff.

Reachability (ping) comes back before the management stack is ready, so it
serves as the cheap down/rebooting signal when it works at all. Only the
management probe certifies the host can run further remote operations, so
the final management wait always runs.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from hostcycle.config import Settings, settings
from hostcycle.models.restart import (
    ProbeOutcome,
    RestartResult,
    RestartStep,
    WaitGoal,
    WaitOutcome,
    WaitReport,
)
from hostcycle.models.target import Target
from hostcycle.services.handoff import AgentStartHandoff, Handoff, RestartContext
from hostcycle.services.probes import ManagementProbe, Probe, ReachabilityProbe
from hostcycle.services.reboot import RebootCommand
from hostcycle.services.ssh_session import DriverFactory, RemoteSession
from hostcycle.services.waiter import ConvergenceWaiter
from hostcycle.utils.logging import get_logger

log = get_logger(__name__)


class RestartOrchestrator:
    """Runs one restart sequence against one target.

    Every collaborator is injectable; the defaults talk to the real host.
    """

    def __init__(
        self,
        target: Target,
        *,
        cfg: Settings | None = None,
        reachability: Probe | None = None,
        management: Probe | None = None,
        reboot: RebootCommand | None = None,
        handoff: Handoff | None = None,
        sleep: Optional[Callable[[float], object]] = None,
        clock: Callable[[], float] = time.monotonic,
        on_step: Optional[Callable[[RestartStep], None]] = None,
        driver_factory: Optional[DriverFactory] = None,
    ) -> None:
        self._target = target
        self._cfg = cfg or settings
        session = RemoteSession(target, self._cfg, driver_factory=driver_factory)
        self._reachability = reachability or ReachabilityProbe(target.host, cfg=self._cfg)
        self._management = management or ManagementProbe(session, cfg=self._cfg)
        self._reboot = reboot or RebootCommand(session, self._cfg)
        self._handoff = handoff or AgentStartHandoff(driver_factory)
        self._sleep = sleep
        self._clock = clock
        self._on_step = on_step

    # ── helpers ───────────────────────────────────────────────────────

    def _enter(self, step: RestartStep) -> None:
        log.info("restart.step", host=self._target.host, step=step.value)
        if self._on_step is not None:
            self._on_step(step)

    def detect_can_ping(self) -> bool:
        """One reachability attempt; anything but UP disables ping waits."""
        try:
            return self._reachability.attempt() == ProbeOutcome.UP
        except Exception as exc:
            log.info("restart.ping_unusable", host=self._target.host, error=str(exc))
            return False

    # ── public ────────────────────────────────────────────────────────

    def run(
        self,
        delay_seconds: int,
        context: RestartContext,
        *,
        max_wait: float | None = None,
    ) -> RestartResult:
        """Reboot the target and block until it is operable again.

        Stops early with CANCELLED or TIMEOUT when a wait does; the handoff
        only runs after full convergence.
        """
        host = self._target.host
        budget = max_wait if max_wait is not None else self._cfg.hostcycle_max_wait_seconds
        ping_interval = self._cfg.hostcycle_ping_interval_seconds
        mgmt_interval = self._cfg.hostcycle_management_interval_seconds
        waiter = ConvergenceWaiter(
            sleep=self._sleep,
            clock=self._clock,
            cancel_event=context.cancel_event,
        )
        start = self._clock()
        waits: list[WaitReport] = []

        def finish(outcome: WaitOutcome, step: RestartStep, handed_off: bool = False) -> RestartResult:
            result = RestartResult(
                host=host,
                outcome=outcome,
                can_ping=can_ping,
                final_step=step,
                delay_seconds=delay_seconds,
                waits=waits,
                elapsed_seconds=self._clock() - start,
                handoff_invoked=handed_off,
            )
            log.info(
                "restart.finished",
                host=host,
                outcome=outcome.value,
                step=step.value,
                elapsed=round(result.elapsed_seconds, 1),
            )
            return result

        # ── 1. Detect ─────────────────────────────────────────────────
        self._enter(RestartStep.DETECT)
        can_ping = self.detect_can_ping()
        log.info("restart.capability", host=host, can_ping=can_ping)
        if context.cancel_event.is_set():
            return finish(WaitOutcome.CANCELLED, RestartStep.DETECT)

        # ── 2. Issue reboot ───────────────────────────────────────────
        self._enter(RestartStep.ISSUE)
        self._reboot.issue(delay_seconds)
        log.info("restart.reboot_issued", host=host, delay=delay_seconds)

        # ── 3-5. Waits ────────────────────────────────────────────────
        plan: list[tuple[RestartStep, Probe, WaitGoal, float]] = []
        if can_ping:
            plan.append((RestartStep.AWAIT_DOWN, self._reachability, WaitGoal.AWAITING_DOWN, ping_interval))
            plan.append((RestartStep.AWAIT_UP_PRIMARY, self._reachability, WaitGoal.AWAITING_UP, ping_interval))
        else:
            plan.append((RestartStep.AWAIT_DOWN, self._management, WaitGoal.AWAITING_DOWN, mgmt_interval))
        plan.append((RestartStep.AWAIT_UP_MANAGEMENT, self._management, WaitGoal.AWAITING_UP, mgmt_interval))

        for step, probe, goal, interval in plan:
            self._enter(step)
            report = waiter.wait(probe, goal, interval, max_wait=budget)
            waits.append(report)
            if report.outcome != WaitOutcome.CONVERGED:
                return finish(report.outcome, step)

        # ── 6. Handoff ────────────────────────────────────────────────
        log.info("restart.host_operable", host=host)
        self._enter(RestartStep.HANDOFF)
        self._handoff(self._target, context)

        self._enter(RestartStep.CONVERGED)
        return finish(WaitOutcome.CONVERGED, RestartStep.CONVERGED, handed_off=True)
