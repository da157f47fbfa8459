"""Probe, wait and restart result models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ProbeOutcome(str, Enum):
    """Result of a single probe attempt."""

    UP = "up"
    DOWN = "down"
    INDETERMINATE = "indeterminate"


class WaitGoal(str, Enum):
    AWAITING_DOWN = "awaiting_down"
    AWAITING_UP = "awaiting_up"


class WaitOutcome(str, Enum):
    CONVERGED = "converged"
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"


class RestartStep(str, Enum):
    DETECT = "detect"
    ISSUE = "issue"
    AWAIT_DOWN = "await_down"
    AWAIT_UP_PRIMARY = "await_up_primary"
    AWAIT_UP_MANAGEMENT = "await_up_management"
    HANDOFF = "handoff"
    CONVERGED = "converged"


class WaitReport(BaseModel):
    """How a single wait step ended."""

    probe: str
    goal: WaitGoal
    outcome: WaitOutcome
    attempts: int = 0
    elapsed_seconds: float = 0.0


class RestartResult(BaseModel):
    """Result of one restart sequence."""

    host: str
    outcome: WaitOutcome
    can_ping: bool
    final_step: RestartStep
    delay_seconds: int
    waits: list[WaitReport] = Field(default_factory=list)
    elapsed_seconds: float = 0.0
    handoff_invoked: bool = False

    @property
    def converged(self) -> bool:
        return self.outcome == WaitOutcome.CONVERGED


class ActiveRestart(BaseModel):
    """Registry entry for a restart currently in flight."""

    restart_id: str
    host: str
    step: RestartStep
    started_at: str
    cancel_requested: bool = False
