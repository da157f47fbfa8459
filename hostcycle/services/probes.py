"""Reachability and management probes.

Both probes expose ``attempt() -> ProbeOutcome``. A well-formed answer is
returned as UP or DOWN; a transport or protocol failure raises ProbeFault,
and a probe that can never work on this controller raises
ProbeConfigurationError.
"""

from __future__ import annotations

import math
import subprocess
import sys
from typing import Callable, Protocol

from scrapli.exceptions import ScrapliException

from hostcycle.config import Settings, settings
from hostcycle.errors import ProbeConfigurationError, ProbeFault
from hostcycle.models.restart import ProbeOutcome
from hostcycle.services.ssh_session import RemoteSession
from hostcycle.utils.logging import get_logger

log = get_logger(__name__)

# Output that means the identity query ran but the remote shell rejected it
IDENTITY_FAILURE_MARKERS: list[str] = [
    "command not found",
    "is not recognized as an internal or external command",
    "Permission denied",
    "Access is denied",
]


class Probe(Protocol):
    name: str

    def attempt(self) -> ProbeOutcome: ...


# ── network-layer echo ────────────────────────────────────────────────────


class ReachabilityProbe:
    """One ICMP echo request via the system ``ping`` utility."""

    name = "ping"

    def __init__(
        self,
        host: str,
        *,
        timeout: float | None = None,
        cfg: Settings | None = None,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        _cfg = cfg or settings
        self._host = host
        self._timeout = timeout if timeout is not None else _cfg.hostcycle_ping_timeout_seconds
        self._runner = runner

    def command(self) -> list[str]:
        if sys.platform.startswith("win"):
            return ["ping", "-n", "1", "-w", str(int(self._timeout * 1000)), self._host]
        return ["ping", "-c", "1", "-W", str(max(1, math.ceil(self._timeout))), self._host]

    def attempt(self) -> ProbeOutcome:
        if self._host.startswith("-"):
            raise ProbeConfigurationError(
                f"Refusing to ping host {self._host!r}",
                remediation="Host names must not start with '-'",
            )
        cmd = self.command()
        try:
            result = self._runner(
                cmd,
                capture_output=True,
                text=True,
                timeout=self._timeout + 2,
            )
        except FileNotFoundError as exc:
            raise ProbeConfigurationError(
                "ping utility not found on this controller",
                remediation="Install iputils-ping or disable ping-based waiting",
            ) from exc
        except (subprocess.TimeoutExpired, OSError) as exc:
            raise ProbeFault(f"ping {self._host} failed: {exc}") from exc

        # Non-zero covers both "no reply" and "unknown host"
        outcome = ProbeOutcome.UP if result.returncode == 0 else ProbeOutcome.DOWN
        log.debug("probe.ping", host=self._host, rc=result.returncode, outcome=outcome.value)
        return outcome


# ── remote-management round trip ──────────────────────────────────────────


class ManagementProbe:
    """Authenticated SSH session plus an identity query."""

    name = "management"

    def __init__(
        self,
        session: RemoteSession,
        *,
        command: str | None = None,
        cfg: Settings | None = None,
    ) -> None:
        _cfg = cfg or settings
        self._session = session
        self._command = command or _cfg.hostcycle_identity_command

    def attempt(self) -> ProbeOutcome:
        host = self._session.target.host
        try:
            result = self._session.run(
                self._command,
                failed_when_contains=IDENTITY_FAILURE_MARKERS,
            )
        except FileNotFoundError as exc:
            raise ProbeConfigurationError(
                "ssh client not found on this controller",
                remediation="Install OpenSSH or configure credentials for the paramiko transport",
            ) from exc
        except (ScrapliException, OSError) as exc:
            raise ProbeFault(f"management probe to {host} failed: {exc}") from exc

        outcome = ProbeOutcome.DOWN if result.failed else ProbeOutcome.UP
        log.debug("probe.management", host=host, outcome=outcome.value)
        return outcome
