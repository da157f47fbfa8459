"""Exception hierarchy for restart operations.

Probe faults are absorbed by the convergence waiter; the remaining errors
propagate to the caller.
"""

from __future__ import annotations


class HostCycleError(Exception):
    """Base exception for all restart-related errors"""

    def __init__(self, message: str, remediation: str | None = None):
        self.message = message
        self.remediation = remediation
        super().__init__(self.message)


class ProbeFault(HostCycleError):
    """A single probe attempt failed at the transport or protocol level"""

    pass


class ProbeConfigurationError(HostCycleError):
    """The probe cannot work at all (tool missing, bad arguments); never retried"""

    pass


class RebootCommandError(HostCycleError):
    """The reboot command could not be dispatched to the target"""

    pass


class HandoffError(HostCycleError):
    """The post-restart agent start failed"""

    pass


class RestartAlreadyRunning(HostCycleError):
    """A restart with the same id is already in flight"""

    pass
