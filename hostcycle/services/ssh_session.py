"""Per-attempt SSH sessions to restart targets.

Uses scrapli's GenericDriver. Every call opens a fresh connection and closes
it before returning: a rebooting host invalidates any session kept around,
so nothing is reused between attempts.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from scrapli.driver import GenericDriver
from scrapli.response import Response

from hostcycle.config import Settings, settings
from hostcycle.models.commands import CommandResult
from hostcycle.models.target import Target
from hostcycle.utils.logging import get_logger

log = get_logger(__name__)

DriverFactory = Callable[..., Any]


class RemoteSession:
    """Opens short-lived SSH sessions to a single target."""

    def __init__(
        self,
        target: Target,
        cfg: Settings | None = None,
        driver_factory: DriverFactory | None = None,
    ) -> None:
        self._target = target
        self._cfg = cfg or settings
        self._driver_factory = driver_factory or GenericDriver

    @property
    def target(self) -> Target:
        return self._target

    # ── connection lifecycle ──────────────────────────────────────────

    def _driver_kwargs(self) -> dict:
        kwargs: dict = dict(
            host=self._target.host,
            port=self._target.port,
            auth_strict_key=False,
            timeout_socket=self._cfg.hostcycle_ssh_timeout_socket,
            timeout_transport=self._cfg.hostcycle_ssh_timeout_transport,
            timeout_ops=self._cfg.hostcycle_ssh_timeout_ops,
        )
        creds = self._target.credentials
        if creds is not None:
            # Secrets go to the transport, never into a command string
            kwargs["transport"] = "paramiko"
            kwargs["auth_username"] = creds.username
            kwargs["auth_password"] = creds.password.get_secret_value()
        else:
            # OpenSSH client: agent, ssh_config and default keys apply
            kwargs["transport"] = "system"
        return kwargs

    @contextmanager
    def open(self) -> Iterator[Any]:
        """Yield an open driver; always closed on exit."""
        log.debug(
            "ssh.connecting",
            host=self._target.host,
            port=self._target.port,
            authenticated=self._target.has_credentials,
        )
        driver = self._driver_factory(**self._driver_kwargs())
        driver.open()
        try:
            yield driver
        finally:
            try:
                driver.close()
            except Exception as exc:
                # The host may already be gone; the handle is released either way
                log.debug("ssh.close_failed", host=self._target.host, error=str(exc))

    # ── public: one-shot command ──────────────────────────────────────

    def run(
        self,
        command: str,
        *,
        failed_when_contains: Optional[list[str]] = None,
        timeout_ops: Optional[float] = None,
    ) -> CommandResult:
        """Open a session, run *command*, close the session."""
        with self.open() as driver:
            resp: Response = driver.send_command(
                command,
                failed_when_contains=failed_when_contains,
                timeout_ops=timeout_ops,
            )
        log.debug(
            "ssh.exec",
            host=self._target.host,
            command=command,
            failed=resp.failed,
        )
        return CommandResult(
            host=self._target.host,
            command=command,
            output=resp.result,
            failed=resp.failed,
            elapsed_time=resp.elapsed_time,
        )
