"""Reboot command rendering and dispatch."""

from __future__ import annotations

from scrapli.exceptions import ScrapliConnectionError, ScrapliException, ScrapliTimeout

from hostcycle.config import Settings, settings
from hostcycle.errors import RebootCommandError
from hostcycle.models.target import Platform
from hostcycle.services.ssh_session import RemoteSession
from hostcycle.utils.logging import get_logger

log = get_logger(__name__)

REBOOT_FAILURE_MARKERS: list[str] = [
    "Access is denied",
    "Permission denied",
    "a password is required",
    "not in the sudoers file",
    "command not found",
]


def render_reboot_command(
    platform: Platform,
    delay_seconds: int,
    template: str = "",
) -> str:
    """Build the shell command that reboots *platform* after *delay_seconds*."""
    if delay_seconds < 0:
        raise ValueError("delay_seconds must be >= 0")
    if template:
        return template.format(delay=delay_seconds)
    if platform == Platform.windows:
        return f'cmd /c "shutdown /r /t {delay_seconds}"'
    if delay_seconds and delay_seconds % 60 == 0:
        return f"sudo -n shutdown -r +{delay_seconds // 60}"
    # shutdown(8) only schedules in minutes; detach so the session can end.
    # sudo is checked first so its refusal still reaches the session output.
    return (
        "sudo -n true && "
        f"(sudo -n sh -c 'sleep {delay_seconds} && shutdown -r now' >/dev/null 2>&1 &)"
    )


class RebootCommand:
    """Sends the reboot command to a target over a fresh SSH session."""

    def __init__(self, session: RemoteSession, cfg: Settings | None = None) -> None:
        self._session = session
        self._cfg = cfg or settings

    def issue(self, delay_seconds: int) -> str:
        """Dispatch the reboot and return the command that was sent.

        A session that drops or times out after the command was written
        counts as dispatched: the host may already be going down.
        """
        target = self._session.target
        command = render_reboot_command(
            target.platform,
            delay_seconds,
            self._cfg.hostcycle_reboot_command_template,
        )
        try:
            with self._session.open() as driver:
                try:
                    resp = driver.send_command(
                        command,
                        failed_when_contains=REBOOT_FAILURE_MARKERS,
                    )
                except (ScrapliTimeout, ScrapliConnectionError) as exc:
                    log.warning("reboot.session_dropped", host=target.host, error=str(exc))
                    return command
        except (ScrapliException, OSError) as exc:
            raise RebootCommandError(
                f"Could not dispatch reboot to {target.host}: {exc}",
                remediation="Check SSH reachability and credentials for the target",
            ) from exc

        if resp.failed:
            raise RebootCommandError(
                f"Reboot command rejected by {target.host}: {resp.result[:200]}",
                remediation="The deployment user needs rights to restart the host",
            )
        log.info("reboot.dispatched", host=target.host, delay=delay_seconds)
        return command
