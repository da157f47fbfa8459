"""In-memory table of restarts currently in flight."""

from __future__ import annotations

import threading
from datetime import datetime, timezone

from hostcycle.errors import RestartAlreadyRunning
from hostcycle.models.restart import ActiveRestart, RestartStep
from hostcycle.utils.logging import get_logger

log = get_logger(__name__)

_lock = threading.Lock()
# restart_id -> (entry, cancel event)
_active: dict[str, tuple[ActiveRestart, threading.Event]] = {}


def register(restart_id: str, host: str) -> threading.Event:
    """Record a new restart and return its cancellation event."""
    with _lock:
        if restart_id in _active:
            raise RestartAlreadyRunning(f"Restart {restart_id} is already running")
        entry = ActiveRestart(
            restart_id=restart_id,
            host=host,
            step=RestartStep.DETECT,
            started_at=datetime.now(timezone.utc).isoformat(),
        )
        event = threading.Event()
        _active[restart_id] = (entry, event)
    log.info("registry.registered", restart_id=restart_id, host=host)
    return event


def set_step(restart_id: str, step: RestartStep) -> None:
    with _lock:
        item = _active.get(restart_id)
        if item is not None:
            item[0].step = step


def cancel(restart_id: str) -> bool:
    """Signal cancellation. Returns False for unknown ids."""
    with _lock:
        item = _active.get(restart_id)
        if item is None:
            return False
        entry, event = item
        entry.cancel_requested = True
        event.set()
    log.info("registry.cancel_requested", restart_id=restart_id)
    return True


def get(restart_id: str) -> ActiveRestart | None:
    with _lock:
        item = _active.get(restart_id)
        return item[0].model_copy() if item else None


def list_active() -> list[ActiveRestart]:
    with _lock:
        return [entry.model_copy() for entry, _ in _active.values()]


def unregister(restart_id: str) -> bool:
    with _lock:
        return _active.pop(restart_id, None) is not None
