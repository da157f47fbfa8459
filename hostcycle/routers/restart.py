"""Restart endpoints: run, list in flight, cancel."""

from __future__ import annotations

from functools import partial

from fastapi import APIRouter, Depends, HTTPException
from starlette.concurrency import run_in_threadpool

from hostcycle.auth import require_restart_key
from hostcycle.config import settings
from hostcycle.errors import (
    HandoffError,
    ProbeConfigurationError,
    RebootCommandError,
    RestartAlreadyRunning,
)
from hostcycle.models.responses import CancelResponse, RestartRequest, RestartResponse
from hostcycle.models.restart import ActiveRestart
from hostcycle.models.target import Credentials, Target
from hostcycle.services import restart_registry
from hostcycle.services.handoff import RestartContext
from hostcycle.services.orchestrator import RestartOrchestrator
from hostcycle.utils.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["restart"], dependencies=[Depends(require_restart_key)])

# Swapped out in tests
orchestrator_factory = RestartOrchestrator


def build_target(req: RestartRequest) -> Target:
    """Merge request fields with the configured connection defaults."""
    username = req.username or settings.hostcycle_ssh_username
    if req.password is not None and not username:
        raise HTTPException(
            status_code=422,
            detail="A username is required when a password is given",
        )
    if req.password is not None:
        password = req.password.get_secret_value()
    else:
        password = settings.hostcycle_ssh_password

    credentials = None
    if username:
        if not password:
            raise HTTPException(
                status_code=422,
                detail="A password is required when a username is given",
            )
        credentials = Credentials(username=username, password=password)

    return Target(
        host=req.host,
        credentials=credentials,
        port=req.port or settings.hostcycle_ssh_port,
        platform=req.platform or settings.hostcycle_platform,
    )


@router.post("/restart", response_model=RestartResponse)
async def restart_host(req: RestartRequest) -> RestartResponse:
    """Reboot a host and block until it is remotely operable again."""
    target = build_target(req)
    try:
        cancel_event = restart_registry.register(req.restart_id, target.host)
    except RestartAlreadyRunning as exc:
        raise HTTPException(status_code=409, detail=exc.message)

    context = RestartContext(
        restart_id=req.restart_id,
        cfg=settings,
        cancel_event=cancel_event,
    )
    orchestrator = orchestrator_factory(
        target,
        cfg=settings,
        on_step=partial(restart_registry.set_step, req.restart_id),
    )
    try:
        result = await run_in_threadpool(
            orchestrator.run,
            req.delay_seconds,
            context,
            max_wait=req.max_wait_seconds,
        )
    except RebootCommandError as exc:
        log.error("restart.reboot_failed", restart_id=req.restart_id, error=exc.message)
        raise HTTPException(status_code=502, detail=exc.message)
    except HandoffError as exc:
        log.error("restart.handoff_failed", restart_id=req.restart_id, error=exc.message)
        raise HTTPException(status_code=502, detail=exc.message)
    except ProbeConfigurationError as exc:
        log.error("restart.probe_misconfigured", restart_id=req.restart_id, error=exc.message)
        detail = exc.message
        if exc.remediation:
            detail = f"{detail}. {exc.remediation}"
        raise HTTPException(status_code=500, detail=detail)
    finally:
        restart_registry.unregister(req.restart_id)

    return RestartResponse(
        restart_id=req.restart_id,
        success=result.converged,
        result=result,
    )


@router.get("/restarts", response_model=list[ActiveRestart])
async def list_restarts() -> list[ActiveRestart]:
    return restart_registry.list_active()


@router.post("/restart/{restart_id}/cancel", response_model=CancelResponse)
async def cancel_restart(restart_id: str) -> CancelResponse:
    """Ask a running restart to stop at its next wait iteration."""
    if not restart_registry.cancel(restart_id):
        raise HTTPException(status_code=404, detail="Restart not found")
    return CancelResponse(restart_id=restart_id, cancelled=True)
