"""Shared pytest fixtures."""

from __future__ import annotations

import os

# Force settings to use test-safe defaults before any import
os.environ.setdefault("HOSTCYCLE_API_KEY", "")
os.environ.setdefault("HOSTCYCLE_SSH_USERNAME", "")
os.environ.setdefault("HOSTCYCLE_SSH_PASSWORD", "")
os.environ.setdefault("HOSTCYCLE_AGENT_START_COMMAND", "")
os.environ.setdefault("HOSTCYCLE_LOG_FORMAT", "console")

import pytest
from httpx import ASGITransport, AsyncClient

from hostcycle.config import Settings
from hostcycle.models.target import Credentials, Target
from tests.fakes import FakeClock


@pytest.fixture
def cfg() -> Settings:
    """Settings with the default 1s / 5s polling intervals and no budget."""
    return Settings(
        hostcycle_ping_interval_seconds=1.0,
        hostcycle_management_interval_seconds=5.0,
        hostcycle_max_wait_seconds=None,
        hostcycle_reboot_command_template="",
        hostcycle_agent_start_command="",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def target() -> Target:
    return Target(
        host="H1",
        credentials=Credentials(username="deploy", password="s3cret"),
    )


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client(monkeypatch):
    """Async test client; the restart router's orchestrator is replaced per test."""
    import hostcycle.config as cfg_mod
    from hostcycle.services import restart_registry

    monkeypatch.setattr(cfg_mod.settings, "hostcycle_api_key", "")

    from hostcycle.main import app as fastapi_app

    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    for entry in restart_registry.list_active():
        restart_registry.unregister(entry.restart_id)
