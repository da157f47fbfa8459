"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from hostcycle.models.target import Platform


class Settings(BaseSettings):
    """All configuration is driven by environment variables."""

    # API key
    hostcycle_api_key: str = ""

    # Default target connection (overridable per request)
    hostcycle_ssh_username: str = ""
    hostcycle_ssh_password: str = ""
    hostcycle_ssh_port: int = 22
    hostcycle_platform: Platform = Platform.windows

    # SSH timeouts used by the management probe and remote commands
    hostcycle_ssh_timeout_socket: float = 10.0
    hostcycle_ssh_timeout_transport: float = 10.0
    hostcycle_ssh_timeout_ops: float = 30.0

    # Probing
    hostcycle_ping_timeout_seconds: float = 2.0
    hostcycle_ping_interval_seconds: float = Field(default=1.0, gt=0)
    hostcycle_management_interval_seconds: float = Field(default=5.0, gt=0)

    # Per-wait budget; unset means wait until convergence
    hostcycle_max_wait_seconds: Optional[float] = Field(default=None, gt=0)

    # Remote commands
    hostcycle_reboot_command_template: str = ""
    hostcycle_identity_command: str = "whoami"
    hostcycle_agent_start_command: str = ""

    # Logging
    hostcycle_log_level: str = "INFO"
    hostcycle_log_format: str = "json"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton – import this from anywhere
settings = Settings()
