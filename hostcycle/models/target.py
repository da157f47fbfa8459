"""Remote host identity and credentials."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class Platform(str, Enum):
    windows = "windows"
    linux = "linux"


def check_host(value: str) -> str:
    """Reject host strings that ssh or ping would parse as an option."""
    host = value.strip()
    if not host:
        raise ValueError("host must not be blank")
    if host.startswith("-"):
        raise ValueError(f"host {host!r} must not start with '-'")
    if any(ch.isspace() for ch in host):
        raise ValueError(f"host {host!r} must not contain whitespace")
    return host


class Credentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str = Field(min_length=1)
    password: SecretStr


class Target(BaseModel):
    """A host to restart. Immutable for the duration of one restart."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(min_length=1, description="Host name or address")
    credentials: Optional[Credentials] = None
    port: int = Field(default=22, ge=1, le=65535)
    platform: Platform = Platform.windows

    @field_validator("host")
    @classmethod
    def validate_host(cls, value: str) -> str:
        return check_host(value)

    @property
    def has_credentials(self) -> bool:
        return self.credentials is not None
