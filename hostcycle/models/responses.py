"""API request and response models."""

from __future__ import annotations

from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, SecretStr, field_validator

from hostcycle.models.restart import RestartResult
from hostcycle.models.target import Platform, check_host


class HealthResponse(BaseModel):
    status: str
    version: str


class RestartRequest(BaseModel):
    """Request body for POST /restart."""

    restart_id: str = Field(default_factory=lambda: str(uuid4()))
    host: str = Field(min_length=1)
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    port: Optional[int] = Field(default=None, ge=1, le=65535)
    platform: Optional[Platform] = None
    delay_seconds: int = Field(default=0, ge=0, description="Passed unchanged to the reboot command")
    max_wait_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Budget for each wait step; unset uses the server default",
    )

    @field_validator("host")
    @classmethod
    def validate_host(cls, value: str) -> str:
        return check_host(value)


class RestartResponse(BaseModel):
    restart_id: str
    success: bool
    result: RestartResult


class CancelResponse(BaseModel):
    restart_id: str
    cancelled: bool


class ErrorResponse(BaseModel):
    detail: str
