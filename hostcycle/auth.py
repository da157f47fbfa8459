"""Shared-key guard for the restart endpoints.

Callers present the key in ``X-Restart-Key``; ``X-API-Key`` is still
accepted for existing clients. With HOSTCYCLE_API_KEY unset the guard is off,
which suits a controller bound to localhost only.
"""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from hostcycle.config import settings
from hostcycle.utils.logging import get_logger

log = get_logger(__name__)

_restart_key = APIKeyHeader(name="X-Restart-Key", auto_error=False)
_legacy_key = APIKeyHeader(name="X-API-Key", auto_error=False)


def key_matches(presented: Optional[str], expected: str) -> bool:
    """Constant-time comparison; a missing key never matches."""
    if presented is None:
        return False
    return secrets.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))


async def require_restart_key(
    request: Request,
    restart_key: Optional[str] = Security(_restart_key),
    legacy_key: Optional[str] = Security(_legacy_key),
) -> None:
    expected = settings.hostcycle_api_key
    if not expected:
        return
    if key_matches(restart_key or legacy_key, expected):
        return
    log.warning(
        "auth.rejected",
        path=request.url.path,
        client=request.client.host if request.client else None,
    )
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Restart key missing or wrong",
    )
