"""FastAPI application entry-point."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from hostcycle import __version__
from hostcycle.routers import health, restart
from hostcycle.utils.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown hooks."""
    setup_logging()
    yield


app = FastAPI(
    title="hostcycle",
    description="Restart remote hosts and wait until they are operable again",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(restart.router)
