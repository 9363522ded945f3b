from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from .api import stocks
from .config import get_settings
from .streaming.registry import StreamRegistry


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.get_log_level(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

registry: StreamRegistry | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for startup/shutdown."""
    global registry

    # Startup: one registry (and one random source) per process
    registry = StreamRegistry(settings)
    stocks.set_registry(registry)

    yield

    # Shutdown: end all open streams
    if registry:
        await registry.stop()
    stocks.set_registry(None)


app = FastAPI(
    title="Stock Ticker SSE Server",
    version="0.1.0",
    lifespan=lifespan,
)
app.include_router(stocks.router)


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Stock Ticker SSE Server is running!"


class HealthResponse(BaseModel):
    ok: bool
    ts: int
    active_streams: int = Field(ge=0)


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        ok=True,
        ts=int(time.time()),
        active_streams=registry.active_count if registry else 0,
    )
