"""
Entry point for the Pulsecheck process anomaly API server.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from api.routes import router
from api.routes.common import close_store, get_scheduler, get_store
from config import settings
from connectors.sql import SqlConnector
from database import connection_test, dispose_database
from datasources.base import HttpTelemetryStore
from datasources.exceptions import BackendStartupTimeout
from store.client import close_redis

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    stream=sys.stdout,
)
log = logging.getLogger(__name__)

_backend_ready = False
_backend_status: Dict[str, str] = {}


async def wait_for(
    name: str,
    url: str,
    timeout: float,
    headers: Optional[Dict[str, str]] = None,
    accept_status: tuple = (200, 204, 404),
) -> None:
    deadline = time.monotonic() + timeout
    attempt = 0
    async with httpx.AsyncClient() as client:
        while time.monotonic() < deadline:
            attempt += 1
            try:
                resp = await client.get(url, headers=headers or {}, timeout=3.0)
                if resp.status_code in accept_status:
                    log.info("%s ready (attempt %d, status %d)", name, attempt, resp.status_code)
                    return
                log.debug("%s probe returned %d (attempt %d)", name, resp.status_code, attempt)
            except httpx.HTTPError as exc:
                log.debug("%s not reachable (attempt %d): %s", name, attempt, exc)
            await asyncio.sleep(2)
    raise BackendStartupTimeout(f"{name} did not become ready within {timeout}s")


async def _wait_for_store() -> None:
    global _backend_ready

    store = get_store()
    name = settings.telemetry_backend
    if isinstance(store, SqlConnector):
        ok = await asyncio.to_thread(connection_test)
        _backend_status[name] = "ready" if ok else "failed: database unreachable"
        _backend_ready = True
        return
    if not isinstance(store, HttpTelemetryStore):
        _backend_status[name] = "ready"
        _backend_ready = True
        return

    _backend_status[name] = "waiting"
    log.info("Telemetry store readiness check starting (timeout=%ds) ...", settings.startup_timeout)
    try:
        await wait_for(name, store.health_url, settings.startup_timeout, headers=store._headers())
    except BackendStartupTimeout as exc:
        log.error("%s failed readiness: %s", name, exc)
        _backend_status[name] = f"failed: {exc}"
    else:
        _backend_status[name] = "ready"
    # cycles keep running and retain the last snapshot while the store is down
    _backend_ready = True


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    scheduler = get_scheduler()
    await scheduler.restore()
    readiness_task = asyncio.create_task(_wait_for_store())
    scheduler.start()
    try:
        yield
    finally:
        readiness_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await readiness_task
        await close_store()
        await close_redis()
        dispose_database()


app = FastAPI(
    title="Pulsecheck",
    description="Process duration and error-rate anomaly detection with a rolling health score.",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router, prefix="/api/v1")


@app.get("/api/v1/ready", tags=["Health"], summary="Telemetry store readiness probe")
async def ready() -> JSONResponse:
    code = 200 if _backend_ready else 503
    return JSONResponse(
        status_code=code,
        content={"ready": _backend_ready, "backends": _backend_status},
    )


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=4322,
        log_level="info",
        access_log=True,
    )
