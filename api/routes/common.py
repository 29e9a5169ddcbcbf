"""
Shared utilities and dependencies for API route modules.

Holds the process-wide telemetry store and refresh scheduler used by the
routers, and translates collaborator failures into HTTP responses so the
individual route files stay thin.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Optional

from datasources.base import TelemetryStore
from datasources.data_config import DataSourceSettings
from datasources.factory import DataSourceFactory
from engine.scheduler import RefreshScheduler


_store: Optional[TelemetryStore] = None
_scheduler: Optional[RefreshScheduler] = None


def get_store() -> TelemetryStore:
    global _store
    if _store is None:
        _store = DataSourceFactory.create_store(DataSourceSettings())
    return _store


def get_scheduler() -> RefreshScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = RefreshScheduler(get_store())
    return _scheduler


def set_scheduler(scheduler: Optional[RefreshScheduler]) -> None:
    global _scheduler
    _scheduler = scheduler


async def close_store() -> None:
    global _store, _scheduler
    scheduler, _scheduler = _scheduler, None
    if scheduler is not None:
        await scheduler.stop()
    store, _store = _store, None
    if store is not None:
        await store.aclose()
