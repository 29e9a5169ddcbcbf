"""
Routes exposing the latest process anomaly snapshot, its timeline, the scheduler status, manual refresh and a server-sent event stream of snapshots.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from typing import AsyncIterator, List, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import StreamingResponse

from api.responses import AnomalySnapshot, SchedulerStatus, SnapshotPage, TimelinePoint
from api.routes.common import get_scheduler
from api.routes.exception import handle_exceptions
from engine.scheduler import CycleInFlight
from engine.scoring import sort_for_presentation, timeline, top_deviations

router = APIRouter(tags=["Anomalies"])


@router.get("/anomalies/snapshot", summary="Latest process anomaly snapshot")
@handle_exceptions
async def latest_snapshot(
    sort: bool = Query(False, description="Order anomalies by severity, newest first"),
) -> SnapshotPage:
    snapshot = get_scheduler().latest()
    if sort:
        snapshot = snapshot.model_copy(update={"anomalies": tuple(sort_for_presentation(snapshot.anomalies))})
    return SnapshotPage(snapshot=snapshot, top_deviations=top_deviations(snapshot))


@router.get("/anomalies/timeline", summary="Cumulative severity timeline of the latest snapshot")
@handle_exceptions
async def anomaly_timeline() -> List[TimelinePoint]:
    return timeline(get_scheduler().latest())


@router.get("/anomalies/status", summary="Refresh scheduler status")
@handle_exceptions
async def scheduler_status() -> SchedulerStatus:
    return get_scheduler().status()


@router.post("/anomalies/refresh", summary="Run a detection cycle now")
@handle_exceptions
async def refresh() -> AnomalySnapshot:
    scheduler = get_scheduler()
    try:
        snapshot = await scheduler.refresh()
    except CycleInFlight as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if snapshot is None:
        detail = scheduler.status().last_error or "refresh cycle failed"
        raise HTTPException(status_code=503, detail=detail)
    return snapshot


async def _events(interval_seconds: Optional[float]) -> AsyncIterator[str]:
    async for snapshot in get_scheduler().subscribe(interval_seconds):
        yield f"event: snapshot\ndata: {snapshot.model_dump_json()}\n\n"


@router.get("/anomalies/stream", summary="Server-sent events carrying each published snapshot")
async def stream(
    interval_seconds: Optional[float] = Query(None, gt=0, description="Refresh interval when the scheduler is idle"),
) -> StreamingResponse:
    return StreamingResponse(_events(interval_seconds), media_type="text/event-stream")
