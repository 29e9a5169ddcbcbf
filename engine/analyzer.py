"""
One anomaly detection cycle: read the telemetry window, compute baselines, run both detectors and aggregate the findings into a snapshot.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Sequence, Tuple

from api.responses import AnomalySnapshot
from config import settings
from datasources.base import TelemetryStore
from engine.anomaly import duration, error_rate
from engine.baseline import compute_baselines, group_completed
from engine.records import ErrorEvent, ProcessExecution
from engine.scoring import aggregate

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CycleInput:
    now: datetime
    recent: Tuple[ProcessExecution, ...]
    window: Tuple[ProcessExecution, ...]
    events: Tuple[ErrorEvent, ...]


async def fetch_input(store: TelemetryStore, now: datetime | None = None) -> CycleInput:
    now = now or _utcnow()
    since = now - timedelta(seconds=settings.error_window_seconds)
    recent, window, events = await asyncio.gather(
        store.list_recent_executions(settings.baseline_window_limit),
        store.list_executions_since(since),
        store.list_error_events_since(since),
    )
    return CycleInput(now=now, recent=tuple(recent), window=tuple(window), events=tuple(events))


def _detect_durations(recent: Sequence[ProcessExecution]):
    groups = group_completed(recent)
    baselines = compute_baselines(groups)
    return duration.detect(groups, baselines)


def _detect_error_rates(data: CycleInput):
    index = error_rate.index_executions(data.window, data.recent)
    return error_rate.detect(data.window, data.events, data.now, index=index)


def evaluate(data: CycleInput) -> AnomalySnapshot:
    return aggregate(
        _detect_durations(data.recent),
        _detect_error_rates(data),
        generated_at=data.now,
    )


async def run(store: TelemetryStore, now: datetime | None = None) -> AnomalySnapshot:
    data = await fetch_input(store, now)
    duration_anomalies, error_rate_anomalies = await asyncio.gather(
        asyncio.to_thread(_detect_durations, data.recent),
        asyncio.to_thread(_detect_error_rates, data),
    )
    snapshot = aggregate(duration_anomalies, error_rate_anomalies, generated_at=data.now)
    log.debug(
        "Cycle evaluated %d recent / %d windowed executions, %d failure events: %d anomalies, score %d",
        len(data.recent), len(data.window), len(data.events), len(snapshot.anomalies), snapshot.score,
    )
    return snapshot
