"""
Detection of process types whose share of failed executions inside a trailing window exceeds the acceptable error rate.

Executions are counted per process type from the window, failure events from
the audit log are attributed to a process type through the execution they
reference, and one anomaly is emitted per process type whose rate crosses the
threshold. Events that cannot be attributed are ignored.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from api.responses import Anomaly
from config import FAILURE_STATUS, settings
from engine.anomaly.rounding import round_half_up
from engine.enums import Metric, Severity
from engine.process_type import ProcessType
from engine.records import ErrorEvent, ProcessExecution

log = logging.getLogger(__name__)


def _in_window(ts: Optional[datetime], window_start: datetime) -> bool:
    return ts is not None and ts >= window_start


def count_by_type(
    executions: Iterable[ProcessExecution],
    window_start: datetime,
) -> Mapping[ProcessType, int]:
    counts = Counter(
        e.process_type
        for e in executions
        if e.process_type is not None and _in_window(e.start_time, window_start)
    )
    return MappingProxyType(dict(counts))


def errors_by_type(
    events: Iterable[ErrorEvent],
    index: Mapping[str, ProcessExecution],
    window_start: datetime,
) -> Mapping[ProcessType, int]:
    def _resolve(event: ErrorEvent) -> Optional[ProcessType]:
        if not event.system_process_id:
            return None
        execution = index.get(event.system_process_id)
        if execution is None:
            log.debug("Ignoring failure event for unknown process %s", event.system_process_id)
            return None
        return execution.process_type

    resolved = (
        _resolve(ev)
        for ev in events
        if ev.status == FAILURE_STATUS and _in_window(ev.timestamp, window_start)
    )
    return MappingProxyType(dict(Counter(p for p in resolved if p is not None)))


def index_executions(*windows: Sequence[ProcessExecution]) -> Mapping[str, ProcessExecution]:
    # earlier windows win when the same execution id appears twice
    index: Dict[str, ProcessExecution] = {}
    for window in windows:
        for execution in window:
            index.setdefault(execution.id, execution)
    return MappingProxyType(index)


def detect(
    executions: Sequence[ProcessExecution],
    events: Sequence[ErrorEvent],
    now: datetime,
    index: Mapping[str, ProcessExecution] | None = None,
    window_seconds: float | None = None,
) -> List[Anomaly]:
    if window_seconds is None:
        window_seconds = settings.error_window_seconds
    if index is None:
        index = index_executions(executions)

    window_start = now - timedelta(seconds=window_seconds)
    totals = count_by_type(executions, window_start)
    errors = errors_by_type(events, index, window_start)

    anomalies: List[Anomaly] = []
    for ptype, total in totals.items():
        if total < settings.error_rate_min_samples:
            continue
        error_rate = 100.0 * errors.get(ptype, 0) / total
        if error_rate <= settings.error_rate_threshold:
            continue
        deviation = round_half_up(error_rate - settings.error_rate_expected)
        anomalies.append(Anomaly(
            id=f"{ptype}_error_rate",
            process_name=str(ptype),
            metric=Metric.error_rate,
            expected=round_half_up(settings.error_rate_expected),
            actual=round_half_up(error_rate),
            deviation_percent=deviation,
            severity=Severity.from_error_rate(error_rate),
            timestamp=now,
            cumulative_score=deviation,
        ))
    return anomalies
