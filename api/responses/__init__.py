"""
Response models for API endpoints and internal data structures.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_serializer

from engine.enums import HealthStatus, Metric, Severity


def _coerce(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _coerce(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_coerce(v) for v in obj]
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    return obj


class NpModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    @model_serializer(mode="wrap")
    def _serialize(self, handler: Any) -> Any:
        return _coerce(handler(self))


class Anomaly(NpModel):

    id: str
    process_name: str
    metric: Metric
    expected: int
    actual: int
    deviation_percent: int
    severity: Severity
    timestamp: datetime
    cumulative_score: int = 0


class AnomalySnapshot(NpModel):

    anomalies: Tuple[Anomaly, ...] = ()
    score: int = Field(default=0, ge=0, le=100)
    generated_at: Optional[datetime] = None
    severity_counts: Dict[str, int] = Field(
        default_factory=lambda: {s.value: 0 for s in Severity}
    )
    overall_severity: Optional[Severity] = None
    status: HealthStatus = HealthStatus.healthy


class TimelinePoint(NpModel):

    timestamp: datetime
    process_name: str
    severity: Severity
    value: int
    cumulative_score: int


class SchedulerStatus(BaseModel):

    running: bool
    in_flight: bool
    replay_mode: bool
    interval_seconds: float
    cycles_completed: int
    consecutive_failures: int
    last_success_at: Optional[datetime] = None
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None


class SnapshotPage(BaseModel):

    snapshot: AnomalySnapshot
    top_deviations: List[Anomaly] = []
