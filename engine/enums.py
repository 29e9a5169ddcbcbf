"""
Enumerations for Severity, Anomaly Metrics, Execution Status, and Health Status

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from enum import Enum

from config import SEVERITY_SCORE_POINTS, SEVERITY_WEIGHTS, settings


class Severity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"

    @classmethod
    def from_deviation(cls, deviations_away: float) -> Severity:
        if deviations_away > settings.duration_severity_high:
            return cls.high
        if deviations_away > settings.duration_severity_medium:
            return cls.medium
        return cls.low

    @classmethod
    def from_error_rate(cls, error_rate: float) -> Severity:
        if error_rate > settings.error_rate_severity_high:
            return cls.high
        if error_rate > settings.error_rate_severity_medium:
            return cls.medium
        return cls.low

    def weight(self) -> int:
        return SEVERITY_WEIGHTS[self.value]

    def score_points(self) -> int:
        return SEVERITY_SCORE_POINTS[self.value]


class Metric(str, Enum):
    duration = "duration"
    error_rate = "error_rate"


class ExecutionStatus(str, Enum):
    queued = "queued"
    running = "running"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"


class HealthStatus(str, Enum):
    healthy = "healthy"
    degraded = "degraded"
    critical = "critical"

    @classmethod
    def from_score(cls, score: int) -> HealthStatus:
        if score > settings.health_status_critical:
            return cls.critical
        if score > settings.health_status_degraded:
            return cls.degraded
        return cls.healthy
