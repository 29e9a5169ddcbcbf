"""
Aggregation of detector findings into an anomaly snapshot with a composite health score, plus the rollups the dashboard renders from a snapshot (severity distribution, health band, deviation chart, anomaly timeline).

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from api.responses import Anomaly, AnomalySnapshot, TimelinePoint
from config import settings
from engine.enums import HealthStatus, Severity


def severity_counts(anomalies: Iterable[Anomaly]) -> Dict[str, int]:
    counts = Counter(a.severity for a in anomalies)
    return {s.value: counts.get(s, 0) for s in Severity}


def health_score(anomalies: Sequence[Anomaly]) -> int:
    if not anomalies:
        return 0
    raw = sum(a.severity.score_points() for a in anomalies)
    return min(settings.score_cap, raw)


def overall_severity(anomalies: Iterable[Anomaly]) -> Optional[Severity]:
    best: Optional[Severity] = None
    for a in anomalies:
        if best is None or a.severity.weight() > best.weight():
            best = a.severity
    return best


def aggregate(
    duration_anomalies: Sequence[Anomaly],
    error_rate_anomalies: Sequence[Anomaly],
    generated_at: Optional[datetime] = None,
) -> AnomalySnapshot:
    anomalies = tuple(duration_anomalies) + tuple(error_rate_anomalies)
    score = health_score(anomalies)
    return AnomalySnapshot(
        anomalies=anomalies,
        score=score,
        generated_at=generated_at,
        severity_counts=severity_counts(anomalies),
        overall_severity=overall_severity(anomalies),
        status=HealthStatus.from_score(score),
    )


def empty_snapshot() -> AnomalySnapshot:
    return AnomalySnapshot()


def sort_for_presentation(anomalies: Iterable[Anomaly]) -> List[Anomaly]:
    return sorted(
        anomalies,
        key=lambda a: (a.severity.weight(), a.timestamp.timestamp()),
        reverse=True,
    )


def top_deviations(snapshot: AnomalySnapshot, limit: int | None = None) -> List[Anomaly]:
    if limit is None:
        limit = settings.top_deviation_limit
    return list(snapshot.anomalies[:max(0, limit)])


def timeline(snapshot: AnomalySnapshot) -> List[TimelinePoint]:
    points: List[TimelinePoint] = []
    running = 0
    for a in sorted(snapshot.anomalies, key=lambda a: a.timestamp.timestamp()):
        running += a.severity.weight()
        points.append(TimelinePoint(
            timestamp=a.timestamp,
            process_name=a.process_name,
            severity=a.severity,
            value=a.severity.weight(),
            cumulative_score=running,
        ))
    return points
