"""
Detection of executions whose duration deviates from the baseline of their process type by more than a configured number of standard deviations.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import List, Mapping, Sequence

from api.responses import Anomaly
from config import settings
from engine.anomaly.rounding import round_half_up
from engine.baseline.compute import Baseline, score
from engine.enums import Metric, Severity
from engine.process_type import ProcessType
from engine.records import ProcessExecution


def _deviation_percent(duration: float, mean: float) -> int:
    if mean == 0:
        return 0
    return round_half_up(100.0 * abs(duration - mean) / mean)


def detect(
    groups: Mapping[ProcessType, Sequence[ProcessExecution]],
    baselines: Mapping[ProcessType, Baseline],
    z_threshold: float | None = None,
) -> List[Anomaly]:
    if z_threshold is None:
        z_threshold = settings.duration_zscore_threshold

    anomalies: List[Anomaly] = []
    for ptype, members in groups.items():
        baseline = baselines.get(ptype)
        if baseline is None:
            continue
        mean = baseline.mean_duration_seconds
        for execution in members:
            duration = execution.duration_seconds
            deviations_away = score(duration, baseline)
            if deviations_away is None:
                break
            if deviations_away <= z_threshold:
                continue
            deviation = _deviation_percent(duration, mean)
            anomalies.append(Anomaly(
                id=execution.id,
                process_name=execution.process_name,
                metric=Metric.duration,
                expected=round_half_up(mean),
                actual=round_half_up(duration),
                deviation_percent=deviation,
                severity=Severity.from_deviation(deviations_away),
                timestamp=execution.end_time,
                cumulative_score=deviation,
            ))
    return anomalies
