"""
Compute logic for per-process-type duration baselines (mean and population standard deviation) over a window of completed executions, used as the reference point for flagging executions whose duration deviates from what is normal for their process type.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from config import settings
from engine.enums import ExecutionStatus
from engine.process_type import ProcessType
from engine.records import ProcessExecution

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Baseline:
    process_type: ProcessType
    sample_count: int
    mean_duration_seconds: float
    std_dev_seconds: float


def group_completed(
    executions: Iterable[ProcessExecution],
) -> Mapping[ProcessType, Tuple[ProcessExecution, ...]]:
    groups: Dict[ProcessType, List[ProcessExecution]] = {}
    for execution in executions:
        if not execution.is_complete:
            if execution.status == ExecutionStatus.completed:
                log.debug("Skipping malformed execution record %s", execution.id)
            continue
        ptype = execution.process_type
        if ptype is None:
            log.debug("Skipping execution %s without a usable process name", execution.id)
            continue
        groups.setdefault(ptype, []).append(execution)
    return MappingProxyType({k: tuple(v) for k, v in groups.items()})


def compute(durations: Sequence[float]) -> Tuple[float, float]:
    arr = np.array(durations, dtype=float)
    return float(np.mean(arr)), float(np.std(arr))


def compute_baselines(
    groups: Mapping[ProcessType, Sequence[ProcessExecution]],
    min_samples: int | None = None,
) -> Mapping[ProcessType, Baseline]:
    if min_samples is None:
        min_samples = settings.baseline_min_samples

    baselines: Dict[ProcessType, Baseline] = {}
    for ptype, members in groups.items():
        if len(members) < min_samples:
            continue
        mean, std = compute([m.duration_seconds for m in members])
        baselines[ptype] = Baseline(
            process_type=ptype,
            sample_count=len(members),
            mean_duration_seconds=mean,
            std_dev_seconds=std,
        )
    return MappingProxyType(baselines)


def score(duration: float, baseline: Baseline) -> Optional[float]:
    if baseline.std_dev_seconds <= 0:
        return None
    return abs(duration - baseline.mean_duration_seconds) / baseline.std_dev_seconds
