"""
Test Suite for Duration Baselines

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import pytest

from engine.baseline import compute, compute_baselines, group_completed, score
from engine.enums import ExecutionStatus
from engine.process_type import ProcessType
from engine.records import ProcessExecution


def test_compute_uses_population_std():
    mean, std = compute([10, 10, 10, 10, 50])
    assert mean == pytest.approx(18.0)
    assert std == pytest.approx(16.0)


def test_group_completed_excludes_unfinished_and_malformed(make_execution, now):
    execs = [
        make_execution("data_sync_a", 10),
        make_execution("data_sync_b", 12),
        make_execution("data_sync_c", 99, status=ExecutionStatus.running, finished=False),
        make_execution("data_sync_d", 99, status=ExecutionStatus.failed),
        make_execution("data_sync_e", 99, status=ExecutionStatus.cancelled),
        ProcessExecution(id="bad", process_name="data_sync_f", start_time=now, end_time=None,
                         status=ExecutionStatus.completed),
        ProcessExecution(id="noname", process_name=None, start_time=now, end_time=now,
                         status=ExecutionStatus.completed),
    ]
    groups = group_completed(execs)
    assert list(groups) == [ProcessType("data_sync")]
    assert [e.id for e in groups[ProcessType("data_sync")]] == ["exec-1", "exec-2"]


def test_sample_count_matches_completed_executions(make_execution):
    execs = [make_execution("report_gen_x", s) for s in (5, 7, 9)]
    execs.append(make_execution("report_gen_x", 100, status=ExecutionStatus.failed))
    baselines = compute_baselines(group_completed(execs))
    baseline = baselines[ProcessType("report_gen")]
    assert baseline.sample_count == 3
    assert baseline.mean_duration_seconds == pytest.approx(7.0)


def test_single_sample_type_has_no_baseline(make_execution):
    execs = [
        make_execution("lonely_job_1", 30),
        make_execution("data_sync_a", 10),
        make_execution("data_sync_b", 20),
    ]
    baselines = compute_baselines(group_completed(execs))
    assert ProcessType("lonely_job") not in baselines
    assert ProcessType("data_sync") in baselines


def test_baselines_are_read_only(make_execution):
    baselines = compute_baselines(group_completed([make_execution(), make_execution()]))
    with pytest.raises(TypeError):
        baselines[ProcessType("x_y")] = None


def test_score_is_none_without_spread(make_execution):
    baselines = compute_baselines(group_completed([make_execution(seconds=10), make_execution(seconds=10)]))
    assert score(10, baselines[ProcessType("data_sync")]) is None


def test_score_grows_with_distance_from_mean(make_execution):
    baselines = compute_baselines(group_completed([make_execution(seconds=s) for s in (8, 10, 12)]))
    baseline = baselines[ProcessType("data_sync")]
    scores = [score(d, baseline) for d in (10, 14, 20, 40)]
    assert scores == sorted(scores)
    assert scores[0] == 0


def test_recomputed_score_grows_as_outlier_moves_away(make_execution):
    scores = []
    for outlier in (12, 20, 40, 100):
        execs = [make_execution(seconds=s) for s in (8, 10, 12, outlier)]
        baseline = compute_baselines(group_completed(execs))[ProcessType("data_sync")]
        scores.append(score(outlier, baseline))
    assert scores == sorted(scores)
    assert scores[0] < scores[-1]
    # the outlier drags the mean and std with it, so z stays below sqrt(n - 1)
    assert scores[-1] < 3 ** 0.5
