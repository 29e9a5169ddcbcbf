"""
Test Suite for Duration Anomaly Detection

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import pytest

from engine.anomaly import duration
from engine.anomaly.rounding import round_half_up
from engine.baseline import compute_baselines, group_completed
from engine.enums import Metric, Severity


def _detect(execs, **kwargs):
    groups = group_completed(execs)
    return duration.detect(groups, compute_baselines(groups), **kwargs)


def test_outlier_flagged_with_report_fields(make_execution):
    execs = [make_execution("data_sync_job", s) for s in (10, 10, 10, 10, 10, 50)]
    anomalies = _detect(execs)

    assert len(anomalies) == 1
    a = anomalies[0]
    assert a.id == execs[-1].id
    assert a.process_name == "data_sync_job"
    assert a.metric == Metric.duration
    assert a.expected == 17
    assert a.actual == 50
    assert a.deviation_percent == 200
    assert a.severity == Severity.low
    assert a.timestamp == execs[-1].end_time
    assert a.cumulative_score == a.deviation_percent


def test_exactly_two_deviations_is_not_anomalous(make_execution):
    # population std of this window is 16, so the 50s run sits at 2.0
    execs = [make_execution("data_sync_job", s) for s in (10, 10, 10, 10, 50)]
    assert _detect(execs) == []


def test_identical_durations_never_flag(make_execution):
    execs = [make_execution("report_gen", 42) for _ in range(6)]
    assert _detect(execs) == []


def test_single_execution_type_never_flags(make_execution):
    execs = [make_execution("one_off_job", 1000)]
    execs += [make_execution("data_sync_job", s) for s in (10, 11, 9, 10)]
    assert all(a.process_name != "one_off_job" for a in _detect(execs))


@pytest.mark.parametrize(
    "count, expected",
    [
        (6, Severity.low),
        (12, Severity.medium),
        (20, Severity.high),
    ],
)
def test_severity_follows_deviation_bands(make_execution, count, expected):
    # with count-1 identical runs the outlier sits sqrt(count-1) deviations away
    execs = [make_execution("etl_load", 10) for _ in range(count - 1)]
    execs.append(make_execution("etl_load", 70))
    flagged = [a for a in _detect(execs) if a.actual == 70]
    assert len(flagged) == 1
    assert flagged[0].severity == expected


def test_fast_runs_are_flagged_too(make_execution):
    execs = [make_execution("etl_load", 100) for _ in range(9)]
    execs.append(make_execution("etl_load", 1))
    anomalies = _detect(execs)
    assert [a.actual for a in anomalies] == [1]
    assert anomalies[0].deviation_percent == 99


def test_threshold_can_be_overridden(make_execution):
    execs = [make_execution("data_sync_job", s) for s in (10, 10, 10, 10, 50)]
    assert len(_detect(execs, z_threshold=1.5)) == 1


def test_zero_mean_reports_zero_deviation():
    assert duration._deviation_percent(5.0, 0.0) == 0


@pytest.mark.parametrize("value, expected", [(0.5, 1), (1.49, 1), (2.5, 3), (177.5, 178), (-0.5, 0)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected
