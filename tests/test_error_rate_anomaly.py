"""
Test Suite for Error Rate Anomaly Detection

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from datetime import timedelta

import pytest

from engine.anomaly import error_rate
from engine.enums import ExecutionStatus, Metric, Severity
from engine.process_type import ProcessType
from engine.records import ErrorEvent


def _failures(execs, now, minutes_ago=10):
    return [ErrorEvent(timestamp=now - timedelta(minutes=minutes_ago), system_process_id=e.id) for e in execs]


def test_thirty_percent_is_low_severity(make_execution, now):
    execs = [make_execution("report_gen_daily") for _ in range(10)]
    anomalies = error_rate.detect(execs, _failures(execs[:3], now), now)

    assert len(anomalies) == 1
    a = anomalies[0]
    assert a.id == "report_gen_error_rate"
    assert a.process_name == "report_gen"
    assert a.metric == Metric.error_rate
    assert a.expected == 5
    assert a.actual == 30
    assert a.deviation_percent == 25
    assert a.severity == Severity.low
    assert a.timestamp == now


@pytest.mark.parametrize(
    "total, failed, expected",
    [
        (10, 2, None),
        (20, 6, Severity.low),
        (12, 4, Severity.medium),
        (10, 5, Severity.medium),
        (10, 6, Severity.high),
    ],
)
def test_severity_bands(make_execution, now, total, failed, expected):
    execs = [make_execution("etl_load") for _ in range(total)]
    anomalies = error_rate.detect(execs, _failures(execs[:failed], now), now)
    if expected is None:
        assert anomalies == []
    else:
        assert [a.severity for a in anomalies] == [expected]


def test_fewer_than_five_executions_are_ignored(make_execution, now):
    execs = [make_execution("etl_load") for _ in range(4)]
    assert error_rate.detect(execs, _failures(execs, now), now) == []


def test_one_anomaly_per_type(make_execution, now):
    a_execs = [make_execution("data_sync_a") for _ in range(5)]
    b_execs = [make_execution("data_sync_b") for _ in range(5)]
    c_execs = [make_execution("report_gen") for _ in range(5)]
    events = _failures(a_execs[:2] + b_execs[:2] + c_execs[:4], now)
    anomalies = error_rate.detect(a_execs + b_execs + c_execs, events, now)

    by_type = {a.process_name: a for a in anomalies}
    assert set(by_type) == {"data_sync", "report_gen"}
    assert by_type["data_sync"].actual == 40
    assert by_type["report_gen"].actual == 80


def test_unknown_and_missing_ids_are_ignored(make_execution, now):
    execs = [make_execution("etl_load") for _ in range(5)]
    events = _failures(execs[:1], now) + [
        ErrorEvent(timestamp=now, system_process_id="ghost"),
        ErrorEvent(timestamp=now, system_process_id=None),
    ]
    assert error_rate.detect(execs, events, now) == []


def test_events_outside_window_are_ignored(make_execution, now):
    execs = [make_execution("etl_load") for _ in range(5)]
    events = _failures(execs[:3], now, minutes_ago=90)
    assert error_rate.detect(execs, events, now) == []


def test_totals_count_every_status(make_execution, now):
    execs = [make_execution("etl_load", status=ExecutionStatus.running, finished=False) for _ in range(3)]
    execs += [make_execution("etl_load", status=ExecutionStatus.failed) for _ in range(2)]
    totals = error_rate.count_by_type(execs, now - timedelta(hours=1))
    assert totals[ProcessType("etl_load")] == 5


def test_window_lower_bound_is_inclusive(make_execution, now):
    start = now - timedelta(hours=1)
    inside = make_execution("etl_load", started=start)
    outside = make_execution("etl_load", started=start - timedelta(seconds=1))
    totals = error_rate.count_by_type([inside, outside], start)
    assert totals[ProcessType("etl_load")] == 1


def test_index_resolves_events_from_older_executions(make_execution, now):
    window = [make_execution("etl_load") for _ in range(5)]
    older = make_execution("etl_load", started=now - timedelta(hours=3), id="old-run")
    index = error_rate.index_executions(window, [older])
    events = _failures(window[:1], now) + [ErrorEvent(timestamp=now, system_process_id="old-run")]
    anomalies = error_rate.detect(window, events, now, index=index)
    assert [a.actual for a in anomalies] == [40]


def test_index_prefers_first_window_on_duplicate_ids(make_execution, now):
    first = make_execution("etl_load", id="dup")
    second = make_execution("report_gen", id="dup")
    index = error_rate.index_executions([first], [second])
    assert index["dup"] is first


def test_non_failure_events_are_not_counted(make_execution, now):
    execs = [make_execution("etl_load_nightly") for _ in range(5)]
    events = [
        ErrorEvent(timestamp=now - timedelta(minutes=5), system_process_id=e.id, status="success")
        for e in execs[:3]
    ]
    assert error_rate.detect(execs, events, now) == []
