"""
Test Suite for Engine Enumerations

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import pytest

from engine.enums import HealthStatus, Severity


@pytest.mark.parametrize(
    "deviations, expected",
    [(2.1, Severity.low), (3.0, Severity.low), (3.01, Severity.medium), (4.0, Severity.medium), (4.5, Severity.high)],
)
def test_severity_from_deviation(deviations, expected):
    assert Severity.from_deviation(deviations) == expected


@pytest.mark.parametrize(
    "rate, expected",
    [(25.0, Severity.low), (30.0, Severity.low), (30.5, Severity.medium), (50.0, Severity.medium), (51.0, Severity.high)],
)
def test_severity_from_error_rate(rate, expected):
    assert Severity.from_error_rate(rate) == expected


def test_severity_weights_and_points():
    assert [s.weight() for s in Severity] == [1, 2, 3]
    assert [s.score_points() for s in Severity] == [5, 15, 30]


@pytest.mark.parametrize(
    "score, expected",
    [(0, HealthStatus.healthy), (20, HealthStatus.healthy), (21, HealthStatus.degraded),
     (50, HealthStatus.degraded), (51, HealthStatus.critical), (100, HealthStatus.critical)],
)
def test_health_status_from_score(score, expected):
    assert HealthStatus.from_score(score) == expected


def test_thresholds_follow_settings(monkeypatch):
    from config import settings

    monkeypatch.setattr(settings, "duration_severity_high", 2.5)
    assert Severity.from_deviation(3.0) == Severity.high
