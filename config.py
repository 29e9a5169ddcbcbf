"""
Constants and configuration for Pulsecheck.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import os
from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
SNAPSHOT_TTL: int = int(os.getenv("SNAPSHOT_TTL", "86400"))

TELEMETRY_BACKEND_POSTGREST = "postgrest"
TELEMETRY_BACKEND_SQL = "sql"
TELEMETRY_BACKEND_MEMORY = "memory"

PULSECHECK_TELEMETRY_BACKEND = os.getenv("PULSECHECK_TELEMETRY_BACKEND", TELEMETRY_BACKEND_POSTGREST).lower()
PULSECHECK_POSTGREST_URL = os.getenv("PULSECHECK_POSTGREST_URL", "http://postgrest:3000").rstrip("/")
PULSECHECK_POSTGREST_API_KEY = os.getenv("PULSECHECK_POSTGREST_API_KEY", "")
PULSECHECK_DATABASE_URL = os.getenv("PULSECHECK_DATABASE_URL", "")

PULSECHECK_CONNECTOR_TIMEOUT = int(os.getenv("PULSECHECK_CONNECTOR_TIMEOUT", "30"))
PULSECHECK_STARTUP_TIMEOUT = int(os.getenv("PULSECHECK_STARTUP_TIMEOUT", "120"))

PULSECHECK_INSTANCE_ID = os.getenv("PULSECHECK_INSTANCE_ID", "default")

# table names in the telemetry store
PROCESSES_TABLE = "system_processes"
AUDIT_LOG_TABLE = "audit_logs"
FAILURE_STATUS = "failure"

# weight values assigned to severity labels for scoring and ranking
SEVERITY_WEIGHTS: Dict[str, int] = {
    "low": 1,
    "medium": 2,
    "high": 3,
}

# health score contribution per anomaly of a given severity
SEVERITY_SCORE_POINTS: Dict[str, int] = {
    "low": 5,
    "medium": 15,
    "high": 30,
}


class Settings(BaseSettings):
    telemetry_backend: str = PULSECHECK_TELEMETRY_BACKEND
    postgrest_url: str = PULSECHECK_POSTGREST_URL
    postgrest_api_key: str = PULSECHECK_POSTGREST_API_KEY
    database_url: Optional[str] = PULSECHECK_DATABASE_URL or None

    connector_timeout: int = PULSECHECK_CONNECTOR_TIMEOUT
    startup_timeout: int = PULSECHECK_STARTUP_TIMEOUT
    instance_id: str = PULSECHECK_INSTANCE_ID

    # baseline computation
    baseline_window_limit: int = 100
    baseline_min_samples: int = 2

    # duration detection, in standard deviations from the type mean
    duration_zscore_threshold: float = 2.0
    duration_severity_medium: float = 3.0
    duration_severity_high: float = 4.0

    # error rate detection, in percent of executions inside the window
    error_window_seconds: float = 3600.0
    error_rate_min_samples: int = 5
    error_rate_threshold: float = 20.0
    error_rate_expected: float = 5.0
    error_rate_severity_medium: float = 30.0
    error_rate_severity_high: float = 50.0

    # health score
    score_cap: int = 100
    health_status_critical: int = 50
    health_status_degraded: int = 20
    top_deviation_limit: int = 5

    # refresh scheduling; the anomaly cycle runs at a multiple of the base
    # telemetry refresh interval
    refresh_base_interval_seconds: float = Field(30.0, gt=0)
    refresh_interval_multiplier: float = Field(2.0, gt=0)
    replay_mode: bool = False

    # connector retries
    connector_retry_attempts: int = 2
    connector_retry_delay_seconds: float = 0.5

    redis_url: str = REDIS_URL
    store_redis_op_timeout_seconds: float = 0.5
    store_redis_retry_cooldown_seconds: float = 10.0
    store_fallback_max_items: int = 10_000

    model_config = {
        "env_prefix": "PULSECHECK_",
        "extra": "ignore",
    }

    @property
    def refresh_interval_seconds(self) -> float:
        return self.refresh_base_interval_seconds * self.refresh_interval_multiplier


settings = Settings()
