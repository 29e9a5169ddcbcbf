"""
Telemetry store connection settings

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""
from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings
from config import (
    TELEMETRY_BACKEND_MEMORY,
    TELEMETRY_BACKEND_POSTGREST,
    TELEMETRY_BACKEND_SQL,
    PULSECHECK_TELEMETRY_BACKEND,
    PULSECHECK_POSTGREST_URL,
    PULSECHECK_POSTGREST_API_KEY,
    PULSECHECK_DATABASE_URL,
    PULSECHECK_CONNECTOR_TIMEOUT,
    PULSECHECK_STARTUP_TIMEOUT,
)

class DataSourceSettings(BaseSettings):
    telemetry_backend: str = PULSECHECK_TELEMETRY_BACKEND
    postgrest_url: str = PULSECHECK_POSTGREST_URL
    postgrest_api_key: str = PULSECHECK_POSTGREST_API_KEY
    database_url: Optional[str] = PULSECHECK_DATABASE_URL or None
    connector_timeout: int = PULSECHECK_CONNECTOR_TIMEOUT
    startup_timeout: int = PULSECHECK_STARTUP_TIMEOUT

    @field_validator("postgrest_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        return str(v).rstrip("/") if v is not None else v

    @field_validator("telemetry_backend", mode="before")
    @classmethod
    def validate_telemetry_backend(cls, v: str) -> str:
        value = str(v or "").strip().lower()
        if value not in {TELEMETRY_BACKEND_POSTGREST, TELEMETRY_BACKEND_SQL, TELEMETRY_BACKEND_MEMORY}:
            raise ValueError(f"Unsupported telemetry backend: {value!r}")
        return value

    model_config = {"env_prefix": "PULSECHECK_", "extra": "ignore"}
