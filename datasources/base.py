"""
Base telemetry store interface and shared connector plumbing

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from engine.records import ErrorEvent, ProcessExecution


class TelemetryStore(ABC):
    """Read-only view over process executions and their failure events."""

    @abstractmethod
    async def list_recent_executions(self, limit: int) -> List[ProcessExecution]:
        """Most recent executions of any status, newest first."""

    @abstractmethod
    async def list_executions_since(self, timestamp: datetime) -> List[ProcessExecution]: ...

    @abstractmethod
    async def list_error_events_since(self, timestamp: datetime) -> List[ErrorEvent]: ...

    async def aclose(self) -> None:
        return None


class HttpTelemetryStore(TelemetryStore):
    health_path: str = ""

    def __init__(self, base_url: str, timeout: int = 30, headers: Optional[Dict[str, str]] = None):
        self.base_url = str(base_url).rstrip("/")
        self.timeout = timeout
        self.headers = headers or {}

    @property
    def health_url(self) -> str:
        if not self.health_path:
            raise NotImplementedError("connector must define health_path")
        return f"{self.base_url}{self.health_path}"

    def _headers(self) -> Dict[str, str]:
        return {**self.headers, "Accept": "application/json"}
