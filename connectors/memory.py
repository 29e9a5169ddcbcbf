from datetime import datetime
from typing import Iterable, List, Optional

from config import FAILURE_STATUS
from datasources.base import TelemetryStore
from engine.records import ErrorEvent, ProcessExecution


class MemoryConnector(TelemetryStore):
    """In-process telemetry store holding a fixed set of records, used for replays."""

    def __init__(
        self,
        executions: Optional[Iterable[ProcessExecution]] = None,
        events: Optional[Iterable[ErrorEvent]] = None,
    ):
        self._executions: List[ProcessExecution] = list(executions or [])
        self._events: List[ErrorEvent] = list(events or [])

    def load(self, executions: Iterable[ProcessExecution], events: Iterable[ErrorEvent] = ()) -> None:
        self._executions = list(executions)
        self._events = list(events)

    def _newest_first(self, items: Iterable[ProcessExecution]) -> List[ProcessExecution]:
        return sorted(
            items,
            key=lambda e: e.start_time.timestamp() if e.start_time else float("-inf"),
            reverse=True,
        )

    async def list_recent_executions(self, limit: int) -> List[ProcessExecution]:
        return self._newest_first(self._executions)[:max(0, int(limit))]

    async def list_executions_since(self, timestamp: datetime) -> List[ProcessExecution]:
        return self._newest_first(
            e for e in self._executions if e.start_time is not None and e.start_time >= timestamp
        )

    async def list_error_events_since(self, timestamp: datetime) -> List[ErrorEvent]:
        events = [e for e in self._events if e.status == FAILURE_STATUS and e.timestamp >= timestamp]
        return sorted(events, key=lambda e: e.timestamp, reverse=True)
