from datetime import datetime
from typing import Any, Dict, List, Optional

from config import AUDIT_LOG_TABLE, FAILURE_STATUS, PROCESSES_TABLE
from datasources.base import HttpTelemetryStore
from datasources.helpers import error_events_from_rows, executions_from_rows, fetch_json
from datasources.retry import retry
from engine.records import ErrorEvent, ProcessExecution

HEALTH_PATH = "/"


class PostgrestConnector(HttpTelemetryStore):
    """Telemetry store backed by a PostgREST endpoint (Supabase ``/rest/v1``)."""

    health_path = HEALTH_PATH

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: int = 30,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(base_url, timeout=timeout, headers=headers)
        self.api_key = api_key

    def _headers(self) -> Dict[str, str]:
        hdrs = super()._headers()
        if self.api_key:
            hdrs["apikey"] = self.api_key
            hdrs["Authorization"] = f"Bearer {self.api_key}"
        return hdrs

    async def _select(self, table: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/{table}"
        rows = await fetch_json(
            url,
            params={"select": "*", **params},
            headers=self._headers(),
            timeout=self.timeout,
            invalid_msg=f"PostgREST query on {table} failed",
            timeout_msg=f"PostgREST query on {table} timed out",
            unavailable_msg="Cannot reach PostgREST at",
        )
        return rows if isinstance(rows, list) else []

    @retry()
    async def list_recent_executions(self, limit: int) -> List[ProcessExecution]:
        rows = await self._select(PROCESSES_TABLE, {
            "order": "start_time.desc",
            "limit": int(limit),
        })
        return executions_from_rows(rows)

    @retry()
    async def list_executions_since(self, timestamp: datetime) -> List[ProcessExecution]:
        rows = await self._select(PROCESSES_TABLE, {
            "start_time": f"gte.{timestamp.isoformat()}",
            "order": "start_time.desc",
        })
        return executions_from_rows(rows)

    @retry()
    async def list_error_events_since(self, timestamp: datetime) -> List[ErrorEvent]:
        rows = await self._select(AUDIT_LOG_TABLE, {
            "status": f"eq.{FAILURE_STATUS}",
            "timestamp": f"gte.{timestamp.isoformat()}",
            "order": "timestamp.desc",
        })
        return error_events_from_rows(rows)
