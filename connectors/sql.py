import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError

from config import FAILURE_STATUS
from database import get_db_session
from datasources.base import TelemetryStore
from datasources.exceptions import DataSourceUnavailable, InvalidQuery, QueryTimeout
from datasources.helpers import error_events_from_rows, executions_from_rows
from datasources.retry import retry
from db_models import AuditLog, SystemProcess
from engine.records import ErrorEvent, ProcessExecution

_T = TypeVar("_T")


def _process_row(row: SystemProcess) -> Dict[str, Any]:
    return {
        "id": row.id,
        "process_name": row.process_name,
        "start_time": row.start_time,
        "end_time": row.end_time,
        "status": row.status,
    }


def _audit_row(row: AuditLog) -> Dict[str, Any]:
    return {
        "id": row.id,
        "timestamp": row.timestamp,
        "status": row.status,
        "system_process_id": row.system_process_id,
    }


class SqlConnector(TelemetryStore):
    """Telemetry store reading the process tables through SQLAlchemy."""

    def __init__(self, timeout: int = 30):
        self.timeout = timeout

    async def _run(self, fn: Callable[[], _T]) -> _T:
        try:
            return await asyncio.wait_for(asyncio.to_thread(fn), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise QueryTimeout("SQL telemetry query timed out") from e
        except (OperationalError, DBAPIError) as e:
            raise DataSourceUnavailable(f"SQL telemetry store unavailable: {e}") from e
        except (SQLAlchemyError, RuntimeError) as e:
            raise InvalidQuery(f"SQL telemetry query failed: {e}") from e

    @retry()
    async def list_recent_executions(self, limit: int) -> List[ProcessExecution]:
        def _query() -> List[Dict[str, Any]]:
            with get_db_session() as db:
                stmt = select(SystemProcess).order_by(SystemProcess.start_time.desc()).limit(int(limit))
                return [_process_row(r) for r in db.scalars(stmt).all()]

        return executions_from_rows(await self._run(_query))

    @retry()
    async def list_executions_since(self, timestamp: datetime) -> List[ProcessExecution]:
        def _query() -> List[Dict[str, Any]]:
            with get_db_session() as db:
                stmt = (
                    select(SystemProcess)
                    .where(SystemProcess.start_time >= timestamp)
                    .order_by(SystemProcess.start_time.desc())
                )
                return [_process_row(r) for r in db.scalars(stmt).all()]

        return executions_from_rows(await self._run(_query))

    @retry()
    async def list_error_events_since(self, timestamp: datetime) -> List[ErrorEvent]:
        def _query() -> List[Dict[str, Any]]:
            with get_db_session() as db:
                stmt = (
                    select(AuditLog)
                    .where(AuditLog.status == FAILURE_STATUS, AuditLog.timestamp >= timestamp)
                    .order_by(AuditLog.timestamp.desc())
                )
                return [_audit_row(r) for r in db.scalars(stmt).all()]

        return error_events_from_rows(await self._run(_query))
