"""
Shared helper functions for telemetry store connectors: HTTP fetching with error translation and parsing of raw process and audit-log rows into telemetry records.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import httpx

from datasources.exceptions import DataSourceUnavailable, InvalidQuery, QueryTimeout
from engine.enums import ExecutionStatus
from engine.records import ErrorEvent, ProcessExecution

log = logging.getLogger(__name__)

_FRACTION = re.compile(r"\.(\d+)(?=[+-]\d{2}:?\d{2}$|$)")


async def fetch_json(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: int = 30,
    invalid_msg: str = "query failed",
    timeout_msg: str = "query timed out",
    unavailable_msg: str = "Cannot reach telemetry store at",
) -> Any:
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(url, params=params, headers=headers)
            resp.raise_for_status()
            return resp.json()
    except httpx.HTTPStatusError as e:
        raise InvalidQuery(f"{invalid_msg} [{e.response.status_code}]: {e.response.text}") from e
    except httpx.TimeoutException as e:
        raise QueryTimeout(timeout_msg) from e
    except httpx.RequestError as e:
        raise DataSourceUnavailable(f"{unavailable_msg} {url}") from e


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, (int, float)):
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        # fromisoformat on 3.10 wants exactly 3 or 6 fractional digits
        text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _parse_status(value: Any) -> ExecutionStatus:
    text = str(value or "").strip().lower()
    if text == "processing":
        return ExecutionStatus.running
    return ExecutionStatus(text)


def execution_from_row(row: Dict[str, Any]) -> Optional[ProcessExecution]:
    try:
        return ProcessExecution(
            id=str(row["id"]),
            process_name=row.get("process_name") or None,
            start_time=parse_timestamp(row.get("start_time")),
            end_time=parse_timestamp(row.get("end_time")),
            status=_parse_status(row.get("status")),
        )
    except (KeyError, TypeError, ValueError) as exc:
        log.debug("Dropping unparseable process row %r: %s", row.get("id"), exc)
        return None


def error_event_from_row(row: Dict[str, Any]) -> Optional[ErrorEvent]:
    try:
        ts = parse_timestamp(row.get("timestamp"))
    except (TypeError, ValueError) as exc:
        log.debug("Dropping audit row %r with bad timestamp: %s", row.get("id"), exc)
        return None
    if ts is None:
        return None
    process_id = row.get("system_process_id")
    return ErrorEvent(
        timestamp=ts,
        system_process_id=str(process_id) if process_id else None,
        status=str(row.get("status") or "failure"),
    )


def executions_from_rows(rows: Iterable[Dict[str, Any]]) -> List[ProcessExecution]:
    parsed = (execution_from_row(r) for r in rows or [])
    return [p for p in parsed if p is not None]


def error_events_from_rows(rows: Iterable[Dict[str, Any]]) -> List[ErrorEvent]:
    parsed = (error_event_from_row(r) for r in rows or [])
    return [p for p in parsed if p is not None]
