"""
Test Suite for the SQL Telemetry Connector

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from datetime import datetime, timedelta, timezone

import pytest

import database
from connectors.sql import SqlConnector
from datasources.exceptions import InvalidQuery
from db_models import AuditLog, SystemProcess

NOW = datetime(2026, 3, 2, 12, tzinfo=timezone.utc)


@pytest.fixture
def db():
    database.dispose_database()
    database.init_database("sqlite://")
    database.init_db()
    with database.get_db_session() as session:
        for i, minutes in enumerate((10, 30, 90, 180)):
            start = NOW - timedelta(minutes=minutes)
            session.add(SystemProcess(
                id=f"p{i}",
                process_name="data_sync_job",
                status="completed",
                start_time=start,
                end_time=start + timedelta(seconds=20 + i),
            ))
        session.add(AuditLog(id="a1", timestamp=NOW - timedelta(minutes=5), action="sync",
                             status="failure", system_process_id="p0"))
        session.add(AuditLog(id="a2", timestamp=NOW - timedelta(minutes=6), action="sync",
                             status="success", system_process_id="p1"))
        session.add(AuditLog(id="a3", timestamp=NOW - timedelta(hours=2), action="sync",
                             status="failure", system_process_id="p2"))
    yield
    database.dispose_database()


@pytest.mark.asyncio
async def test_recent_executions_newest_first(db):
    rows = await SqlConnector().list_recent_executions(3)
    assert [r.id for r in rows] == ["p0", "p1", "p2"]
    assert rows[0].start_time.tzinfo is not None
    assert rows[0].duration_seconds == 20


@pytest.mark.asyncio
async def test_executions_since(db):
    rows = await SqlConnector().list_executions_since(NOW - timedelta(hours=1))
    assert {r.id for r in rows} == {"p0", "p1"}


@pytest.mark.asyncio
async def test_error_events_since_only_failures(db):
    events = await SqlConnector().list_error_events_since(NOW - timedelta(hours=1))
    assert [e.system_process_id for e in events] == ["p0"]


@pytest.mark.asyncio
async def test_uninitialized_database_is_invalid_query():
    database.dispose_database()
    with pytest.raises(InvalidQuery):
        await SqlConnector().list_recent_executions(5)


def test_connection_test(db):
    assert database.connection_test() is True
