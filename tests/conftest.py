import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

# ensure workspace root is on sys.path so our application packages can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

_memory: dict = {}

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clear_fallback(monkeypatch):
    """Wipe the in-memory redis fallback before and after each test and override
    the redis helpers so they always operate on the in-memory store.
    """
    import store.client as client
    import store.snapshot as snapshot_store

    _memory.clear()
    client._fallback.clear()

    async def fake_get(key: str):
        return _memory.get(key)

    async def fake_set(key: str, value: str, ttl=None):
        _memory[key] = value

    async def no_redis():
        return None

    monkeypatch.setattr(client, "get_redis", no_redis)
    monkeypatch.setattr(client, "redis_get", fake_get)
    monkeypatch.setattr(client, "redis_set", fake_set)
    # store.snapshot imported the helpers by name
    monkeypatch.setattr(snapshot_store, "redis_get", fake_get)
    monkeypatch.setattr(snapshot_store, "redis_set", fake_set)

    yield

    _memory.clear()
    client._fallback.clear()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_execution():
    from engine.enums import ExecutionStatus
    from engine.records import ProcessExecution

    counter = {"n": 0}

    def _make(name="data_sync_job", seconds=10.0, status=ExecutionStatus.completed,
              started=None, id=None, finished=True):
        counter["n"] += 1
        start = started or NOW - timedelta(minutes=30, seconds=counter["n"])
        return ProcessExecution(
            id=id or f"exec-{counter['n']}",
            process_name=name,
            start_time=start,
            end_time=start + timedelta(seconds=seconds) if finished else None,
            status=status,
        )

    return _make


def pytest_ignore_collect(collection_path, config):
    parts = collection_path.parts
    if "engine" in parts and "tests" not in parts:
        return True
    return None
