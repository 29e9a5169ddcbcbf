"""
Refresh scheduler driving periodic anomaly detection cycles and publishing the resulting snapshots.

The scheduler owns one timer task and at most one in-flight cycle. A tick that
fires while a cycle is still running is skipped. Each completed cycle replaces
the held snapshot with a new immutable one and hands it to every subscriber;
a failed cycle leaves the previous snapshot in place. Stopping the scheduler
cancels the timer and the in-flight cycle, and a cycle that finishes after the
stop is discarded.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timezone
from typing import AsyncIterator, Optional, Set

from api.responses import AnomalySnapshot, SchedulerStatus
from config import settings
from datasources.base import TelemetryStore
from datasources.exceptions import DataSourceError
from engine import analyzer
from engine.scoring import empty_snapshot
from store import snapshot as snapshot_store

log = logging.getLogger(__name__)


class CycleInFlight(Exception):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _offer(queue: "asyncio.Queue[AnomalySnapshot]", snapshot: AnomalySnapshot) -> None:
    # subscribers only care about the newest snapshot
    if queue.full():
        with contextlib.suppress(asyncio.QueueEmpty):
            queue.get_nowait()
    queue.put_nowait(snapshot)


def _positive_interval(value: float) -> float:
    interval = float(value)
    if not interval > 0:
        raise ValueError(f"refresh interval must be positive, got {value!r}")
    return interval


class RefreshScheduler:
    def __init__(
        self,
        store: TelemetryStore,
        interval_seconds: float | None = None,
        replay_mode: bool | None = None,
        instance_id: str | None = None,
    ) -> None:
        self._store = store
        self._interval = _positive_interval(
            settings.refresh_interval_seconds if interval_seconds is None else interval_seconds
        )
        self._replay_mode = settings.replay_mode if replay_mode is None else bool(replay_mode)
        self._instance_id = instance_id or settings.instance_id
        self._snapshot: AnomalySnapshot = empty_snapshot()
        self._published = False
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None
        self._generation = 0
        self._subscribers: Set["asyncio.Queue[AnomalySnapshot]"] = set()

        self._cycles_completed = 0
        self._consecutive_failures = 0
        self._last_success_at: Optional[datetime] = None
        self._last_error: Optional[str] = None
        self._last_error_at: Optional[datetime] = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def latest(self) -> AnomalySnapshot:
        return self._snapshot

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            running=self.running,
            in_flight=self.in_flight,
            replay_mode=self._replay_mode,
            interval_seconds=self._interval,
            cycles_completed=self._cycles_completed,
            consecutive_failures=self._consecutive_failures,
            last_success_at=self._last_success_at,
            last_error=self._last_error,
            last_error_at=self._last_error_at,
        )

    async def restore(self) -> bool:
        if self._published:
            return False
        stored = await snapshot_store.load(self._instance_id)
        if stored is None or self._published:
            return False
        self._snapshot = stored
        log.info("Restored last known snapshot (score %d, %d anomalies)", stored.score, len(stored.anomalies))
        return True

    def start(self, interval_seconds: float | None = None) -> None:
        if self.running:
            return
        if interval_seconds is not None:
            self._interval = _positive_interval(interval_seconds)
        self._generation += 1
        self._timer = asyncio.create_task(self._loop(), name="pulsecheck-refresh-timer")
        log.info(
            "Refresh scheduler started (interval=%.1fs, replay_mode=%s)",
            self._interval, self._replay_mode,
        )

    async def stop(self) -> None:
        self._generation += 1
        timer, self._timer = self._timer, None
        inflight, self._inflight = self._inflight, None
        for task in (timer, inflight):
            if task is None or task.done():
                continue
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        log.info("Refresh scheduler stopped")

    def tick(self) -> Optional[asyncio.Task]:
        if self.in_flight:
            log.debug("Previous cycle still running, skipping tick")
            return None
        self._inflight = asyncio.create_task(self._cycle(self._generation), name="pulsecheck-cycle")
        return self._inflight

    async def refresh(self) -> Optional[AnomalySnapshot]:
        task = self.tick()
        if task is None:
            raise CycleInFlight("a refresh cycle is already running")
        return await task

    async def subscribe(self, interval_seconds: float | None = None) -> AsyncIterator[AnomalySnapshot]:
        queue: "asyncio.Queue[AnomalySnapshot]" = asyncio.Queue(maxsize=1)
        self._subscribers.add(queue)
        try:
            if self.running:
                self.tick()
            else:
                self.start(interval_seconds)
            while True:
                yield await queue.get()
        finally:
            self._subscribers.discard(queue)

    async def _loop(self) -> None:
        self.tick()
        if self._replay_mode:
            return
        while True:
            await asyncio.sleep(self._interval)
            self.tick()

    async def _cycle(self, generation: int) -> Optional[AnomalySnapshot]:
        try:
            snapshot = await analyzer.run(self._store)
        except DataSourceError as exc:
            log.warning("Telemetry store unavailable, keeping previous snapshot: %s", exc)
            self._record_failure(exc)
            return None
        except Exception as exc:
            log.exception("Anomaly cycle failed, keeping previous snapshot")
            self._record_failure(exc)
            return None

        if generation != self._generation:
            log.debug("Discarding snapshot from a cycle that finished after stop")
            return None

        self._publish(snapshot)
        await snapshot_store.save(self._instance_id, snapshot)
        return snapshot

    def _publish(self, snapshot: AnomalySnapshot) -> None:
        self._snapshot = snapshot
        self._published = True
        self._cycles_completed += 1
        self._consecutive_failures = 0
        self._last_success_at = snapshot.generated_at or _utcnow()
        for queue in list(self._subscribers):
            _offer(queue, snapshot)

    def _record_failure(self, exc: BaseException) -> None:
        self._consecutive_failures += 1
        self._last_error = f"{type(exc).__name__}: {exc}"
        self._last_error_at = _utcnow()
