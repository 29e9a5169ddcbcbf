"""
Client code for Redis access, with in-memory fallback if Redis is unavailable.

The fallback mirrors the subset of Redis semantics the snapshot store relies
on: plain string values and per-key expiry. Redis is probed lazily and, after
a failed connection, not retried until a cooldown has passed.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Optional, Tuple

import redis.asyncio as aioredis

from config import settings

log = logging.getLogger(__name__)

_redis_client: Any = None
# key -> (value, monotonic expiry or None)
_fallback: Dict[str, Tuple[str, Optional[float]]] = {}
_using_fallback = False
_init_lock = asyncio.Lock()
_retry_after_monotonic: float = 0.0


def _fallback_get(key: str) -> Optional[str]:
    entry = _fallback.get(key)
    if entry is None:
        return None
    value, expires_at = entry
    if expires_at is not None and time.monotonic() >= expires_at:
        _fallback.pop(key, None)
        return None
    return value


def _fallback_put(key: str, value: str, ttl: Optional[int]) -> None:
    if key not in _fallback and len(_fallback) >= settings.store_fallback_max_items:
        log.debug("In-memory store full, dropping %s", key)
        return
    _fallback[key] = (value, time.monotonic() + ttl if ttl else None)


async def get_redis() -> Any:
    global _redis_client, _using_fallback, _retry_after_monotonic

    if _redis_client is not None:
        return _redis_client
    if time.monotonic() < _retry_after_monotonic:
        _using_fallback = True
        return None

    async with _init_lock:
        if _redis_client is not None:
            return _redis_client
        if time.monotonic() < _retry_after_monotonic:
            _using_fallback = True
            return None
        timeout = settings.store_redis_op_timeout_seconds
        client = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=timeout,
            socket_timeout=timeout,
        )
        try:
            await asyncio.wait_for(client.ping(), timeout=timeout)
        except (aioredis.RedisError, OSError, asyncio.TimeoutError) as exc:
            _retry_after_monotonic = time.monotonic() + max(0.0, settings.store_redis_retry_cooldown_seconds)
            if not _using_fallback:
                log.warning("Redis unavailable (%s), snapshots kept in memory", exc)
                _using_fallback = True
            await client.aclose()
            return None
        _redis_client = client
        _retry_after_monotonic = 0.0
        _using_fallback = False
        log.info("Redis connected: %s", settings.redis_url)
        return _redis_client


async def redis_get(key: str) -> Optional[str]:
    client = await get_redis()
    if client is None:
        return _fallback_get(key)
    try:
        return await asyncio.wait_for(client.get(key), timeout=settings.store_redis_op_timeout_seconds)
    except Exception as exc:
        log.debug("Redis GET error %s: %s", key, exc)
        return _fallback_get(key)


async def redis_set(key: str, value: str, ttl: Optional[int] = None) -> None:
    client = await get_redis()
    if client is None:
        _fallback_put(key, value, ttl)
        return
    try:
        op = client.setex(key, ttl, value) if ttl else client.set(key, value)
        await asyncio.wait_for(op, timeout=settings.store_redis_op_timeout_seconds)
    except Exception as exc:
        log.debug("Redis SET error %s: %s", key, exc)
        _fallback_put(key, value, ttl)


async def close_redis() -> None:
    global _redis_client
    client, _redis_client = _redis_client, None
    if client is not None:
        await client.aclose()
        log.info("Redis connection closed")


def is_using_fallback() -> bool:
    return _using_fallback
