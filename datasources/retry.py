"""
Retry decorator for telemetry store reads.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, Type, TypeVar, Tuple, cast

from datasources.exceptions import DataSourceUnavailable, QueryTimeout

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

TRANSIENT_ERRORS: Tuple[Type[Exception], ...] = (DataSourceUnavailable, QueryTimeout)


def retry(
    *,
    attempts: Optional[int] = None,
    delay: Optional[float] = None,
    backoff: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = TRANSIENT_ERRORS,
) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            from config import settings

            max_attempts = max(1, attempts if attempts is not None else settings.connector_retry_attempts)
            _delay = delay if delay is not None else settings.connector_retry_delay_seconds
            _attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as exc:
                    _attempt += 1
                    if _attempt >= max_attempts:
                        raise
                    log.debug("%s failed (attempt %d/%d): %s", func.__qualname__, _attempt, max_attempts, exc)
                    await asyncio.sleep(_delay)
                    _delay *= backoff

        return cast(F, wrapper)

    return decorator
