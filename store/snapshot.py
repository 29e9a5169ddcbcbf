from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from api.responses import AnomalySnapshot
from config import SNAPSHOT_TTL
from store import keys
from store.client import redis_get, redis_set

log = logging.getLogger(__name__)


async def load(instance_id: str) -> Optional[AnomalySnapshot]:
    try:
        raw = await redis_get(keys.snapshot(instance_id))
        if raw:
            return AnomalySnapshot.model_validate_json(raw)
    except ValidationError as exc:
        log.warning("Discarding unreadable stored snapshot for %s: %s", instance_id, exc)
    except Exception as exc:
        log.debug("Snapshot load failed %s: %s", instance_id, exc)
    return None


async def save(instance_id: str, snapshot: AnomalySnapshot) -> None:
    try:
        await redis_set(keys.snapshot(instance_id), snapshot.model_dump_json(), ttl=SNAPSHOT_TTL)
    except Exception as exc:
        log.debug("Snapshot save failed %s: %s", instance_id, exc)
