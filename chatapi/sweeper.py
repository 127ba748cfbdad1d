# chatapi/sweeper.py
import asyncio
import logging
from datetime import datetime, timedelta

from .errors import StoreError
from .registry import ParticipantRegistry

logger = logging.getLogger(__name__)


# One eviction pass; a store failure is logged and the next tick retries
async def sweep(
    registry: ParticipantRegistry,
    threshold: timedelta,
    now: datetime | None = None,
) -> list[str]:
    try:
        evicted = await registry.evict_stale(threshold, now)
    except StoreError:
        logger.exception("Inactivity sweep failed, retrying on next tick")
        return []
    if evicted:
        logger.info("Swept %d inactive participant(s): %s", len(evicted), ", ".join(evicted))
    return evicted


async def run_sweeper(
    registry: ParticipantRegistry, interval: float, threshold: timedelta
):
    logger.info("Sweeper started (interval=%ss, threshold=%s)", interval, threshold)
    while True:
        await asyncio.sleep(interval)
        try:
            await sweep(registry, threshold)
        except Exception:
            logger.exception("Unexpected sweeper error, retrying on next tick")
