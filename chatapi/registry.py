# chatapi/registry.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

from .errors import NotFoundError, ValidationError
from .models import (
    BROADCAST,
    JOIN_TEXT,
    LEAVE_TEXT,
    STATUS,
    Message,
    Participant,
    utcnow,
)
from .store import ChatStore

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 3


def validate_name(name, field: str = "name") -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f'"{field}" is required')
    name = name.strip()
    if len(name) < MIN_NAME_LENGTH:
        raise ValidationError(
            f'"{field}" length must be at least {MIN_NAME_LENGTH} characters long'
        )
    return name


class ParticipantRegistry:
    def __init__(
        self,
        store: ChatStore,
        broadcast: str = BROADCAST,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.broadcast = broadcast
        self.clock = clock

    def _status(self, name: str, text: str, now: datetime) -> Message:
        return Message(sender=name, to=self.broadcast, text=text, type=STATUS, time=now)

    async def register(self, name) -> None:
        name = validate_name(name)
        now = self.clock()
        await self.store.add_participant(
            Participant(name=name, last_status=now),
            self._status(name, JOIN_TEXT, now),
        )
        logger.info("Participant %s joined", name)

    async def list(self) -> list[Participant]:
        return await self.store.list_participants()

    async def exists(self, name: str | None) -> bool:
        if not name:
            return False
        return await self.store.get_participant(name) is not None

    async def heartbeat(self, name: str | None) -> None:
        if not name or not await self.store.touch_participant(name, self.clock()):
            raise NotFoundError(name or "")

    async def evict_stale(
        self, threshold: timedelta, now: datetime | None = None
    ) -> list[str]:
        now = now or self.clock()
        evicted = await self.store.evict_before(
            now - threshold, lambda name: self._status(name, LEAVE_TEXT, now)
        )
        for name in evicted:
            logger.info("Participant %s evicted after %s of inactivity", name, threshold)
        return evicted
