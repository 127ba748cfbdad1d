# chatapi/messages.py
from datetime import datetime
from typing import Callable

from .errors import UnknownSenderError, ValidationError
from .models import BROADCAST, USER_MESSAGE_TYPES, Message, utcnow
from .registry import MIN_NAME_LENGTH, ParticipantRegistry
from .store import ChatStore


def parse_limit(limit) -> int | None:
    if limit is None:
        return None
    if isinstance(limit, bool):
        raise ValidationError('"limit" must be a number')
    if isinstance(limit, str):
        try:
            limit = int(limit.strip())
        except ValueError:
            raise ValidationError('"limit" must be a number') from None
    if not isinstance(limit, int):
        raise ValidationError('"limit" must be a number')
    if limit <= 0:
        raise ValidationError('"limit" must be a positive number')
    return limit


def _check_user_message(sender, to, text, type) -> list[str]:
    problems = []
    for field, value in (("from", sender), ("to", to)):
        if not isinstance(value, str) or not value:
            problems.append(f'"{field}" is required')
        elif len(value) < MIN_NAME_LENGTH:
            problems.append(
                f'"{field}" length must be at least {MIN_NAME_LENGTH} characters long'
            )
    if not isinstance(text, str) or not text:
        problems.append('"text" is required')
    if type not in USER_MESSAGE_TYPES:
        problems.append(f'"type" must be one of [{", ".join(USER_MESSAGE_TYPES)}]')
    return problems


class MessageLog:
    def __init__(
        self,
        store: ChatStore,
        registry: ParticipantRegistry,
        broadcast: str = BROADCAST,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.registry = registry
        self.broadcast = broadcast
        self.clock = clock

    async def append(self, sender: str, to: str, text: str, type: str) -> Message:
        message = Message(sender=sender, to=to, text=text, type=type, time=self.clock())
        return await self.store.add_message(message)

    async def append_user_message(self, sender, to, text, type) -> Message:
        problems = _check_user_message(sender, to, text, type)
        if problems:
            raise ValidationError(problems)
        if not await self.registry.exists(sender):
            raise UnknownSenderError(sender)
        return await self.append(sender, to, text, type)

    async def retrieve(self, participant: str | None, limit=None) -> list[Message]:
        # every broadcast plus private traffic to or from participant, oldest first
        limit = parse_limit(limit)
        return await self.store.messages_for(participant, self.broadcast, limit)
