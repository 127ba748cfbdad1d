# chatapi/store.py
import logging
from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy import delete, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from .errors import ConflictError, StoreError
from .models import Message, Participant

logger = logging.getLogger(__name__)


# Database failures, including unreachable servers, surface as StoreError.
# Only the participant insert maps integrity errors to ConflictError.
class ChatStore:
    def __init__(self, session_factory):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, conflict=False):
        try:
            async with self._session_factory() as session:
                yield session
        except IntegrityError as exc:
            if conflict:
                raise ConflictError(str(exc.orig)) from exc
            logger.error("Store write rejected: %s", exc)
            raise StoreError(str(exc)) from exc
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Store operation failed: %s", exc)
            raise StoreError(str(exc) or type(exc).__name__) from exc

    async def add_participant(self, participant: Participant, joined: Message):
        # the primary key on name makes check and insert a single step
        async with self._session(conflict=True) as session:
            session.add(participant)
            session.add(joined)
            await session.commit()

    async def get_participant(self, name: str) -> Participant | None:
        async with self._session() as session:
            return await session.get(Participant, name)

    async def list_participants(self) -> list[Participant]:
        async with self._session() as session:
            rows = await session.exec(select(Participant).order_by(Participant.name))
            return list(rows.all())

    async def touch_participant(self, name: str, now: datetime) -> bool:
        async with self._session() as session:
            result = await session.exec(
                update(Participant)
                .where(Participant.name == name)
                .values(last_status=now)
            )
            await session.commit()
            return result.rowcount > 0

    async def evict_before(self, cutoff: datetime, leave_message) -> list[str]:
        # each delete re-checks the cutoff so a heartbeat committed after the
        # stale read keeps its participant and gets no leave message
        async with self._session() as session:
            stale = await session.exec(
                select(Participant.name).where(Participant.last_status < cutoff)
            )
            evicted = []
            for name in stale.all():
                result = await session.exec(
                    delete(Participant).where(
                        Participant.name == name,
                        Participant.last_status < cutoff,
                    )
                )
                if result.rowcount:
                    session.add(leave_message(name))
                    evicted.append(name)
            await session.commit()
            return evicted

    async def add_message(self, message: Message) -> Message:
        async with self._session() as session:
            session.add(message)
            await session.commit()
            await session.refresh(message)
            return message

    async def messages_for(
        self, participant: str | None, broadcast: str, limit: int | None = None
    ) -> list[Message]:
        visible = [Message.to == broadcast]
        if participant:
            visible += [Message.to == participant, Message.sender == participant]

        statement = select(Message).where(or_(*visible))
        if limit is None:
            statement = statement.order_by(Message.id)
        else:
            statement = statement.order_by(Message.id.desc()).limit(limit)

        async with self._session() as session:
            rows = list((await session.exec(statement)).all())

        if limit is not None:
            rows.reverse()
        return rows
