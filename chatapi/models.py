# chatapi/models.py
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator
from sqlmodel import SQLModel, Field

BROADCAST = "Todos"
JOIN_TEXT = "entra na sala..."
LEAVE_TEXT = "sai da sala..."

MESSAGE = "message"
PRIVATE_MESSAGE = "private_message"
STATUS = "status"

USER_MESSAGE_TYPES = (MESSAGE, PRIVATE_MESSAGE)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# SQLite drops the offset on write, so values are stored as UTC and
# read back as aware UTC datetimes on every backend
class UTCDateTime(TypeDecorator):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            raise ValueError("naive datetime given where an aware one is required")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Participant(SQLModel, table=True):
    __tablename__ = "participants"

    name: str = Field(primary_key=True)
    last_status: datetime = Field(sa_type=UTCDateTime, index=True)

    def to_public(self) -> dict:
        return {
            "name": self.name,
            "lastStatus": int(self.last_status.timestamp() * 1000),
        }


class Message(SQLModel, table=True):
    __tablename__ = "messages"

    id: Optional[int] = Field(default=None, primary_key=True)
    sender: str = Field(index=True)
    to: str = Field(index=True)
    text: str
    type: str
    time: datetime = Field(sa_type=UTCDateTime)

    def to_public(self) -> dict:
        return {
            "from": self.sender,
            "to": self.to,
            "text": self.text,
            "type": self.type,
            "time": self.time.astimezone().strftime("%H:%M:%S"),
        }


# Request bodies; field rules are checked by the registry and message log
class ParticipantIn(BaseModel):
    name: Optional[str] = None


class MessageIn(BaseModel):
    to: Optional[str] = None
    text: Optional[str] = None
    type: Optional[str] = None
