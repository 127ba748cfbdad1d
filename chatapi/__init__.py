# chatapi/__init__.py
from .errors import (
    ChatError,
    ConflictError,
    NotFoundError,
    StoreError,
    UnknownSenderError,
    ValidationError,
)
from .main import create_app
from .messages import MessageLog
from .registry import ParticipantRegistry
from .settings import ChatSettings
from .store import ChatStore
from .sweeper import run_sweeper, sweep

__all__ = [
    "ChatError",
    "ChatSettings",
    "ChatStore",
    "ConflictError",
    "MessageLog",
    "NotFoundError",
    "ParticipantRegistry",
    "StoreError",
    "UnknownSenderError",
    "ValidationError",
    "create_app",
    "run_sweeper",
    "sweep",
]
