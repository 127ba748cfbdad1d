# chatapi/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping

from dotenv import load_dotenv

from .models import BROADCAST


def _normalise_string(value: str | None, *, default: str) -> str:
    if value is None:
        return default

    trimmed = value.strip()
    return trimmed or default


def _positive_number(source: Mapping[str, str], key: str, default: float) -> float:
    raw = source.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        parsed = float(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{key} must be a positive number.") from exc
    if parsed <= 0:
        raise ValueError(f"{key} must be greater than zero.")
    return parsed


# DATABASE_URL is the only required variable
@dataclass(frozen=True)
class ChatSettings:
    database_url: str
    sweep_interval: float = 15.0
    stale_threshold: float = 10.0
    broadcast: str = BROADCAST
    cors_origins: tuple[str, ...] = ("*",)
    echo: bool = False
    host: str = "0.0.0.0"
    port: int = 5000

    @property
    def threshold(self) -> timedelta:
        return timedelta(seconds=self.stale_threshold)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ChatSettings":
        # Load .env only when reading the real environment
        if environ is None:
            load_dotenv()
            environ = os.environ

        database_url = (environ.get("DATABASE_URL") or "").strip()
        if not database_url:
            raise ValueError("DATABASE_URL must be set.")

        origins = _normalise_string(environ.get("CHAT_CORS_ORIGINS"), default="*")
        port = int(_positive_number(environ, "CHAT_PORT", 5000))

        return cls(
            database_url=database_url,
            sweep_interval=_positive_number(environ, "CHAT_SWEEP_INTERVAL", 15.0),
            stale_threshold=_positive_number(environ, "CHAT_STALE_THRESHOLD", 10.0),
            broadcast=_normalise_string(
                environ.get("CHAT_BROADCAST_TOKEN"), default=BROADCAST
            ),
            cors_origins=tuple(
                origin.strip() for origin in origins.split(",") if origin.strip()
            ),
            echo=_normalise_string(environ.get("CHAT_DB_ECHO"), default="false").lower()
            in ("1", "true", "yes"),
            host=_normalise_string(environ.get("CHAT_HOST"), default="0.0.0.0"),
            port=port,
        )
