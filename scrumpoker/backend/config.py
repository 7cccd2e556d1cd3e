"""Configuration helpers for backend runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_ALLOWED_ORIGINS = ("https://poker-scrum-free.netlify.app",)


@dataclass(frozen=True)
class BackendSettings:
    host: str
    port: int
    room_retention_seconds: int
    sweep_interval_seconds: float
    allowed_origins: tuple[str, ...]
    log_level: str


def _parse_origins(raw: str | None) -> tuple[str, ...]:
    if raw is None:
        return DEFAULT_ALLOWED_ORIGINS
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


def load_settings() -> BackendSettings:
    port_raw = os.getenv("SCRUMPOKER_PORT", "3000")
    return BackendSettings(
        host=os.getenv("SCRUMPOKER_HOST", "127.0.0.1"),
        port=int(port_raw),
        room_retention_seconds=int(os.getenv("SCRUMPOKER_ROOM_RETENTION_SECONDS", str(24 * 60 * 60))),
        sweep_interval_seconds=float(os.getenv("SCRUMPOKER_SWEEP_INTERVAL_SECONDS", str(60 * 60))),
        allowed_origins=_parse_origins(os.getenv("SCRUMPOKER_ALLOWED_ORIGINS")),
        log_level=os.getenv("SCRUMPOKER_LOG_LEVEL", "INFO").upper(),
    )
