"""Audit timestamp and identifier issuing."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Callable, Sequence

import pendulum

from ..schemas import ApplicationStatus, AuditLog

NowProvider = Callable[[], datetime]

_TICK = timedelta(microseconds=1)


def utc_now() -> datetime:
    return pendulum.now("UTC")


def new_entry_id() -> str:
    return f"log_{uuid.uuid4().hex}"


def issue_timestamps(
    history: Sequence[AuditLog],
    count: int,
    now: datetime,
) -> list[datetime]:
    """Return ``count`` timestamps for entries about to be appended.

    The first is never earlier than the last entry already in ``history``;
    each following timestamp is strictly later than its predecessor.
    """
    if count < 1:
        return []
    current = now
    if history and history[-1].timestamp > current:
        current = history[-1].timestamp
    stamps = [current]
    for _ in range(count - 1):
        current = current + _TICK
        stamps.append(current)
    return stamps


def implied_status(history: Sequence[AuditLog]) -> ApplicationStatus | None:
    """Status set by the most recent state-changing entry."""
    for entry in reversed(history):
        if entry.status is not None:
            return entry.status
    return None


def make_now_provider(timezone: str | None = None) -> NowProvider:
    """Clock returning aware timestamps in ``timezone`` (UTC by default)."""
    zone = timezone or "UTC"

    def now() -> datetime:
        return pendulum.now(zone)

    return now
