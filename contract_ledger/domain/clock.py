"""
Current-time sources.

Every lifecycle operation takes its notion of "now" from an injected clock so
that tests (and replays) can control time. Timestamps are timezone-aware UTC.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current instant as an aware datetime."""
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock:
    """
    Clock that only moves when told to.

    Thread-safe so it can be shared between a test body and a background
    refresher.
    """

    def __init__(self, start: Optional[datetime] = None) -> None:
        self._now = ensure_aware(start) if start else datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, delta: timedelta = timedelta(seconds=1)) -> datetime:
        with self._lock:
            self._now = self._now + delta
            return self._now

    def set(self, instant: datetime) -> None:
        with self._lock:
            self._now = ensure_aware(instant)


def ensure_aware(value: datetime) -> datetime:
    """Reject naive datetimes; comparisons between naive and aware values are ambiguous."""
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValueError(f"Timestamp must be timezone-aware: {value!r}")
    return value


DEFAULT_CLOCK: Clock = SystemClock()

__all__ = ["Clock", "DEFAULT_CLOCK", "ManualClock", "SystemClock", "ensure_aware"]
