"""
Periodic refresher for the cached active-aggregate projection.

The scheduler owns a daemon thread that wakes at wall-clock boundaries that
are multiples of the refresh interval (every 5 minutes by default: :00, :05,
:10 ...) and runs one refresh cycle. Cycles never overlap: a cycle requested
while another is running waits for it to finish. A failed cycle is logged and
discarded; the previous snapshot keeps being served and the next tick starts
over.

Usage:
    scheduler = ViewRefreshScheduler(projection)
    with scheduler:
        ...  # the projection is refreshed in the background
"""

from __future__ import annotations

import enum
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

from contract_ledger.domain.clock import DEFAULT_CLOCK, Clock
from contract_ledger.domain.errors import RefreshFailure
from contract_ledger.projection.abstract import ActiveAggregateProjection, RefreshResult
from contract_ledger.utils.logging import get_logger

log = get_logger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class RefreshState(str, enum.Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


def next_fire_time(now: datetime, interval: timedelta) -> datetime:
    """
    First boundary strictly after ``now`` that is a whole number of intervals
    since the Unix epoch.
    """
    if interval <= timedelta(0):
        raise ValueError(f"interval must be positive: {interval}")
    elapsed = now - _EPOCH
    return _EPOCH + (elapsed // interval + 1) * interval


class ViewRefreshScheduler:
    """
    Rebuilds a projection on a fixed wall-clock cadence.

    Parameters
    ----------
    projection : ActiveAggregateProjection
        Projection to rebuild each cycle.
    clock : Clock
        Source of the cycle's ``as_of`` instant and of the tick schedule.
    interval : timedelta
        Refresh period; also the staleness bound of the cached aggregator.
    """

    def __init__(
        self,
        projection: ActiveAggregateProjection,
        clock: Clock = DEFAULT_CLOCK,
        interval: timedelta = timedelta(minutes=5),
    ) -> None:
        if interval <= timedelta(0):
            raise ValueError(f"interval must be positive: {interval}")
        self._projection = projection
        self._clock = clock
        self.interval = interval

        self._cycle_lock = threading.Lock()
        self._state = RefreshState.IDLE
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.cycles_completed = 0
        self.cycles_failed = 0
        self.last_result: Optional[RefreshResult] = None
        self.last_error: Optional[RefreshFailure] = None

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_cycle(self) -> Optional[RefreshResult]:
        """
        Run one refresh as of the current instant.

        Returns the result, or None when the cycle failed. Never raises for a
        failing rebuild.
        """
        with self._cycle_lock:
            as_of = self._clock.now()
            self._state = RefreshState.REFRESHING
            started = time.perf_counter()
            log.info("[REFRESH START]", extra={"as_of": as_of.isoformat()})
            try:
                result = self._projection.rebuild(as_of)
            except Exception as exc:  # noqa: BLE001 - a failed cycle must not stop the refresher
                failure = RefreshFailure(as_of, str(exc))
                failure.__cause__ = exc
                self.last_error = failure
                self.cycles_failed += 1
                log.exception(
                    "[REFRESH FAILED] previous snapshot kept",
                    extra={"as_of": as_of.isoformat(), "error_type": type(exc).__name__},
                )
                return None
            finally:
                self._state = RefreshState.IDLE

            self.last_result = result
            self.cycles_completed += 1
            log.info(
                "[REFRESH SUCCESS]",
                extra={
                    "as_of": as_of.isoformat(),
                    "clients": result.clients,
                    "contracts": result.contracts,
                    "duration_seconds": round(time.perf_counter() - started, 3),
                },
            )
            return result

    def _run_loop(self) -> None:
        fire_at = next_fire_time(self._clock.now(), self.interval)
        while not self._stop.is_set():
            delay = (fire_at - self._clock.now()).total_seconds()
            if self._stop.wait(timeout=max(delay, 0.0)):
                break
            self.run_cycle()
            now = self._clock.now()
            fire_at = next_fire_time(fire_at, self.interval)
            if fire_at <= now:
                # Boundaries passed during a long cycle collapse into one immediate run.
                fire_at = now

    def start(self) -> None:
        """Start the background thread. Calling it on a running scheduler is a no-op."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run_loop, name="view-refresh-scheduler", daemon=True
        )
        self._thread.start()
        log.info(
            "Refresh scheduler started",
            extra={"interval_seconds": self.interval.total_seconds()},
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the background thread, letting a running cycle finish."""
        self._stop.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout=timeout)
            self._thread = None
            log.info("Refresh scheduler stopped")

    def __enter__(self) -> "ViewRefreshScheduler":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


__all__ = ["RefreshState", "ViewRefreshScheduler", "next_fire_time"]
