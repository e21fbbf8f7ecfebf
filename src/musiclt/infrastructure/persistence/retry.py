# Hey future me - a whole unit of work gets another go for exactly two reasons:
#
# 1. SQLite said "database is locked" / "busy". Some other writer holds the lock; it lets go.
# 2. ConcurrentModificationError. One of the rows we read was saved by someone else before
#    we wrote it. A fresh transaction re-reads the snapshot and reconciles from scratch.
#
# Integrity errors, missing tables, refused connections and plain bugs fail on the first try.
#
#   saved = await execute_with_retry(lambda: self._save_once(artist), max_attempts=3)
#
# The callable MUST open its own transaction on every call. Re-running inside the failed
# transaction just fails again.
"""Retrying units of work on SQLite lock errors and version conflicts."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
from typing import Any, ClassVar, TypeVar

from sqlalchemy.exc import OperationalError

from musiclt.domain.exceptions import ConcurrentModificationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class DatabaseLockMetrics:
    """Process-wide counters behind /api/health/db-metrics."""

    attempts: int = 0
    successes: int = 0
    failures: int = 0
    lock_retries: int = 0
    conflict_retries: int = 0
    total_wait_time_ms: float = 0.0
    max_wait_time_ms: float = 0.0
    last_event: float | None = None

    _instance: ClassVar[DatabaseLockMetrics | None] = None

    @classmethod
    def get_instance(cls) -> DatabaseLockMetrics:
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def record_attempt(self) -> None:
        self.attempts += 1

    def record_success(self, wait_time_ms: float = 0.0) -> None:
        """Count a finished unit of work and how long it spent backing off."""
        self.successes += 1
        self.total_wait_time_ms += wait_time_ms
        self.max_wait_time_ms = max(self.max_wait_time_ms, wait_time_ms)
        if wait_time_ms:
            self.last_event = time.time()

    def record_failure(self) -> None:
        self.failures += 1
        self.last_event = time.time()
        logger.warning("Unit of work failed (%d failures so far)", self.failures)

    def record_retry(self, conflict: bool) -> None:
        if conflict:
            self.conflict_retries += 1
        else:
            self.lock_retries += 1

    def get_stats(self) -> dict[str, Any]:
        stats = asdict(self)
        last_event = stats.pop("last_event")
        stats["total_wait_time_ms"] = round(self.total_wait_time_ms, 2)
        stats["max_wait_time_ms"] = round(self.max_wait_time_ms, 2)
        stats["failure_rate"] = (
            round(self.failures / self.attempts, 4) if self.attempts else 0
        )
        stats["last_event_timestamp"] = last_event
        return stats

    def reset(self) -> None:
        """Zero every counter (tests share the singleton)."""
        for name, value in asdict(DatabaseLockMetrics()).items():
            setattr(self, name, value)


def is_lock_error(exception: BaseException) -> bool:
    """True for SQLite's "database is locked" and "database is busy"."""
    if not isinstance(exception, OperationalError):
        return False
    message = str(exception).lower()
    return any(word in message for word in ("locked", "busy"))


def is_retryable_error(exception: BaseException) -> bool:
    return isinstance(exception, ConcurrentModificationError) or is_lock_error(exception)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    initial_delay: float = 0.1,
    max_delay: float = 5.0,
    backoff_factor: float = 2.0,
    track_metrics: bool = True,
) -> T:
    """Run a unit of work, re-running it on lock errors and version conflicts.

    Waits grow exponentially between attempts (0.1s, 0.2s, 0.4s, ...) up to max_delay.

    Args:
        operation: Async callable running one complete transaction per call
        max_attempts: Total number of calls, the first one included
        initial_delay: Seconds to wait before the second call
        max_delay: Upper bound for a single wait
        backoff_factor: Growth of the wait per attempt
        track_metrics: Record into DatabaseLockMetrics

    Raises:
        Non-retryable errors straight away, the last retryable one when attempts run out.
    """
    metrics = DatabaseLockMetrics.get_instance() if track_metrics else None
    if metrics:
        metrics.record_attempt()

    delay = initial_delay
    waited_ms = 0.0
    attempt = 0
    while True:
        attempt += 1
        try:
            result = await operation()
        except Exception as e:
            retryable = is_retryable_error(e)
            if not retryable or attempt >= max_attempts:
                if metrics:
                    metrics.record_failure()
                if retryable:
                    logger.error("Giving up after %d attempts: %s", attempt, e)
                raise

            conflict = isinstance(e, ConcurrentModificationError)
            if metrics:
                metrics.record_retry(conflict)
            logger.warning(
                "%s on attempt %d/%d, next try in %.1fs",
                "Version conflict" if conflict else "Database locked",
                attempt,
                max_attempts,
                delay,
            )
            await asyncio.sleep(delay)
            waited_ms += delay * 1000
            delay = min(delay * backoff_factor, max_delay)
        else:
            if metrics:
                metrics.record_success(waited_ms)
            return result
