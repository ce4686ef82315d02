from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, TypeVar

from shudenout.core.errors import BreakerOpenError
from shudenout.models.domain import BreakerState

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class BreakerConfig:
    threshold: int = 3
    cooldown_ms: int = 30000


class CircuitBreaker:
    """
    Consecutive-failure circuit breaker.

    CLOSED counts consecutive failures and opens at the threshold. OPEN rejects
    every call until cooldown_ms has passed since the last failure; the first
    call after that moves to HALF_OPEN (failure counter reset) and is let
    through as a probe. Only one probe runs at a time. A successful probe
    closes the breaker; failed probes count toward the threshold again.
    """

    def __init__(
        self,
        name: str,
        config: BreakerConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.config = config
        self._clock = clock
        self._lock = threading.Lock()
        self._state = BreakerState.closed
        self._failures = 0
        self._successes = 0
        self._last_failure_at = 0.0
        self._probe_in_flight = False

    @property
    def state(self) -> BreakerState:
        return self._state

    @property
    def failures(self) -> int:
        return self._failures

    def stats(self) -> Dict[str, object]:
        with self._lock:
            return {
                "state": self._state.value,
                "failures": self._failures,
                "successes": self._successes,
                "lastFailureTime": self._last_failure_at,
            }

    def execute(self, operation: Callable[[], T]) -> T:
        is_probe = self._admit()
        try:
            result = operation()
        except Exception:
            self._record_failure()
            raise
        else:
            self._record_success()
            return result
        finally:
            if is_probe:
                with self._lock:
                    self._probe_in_flight = False

    def reset(self) -> None:
        with self._lock:
            self._state = BreakerState.closed
            self._failures = 0
            self._successes = 0
            self._last_failure_at = 0.0
            self._probe_in_flight = False
        logger.info("Circuit breaker [%s] reset", self.name)

    def _admit(self) -> bool:
        """Raise BreakerOpenError when the call must be rejected; return True for a probe."""
        with self._lock:
            if self._state == BreakerState.open:
                elapsed_ms = (self._clock() - self._last_failure_at) * 1000
                if elapsed_ms < self.config.cooldown_ms:
                    raise BreakerOpenError(self.name)
                self._state = BreakerState.half_open
                self._failures = 0
                logger.info("Circuit breaker [%s] half-open, probing", self.name)

            if self._state == BreakerState.half_open:
                if self._probe_in_flight:
                    raise BreakerOpenError(self.name)
                self._probe_in_flight = True
                return True
            return False

    def _record_success(self) -> None:
        with self._lock:
            self._successes += 1
            self._failures = 0
            if self._state == BreakerState.half_open:
                self._state = BreakerState.closed
                logger.info("Circuit breaker [%s] closed after successful probe", self.name)

    def _record_failure(self) -> None:
        with self._lock:
            self._failures += 1
            self._last_failure_at = self._clock()
            if self._failures >= self.config.threshold and self._state != BreakerState.open:
                self._state = BreakerState.open
                logger.warning(
                    "Circuit breaker [%s] opened after %d consecutive failures",
                    self.name,
                    self._failures,
                )
