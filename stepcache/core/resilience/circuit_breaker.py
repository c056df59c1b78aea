"""
Per-Fetcher Circuit Breaker for the Server Cache.

MECHANISM OF ACTION:
-------------------
Each cached fetcher owns one breaker. State lives in process memory; there is
no sharing across instances.

- **Counting**: every fetcher exception and every timeout increments
  ``consecutive_failures`` and stamps ``last_failure_at``.
- **Blocking**: a call is short-circuited while
  ``consecutive_failures >= failure_threshold`` and the last failure is more
  recent than ``cooldown_ms``.
- **Trial**: once the cooldown has elapsed the counter is reset to zero and
  the call goes through. A failed trial starts counting again from one.
- **Successes are not recorded.** The counter only returns to zero through a
  cooldown trial, so intermittent failures spread over time still
  accumulate towards the threshold.

Reported states:
    CLOSED     failures below threshold
    OPEN       threshold reached, cooldown running
    HALF_OPEN  threshold reached, cooldown elapsed (next call is the trial)
"""

from enum import Enum
from typing import Any

from stepcache.core.config.constants import Stage
from stepcache.core.interfaces.clock import Clock, system_clock
from stepcache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


class CircuitState(str, Enum):
    """Enumeration of possible circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class FetcherCircuitBreaker:
    """
    Consecutive-failure circuit breaker with a time-based cooldown.

    Args:
        name: Identifier used in logs (the fetcher's cache tag)
        failure_threshold: Failures before calls are blocked
        cooldown_ms: Milliseconds after the last failure before a trial call
        clock: Epoch-milliseconds callable
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        cooldown_ms: int = 30_000,
        clock: Clock | None = None,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.cooldown_ms = cooldown_ms
        self._clock = clock or system_clock
        self.consecutive_failures = 0
        self.last_failure_at: int | None = None

    def _cooldown_elapsed(self, now: int) -> bool:
        if self.last_failure_at is None:
            return True
        return now - self.last_failure_at >= self.cooldown_ms

    def allow_request(self) -> bool:
        """
        Decide whether the next fetch may run.

        Returns False while the circuit is open. When the threshold has been
        reached but the cooldown has elapsed, the counter is reset and the
        call is allowed as a trial.
        """
        if self.consecutive_failures < self.failure_threshold:
            return True

        now = self._clock()
        if not self._cooldown_elapsed(now):
            return False

        log_stage(
            logger,
            Stage.CIRCUIT_BREAKER,
            "Cooldown elapsed, allowing trial request",
            breaker=self.name,
            failures=self.consecutive_failures,
        )
        self.consecutive_failures = 0
        return True

    def record_failure(self) -> None:
        self.consecutive_failures += 1
        self.last_failure_at = self._clock()

        if self.consecutive_failures == self.failure_threshold:
            log_stage(
                logger,
                Stage.CIRCUIT_BREAKER,
                "Circuit tripped",
                level="warning",
                breaker=self.name,
                failures=self.consecutive_failures,
                cooldown_ms=self.cooldown_ms,
            )

    @property
    def state(self) -> CircuitState:
        if self.consecutive_failures < self.failure_threshold:
            return CircuitState.CLOSED
        if self._cooldown_elapsed(self._clock()):
            return CircuitState.HALF_OPEN
        return CircuitState.OPEN

    def snapshot(self) -> dict[str, Any]:
        """Point-in-time copy of the breaker state for health payloads."""
        return {
            "state": self.state.value,
            "consecutive_failures": self.consecutive_failures,
            "last_failure_at": self.last_failure_at,
        }
