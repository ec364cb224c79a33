import logging
import time
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class CircuitOpenError(Exception):
    def __init__(self, name: str, retry_after: float):
        super().__init__(
            f"CircuitBreaker[{name}]: still open, retry after {retry_after:.1f}s"
        )
        self.retry_after = retry_after


class CircuitBreaker:
    """Stops calling a failing dependency for a cooling-off period.

    Failures are counted per breaker; once ``failure_threshold`` consecutive
    calls have failed the circuit opens and calls fail fast with
    ``CircuitOpenError``. After the recovery time one trial call is let
    through (half-open); success closes the circuit again. The recovery
    time doubles for every failure past the threshold, up to
    ``max_recovery_time``. Failed calls are never retried.
    """

    def __init__(
        self,
        name: str = "default",
        failure_threshold: int = 3,
        base_recovery_time: int = 10,
        max_recovery_time: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.failure_count = 0
        self.failure_threshold = failure_threshold
        self.base_recovery_time = base_recovery_time
        self.max_recovery_time = max_recovery_time
        self.last_failure_time = 0.0
        self.state = "CLOSED"
        self.clock = clock

    @property
    def current_recovery_time(self):
        return min(
            self.base_recovery_time
            * (2 ** max(self.failure_count - self.failure_threshold, 0)),
            self.max_recovery_time,
        )

    def _open(self):
        self.state = "OPEN"
        self.last_failure_time = self.clock()
        logger.warning(
            f"Circuit {self.name} opened after {self.failure_count} failures."
        )

    def _half_open(self):
        self.state = "HALF_OPEN"
        logger.info(f"Circuit {self.name} half-open: testing...")

    def _close(self):
        if self.state != "CLOSED":
            logger.info(f"Circuit {self.name} closed: stable again.")
        self.state = "CLOSED"
        self.failure_count = 0

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        if self.state == "OPEN":
            elapsed = self.clock() - self.last_failure_time
            cooldown = self.current_recovery_time
            if elapsed < cooldown:
                raise CircuitOpenError(self.name, cooldown - elapsed)
            self._half_open()

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            self.failure_count += 1
            logger.error(
                f"CircuitBreaker {self.name} call failed ({self.failure_count}): {e}"
            )
            if self.state == "HALF_OPEN" or self.failure_count >= self.failure_threshold:
                self._open()
            raise

        self._close()
        return result
