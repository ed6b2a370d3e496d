"""
Circuit Breaker for the Remote Cache Layer.

This module implements an in-process circuit breaker that guards every call
to the remote store so that an unavailable Redis costs a cache miss instead of
a socket timeout on every request.

MECHANISM OF ACTION:
-------------------
1.  **Local State**:
    State lives in the process. Nothing is shared between instances; each
    process learns about remote failures from its own calls.

2.  **State Transitions**:
    - **CLOSED**: Healthy. Calls run.
      - On Failure: failure counter increments; at `failure_threshold` the
        circuit OPENS.
      - On Success: failure counter resets to 0.

    - **OPEN**: Remote considered down. Calls are short-circuited: `execute`
      returns the `CIRCUIT_OPEN` sentinel without invoking the operation and
      without raising.
      - After `recovery_timeout` seconds since the last failure, the next call
        moves the circuit to HALF_OPEN and runs as a trial.

    - **HALF_OPEN**: Probing mode.
      - On Success: trial successes increment; at `success_threshold` the
        circuit CLOSES.
      - On Failure: back to OPEN immediately, cooldown restarts.

3.  **No Retries**:
    A failed operation is recorded once and its exception re-raised. Callers
    (the remote cache wrapper) convert it into a miss.
"""

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from layercache.core.config.constants import (
    CB_FAILURE_THRESHOLD,
    CB_RECOVERY_TIMEOUT,
    CB_SUCCESS_THRESHOLD,
    CircuitState,
    Stage,
)
from layercache.core.logging.logger import get_logger, log_stage
from layercache.core.scheduling.clock import Clock, SystemClock

logger = get_logger(__name__)

T = TypeVar("T")


class _CircuitOpen:
    """Marker returned by CircuitBreaker.execute when the call was short-circuited."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "CIRCUIT_OPEN"

    def __bool__(self) -> bool:
        return False


CIRCUIT_OPEN = _CircuitOpen()


class CircuitBreaker:
    """
    Three-state circuit breaker for async operations.

    Usage:
        breaker = CircuitBreaker(name="redis")
        result = await breaker.execute(lambda: client.get("user:42"))
        if result is CIRCUIT_OPEN:
            return None
    """

    def __init__(
        self,
        name: str = "redis",
        failure_threshold: int = CB_FAILURE_THRESHOLD,
        success_threshold: int = CB_SUCCESS_THRESHOLD,
        recovery_timeout: float = CB_RECOVERY_TIMEOUT,
        clock: Clock | None = None,
    ):
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        if success_threshold < 1:
            raise ValueError("success_threshold must be at least 1")

        self.name = name
        self.failure_threshold = failure_threshold
        self.success_threshold = success_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock or SystemClock()

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time: float | None = None
        self._short_circuited = 0

    @classmethod
    def from_settings(cls, settings, name: str = "redis", clock: Clock | None = None) -> "CircuitBreaker":
        """Build a breaker from the circuit_breaker settings section."""
        cb = settings.circuit_breaker
        return cls(
            name=name,
            failure_threshold=cb.CB_FAILURE_THRESHOLD,
            success_threshold=cb.CB_SUCCESS_THRESHOLD,
            recovery_timeout=cb.CB_RECOVERY_TIMEOUT,
            clock=clock,
        )

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def success_count(self) -> int:
        return self._success_count

    def _cooldown_elapsed(self) -> bool:
        if self._last_failure_time is None:
            return True
        return self._clock.now() - self._last_failure_time >= self.recovery_timeout

    def _transition(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        log_stage(
            logger,
            f"{Stage.CIRCUIT_BREAKER.value}.{new_state.value.upper()}",
            "Circuit state changed",
            level="warning" if new_state == CircuitState.OPEN else "info",
            breaker=self.name,
            from_state=old_state.value,
            to_state=new_state.value,
            failures=self._failure_count,
        )

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T | _CircuitOpen:
        """
        Run an operation through the breaker.

        Args:
            operation: Zero-argument coroutine function

        Returns:
            The operation's result, or CIRCUIT_OPEN when short-circuited

        Raises:
            Whatever the operation raises (after it is recorded as a failure)
        """
        if self._state == CircuitState.OPEN:
            if not self._cooldown_elapsed():
                self._short_circuited += 1
                return CIRCUIT_OPEN
            self._success_count = 0
            self._transition(CircuitState.HALF_OPEN)

        try:
            result = await operation()
        except Exception:
            self._on_failure()
            raise

        self._on_success()
        return result

    def _on_success(self) -> None:
        self._failure_count = 0
        if self._state == CircuitState.HALF_OPEN:
            self._success_count += 1
            if self._success_count >= self.success_threshold:
                self._success_count = 0
                self._transition(CircuitState.CLOSED)

    def _on_failure(self) -> None:
        self._failure_count += 1
        self._last_failure_time = self._clock.now()

        if self._state == CircuitState.HALF_OPEN:
            self._success_count = 0
            self._transition(CircuitState.OPEN)
            return

        logger.debug(
            "Circuit recorded failure",
            breaker=self.name,
            failures=self._failure_count,
            threshold=self.failure_threshold,
        )
        if self._state == CircuitState.CLOSED and self._failure_count >= self.failure_threshold:
            self._transition(CircuitState.OPEN)

    def reset(self) -> None:
        """Force the circuit CLOSED and clear all counters."""
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time = None
        if self._state != CircuitState.CLOSED:
            self._transition(CircuitState.CLOSED)

    def stats(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "state": self._state.value,
            "failure_count": self._failure_count,
            "success_count": self._success_count,
            "failure_threshold": self.failure_threshold,
            "success_threshold": self.success_threshold,
            "recovery_timeout": self.recovery_timeout,
            "last_failure_time": self._last_failure_time,
            "short_circuited": self._short_circuited,
        }
