"""
Async circuit breaker guarding calls to external providers.

Used as an async context manager around a provider request. Failures of the
configured exception types are counted inside a sliding time window; once the
failure ratio crosses the threshold the circuit opens and further calls fail fast
with CircuitBroken until ``broken_time`` has passed. The first call after that
runs half-open as the only trial request; other calls keep failing fast until
its outcome closes or reopens the circuit.
"""

import asyncio
import time
from enum import Enum
from typing import List, Optional, Type

import httpx
import structlog

logger = structlog.get_logger()


class CircuitBreakerState(Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitBroken(Exception):
    """Raised when the circuit is open and the call is rejected without trying."""
    pass


class CircuitBreaker:
    def __init__(
        self,
        error_ratio: float = 0.5,
        window_seconds: float = 10,
        exceptions: Optional[List[Type[Exception]]] = None,
        broken_time: float = 30,
        min_requests: int = 5,
        name: str = "default",
    ):
        self.error_ratio = error_ratio
        self.window_seconds = window_seconds
        self.exceptions = tuple(exceptions or [httpx.RequestError, httpx.HTTPStatusError])
        self.broken_time = broken_time
        self.min_requests = min_requests
        self.name = name

        self.state = CircuitBreakerState.CLOSED
        self.failures = 0
        self.successes = 0
        self.last_failure_time = 0.0
        self.window_started = time.monotonic()
        self._trial_task: Optional[asyncio.Task] = None

    async def __aenter__(self):
        if self.state == CircuitBreakerState.HALF_OPEN:
            # One trial request at a time; everyone else fails fast until it settles
            raise CircuitBroken(f"Circuit breaker '{self.name}' is HALF_OPEN with a trial request in flight.")
        if self.state == CircuitBreakerState.OPEN:
            if time.monotonic() - self.last_failure_time < self.broken_time:
                raise CircuitBroken(f"Circuit breaker '{self.name}' is OPEN.")
            self.state = CircuitBreakerState.HALF_OPEN
            self._trial_task = asyncio.current_task()
            logger.warning("CircuitBreaker state changed to HALF_OPEN", name=self.name)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        counted_failure = exc_val is not None and isinstance(exc_val, self.exceptions)

        if self.state == CircuitBreakerState.HALF_OPEN:
            if asyncio.current_task() is not self._trial_task:
                # Started before the circuit opened; only the trial decides the outcome
                return False
            self._trial_task = None
            if counted_failure:
                self._open()
                logger.error("CircuitBreaker reopened after HALF_OPEN failure", name=self.name)
            else:
                self._reset()
                logger.info("CircuitBreaker closed after HALF_OPEN success", name=self.name)
            return False

        now = time.monotonic()
        if now - self.window_started > self.window_seconds:
            self.failures = 0
            self.successes = 0
            self.window_started = now

        if counted_failure:
            self.failures += 1
            self.last_failure_time = now
            logger.warning("CircuitBreaker recorded a failure", name=self.name, failures=self.failures)
        elif exc_val is None:
            self.successes += 1

        total = self.failures + self.successes
        if total >= self.min_requests and self.failures / total >= self.error_ratio:
            self._open()
            logger.error("CircuitBreaker state changed to OPEN due to high error ratio",
                         name=self.name, failures=self.failures, total_requests=total)
        return False

    @property
    def state_value(self) -> float:
        """Numeric state for the gauge: 0=CLOSED, 0.5=HALF_OPEN, 1=OPEN"""
        return {
            CircuitBreakerState.CLOSED: 0.0,
            CircuitBreakerState.HALF_OPEN: 0.5,
            CircuitBreakerState.OPEN: 1.0,
        }[self.state]

    def _open(self):
        self._trial_task = None
        self.state = CircuitBreakerState.OPEN
        self.last_failure_time = time.monotonic()

    def _reset(self):
        self.state = CircuitBreakerState.CLOSED
        self.failures = 0
        self.successes = 0
        self.last_failure_time = 0.0
        self.window_started = time.monotonic()
