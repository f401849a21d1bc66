"""Circuit breaker guard over caller-owned state.

The guard holds no state of its own: every decision is made from the shared
:class:`CircuitBreakerState` and the clock. State updates are plain
read-modify-write; concurrent invocations sharing one state may interleave
increments, so trip timing under concurrency is approximate.
"""

from __future__ import annotations

import logging

from retri.domain.errors import CircuitOpenError
from retri.domain.models.circuit_breaker import BreakerStatus, CircuitBreakerState
from retri.domain.models.clock import Clock
from retri.domain.models.retry_options import CircuitBreakerOptions

logger = logging.getLogger(__name__)


class CircuitBreakerGuard:
    """Open/half-open/closed decisions for one retry invocation"""

    def __init__(self, options: CircuitBreakerOptions, clock: Clock):
        self.failure_threshold = options.failure_threshold
        self.cooldown = options.cooldown
        self.state: CircuitBreakerState = options.state
        self.clock = clock

    def status(self) -> BreakerStatus:
        """Derive the current status from ``opened_at`` and the cooldown"""
        opened_at = self.state.opened_at
        if opened_at is None:
            return BreakerStatus.CLOSED
        if self.clock.now() - opened_at < self.cooldown:
            return BreakerStatus.OPEN
        return BreakerStatus.HALF_OPEN

    def check(self) -> None:
        """Reject the invocation while the cooldown window is running.

        Once the cooldown has elapsed the check passes without touching the
        state, letting one invocation probe the dependency.

        Raises:
            CircuitOpenError: If the breaker is open
        """
        opened_at = self.state.opened_at
        if opened_at is None:
            return
        elapsed = self.clock.now() - opened_at
        if elapsed < self.cooldown:
            remaining = self.cooldown - elapsed
            logger.debug(f"Circuit breaker is open, {remaining:.3f}s of cooldown remaining")
            raise CircuitOpenError("Circuit breaker is open", remaining)
        logger.debug("Circuit breaker cooldown elapsed, allowing probe")

    def record_success(self) -> None:
        """Close the breaker"""
        if self.state.consecutive_failures or self.state.opened_at is not None:
            logger.debug("Circuit breaker reset after success")
        self.state.consecutive_failures = 0
        self.state.opened_at = None

    def record_failure(self) -> None:
        """Count a failure and trip once the threshold is reached.

        Every failure at or above the threshold stamps a fresh ``opened_at``,
        restarting the cooldown window.
        """
        self.state.consecutive_failures += 1
        if self.state.consecutive_failures >= self.failure_threshold:
            self.state.opened_at = self.clock.now()
            logger.warning(
                f"Circuit breaker opened after {self.state.consecutive_failures} consecutive failures "
                f"(cooldown {self.cooldown}s)"
            )
