"""retri - retry async operations with backoff, deadlines and circuit breaking"""

from retri.domain.errors import (
    AttemptTimeoutError,
    CircuitOpenError,
    RetriError,
    RetryCancelledError,
    RetryFailedError,
    RetryObserverError,
)
from retri.domain.models.cancellation import CancellationSource, CancellationToken
from retri.domain.models.circuit_breaker import (
    BreakerStatus,
    CircuitBreakerState,
    create_circuit_breaker_state,
)
from retri.domain.models.clock import Clock, SystemClock
from retri.domain.models.delay import ComputedDelay, FixedDelay, JitterMode
from retri.domain.models.retry_options import CircuitBreakerOptions, RetryOptions
from retri.infrastructure.circuit_breaker import CircuitBreakerGuard
from retri.infrastructure.retry import retry, with_retry

__all__ = [
    "AttemptTimeoutError",
    "BreakerStatus",
    "CancellationSource",
    "CancellationToken",
    "CircuitBreakerGuard",
    "CircuitBreakerOptions",
    "CircuitBreakerState",
    "CircuitOpenError",
    "Clock",
    "ComputedDelay",
    "FixedDelay",
    "JitterMode",
    "RetriError",
    "RetryCancelledError",
    "RetryFailedError",
    "RetryObserverError",
    "RetryOptions",
    "SystemClock",
    "create_circuit_breaker_state",
    "retry",
    "with_retry",
]
