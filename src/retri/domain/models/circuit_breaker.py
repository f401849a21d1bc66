"""Circuit breaker state - shared, caller-owned failure bookkeeping"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class BreakerStatus(str, Enum):
    """Derived breaker status; never stored, recomputed on every check"""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerState:
    """Mutable state shared by identity across retry invocations.

    ``opened_at`` is a clock reading (seconds) set when the breaker trips and
    cleared on success. Its presence does not by itself block attempts; the
    cooldown is rechecked against the clock on every consultation.
    """

    consecutive_failures: int = 0
    opened_at: Optional[float] = None

    def __post_init__(self):
        """Validate state data"""
        if self.consecutive_failures < 0:
            raise ValueError("consecutive_failures must be >= 0")


def create_circuit_breaker_state() -> CircuitBreakerState:
    """Create an empty (closed) breaker state for the caller to hold"""
    return CircuitBreakerState()
