"""Delay sources and jitter modes"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable


class JitterMode(str, Enum):
    """Randomization applied to a computed delay before clamping"""

    NONE = "none"
    FULL = "full"  # uniform in [0, base)
    EQUAL = "equal"  # uniform in [base/2, base)


@dataclass(frozen=True)
class FixedDelay:
    """Fixed initial delay, multiplied by the backoff factor after each failure"""

    seconds: float

    def __post_init__(self):
        if self.seconds < 0:
            raise ValueError("delay must be non-negative")


@dataclass(frozen=True)
class ComputedDelay:
    """Delay computed fresh from the 0-based attempt index; never multiplied"""

    func: Callable[[int], float]

    def __call__(self, attempt: int) -> float:
        seconds = float(self.func(attempt))
        if seconds < 0:
            raise ValueError(f"delay function returned a negative delay for attempt {attempt}")
        return seconds
