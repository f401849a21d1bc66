"""Exceptions raised by the retry engine and circuit breaker guard"""

from typing import Optional


class RetriError(Exception):
    """Base class for every failure produced by retri itself"""


class RetryFailedError(RetriError):
    """Raised when a retry sequence ends without success.

    Covers exhaustion of the retry budget, a predicate veto and an elapsed
    deadline. The most recent operation failure is both ``last_error`` and
    ``__cause__``.

    Attributes:
        last_error: Exception raised by the final attempt
        attempts: Number of attempts made (1-based)
        elapsed_ms: Milliseconds since the first attempt started
    """

    def __init__(self, last_error: BaseException, attempts: int, elapsed_ms: int):
        super().__init__(f"Retry failed after {attempts} attempts ({elapsed_ms}ms)")
        self.last_error = last_error
        self.attempts = attempts
        self.elapsed_ms = elapsed_ms
        self.__cause__ = last_error


class CircuitOpenError(RetriError):
    """Raised instead of attempting anything while the breaker is open"""

    def __init__(
        self,
        message: str = "Circuit breaker is open",
        cooldown_remaining: Optional[float] = None,
    ):
        super().__init__(message)
        self.cooldown_remaining = cooldown_remaining


class RetryCancelledError(RetriError):
    """Raised when the cancellation source fires before an attempt or during a wait

    Attributes:
        reason: Reason given by the cancellation source, if it exposes one
    """

    def __init__(self, reason: Optional[str] = None):
        message = f"Retry cancelled: {reason}" if reason else "Retry cancelled"
        super().__init__(message)
        self.reason = reason


class AttemptTimeoutError(RetriError, TimeoutError):
    """A single attempt did not settle within the per-attempt timeout"""

    def __init__(self, timeout: float):
        super().__init__("Operation timed out")
        self.timeout = timeout


class RetryObserverError(RetriError):
    """The ``on_retry`` observer raised; the original exception is the cause"""

    def __init__(self, attempt: int, error: BaseException):
        super().__init__(f"on_retry observer failed after attempt {attempt}: {error}")
        self.attempt = attempt
        self.__cause__ = error
