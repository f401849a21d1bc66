"""Runtime retry options for a single ``retry`` invocation.

Unlike :class:`retri.domain.config.RetryConfig` (the declarative, file-backed
policy), these options may carry callables, a cancellation source, a clock and
a shared circuit breaker state.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, InstanceOf, field_validator

from retri.domain.models.cancellation import CancellationSource
from retri.domain.models.circuit_breaker import CircuitBreakerState
from retri.domain.models.clock import Clock, SystemClock
from retri.domain.models.delay import ComputedDelay, FixedDelay, JitterMode


class CircuitBreakerOptions(BaseModel):
    """Circuit breaker wiring for a retry invocation.

    Attributes:
        failure_threshold: Consecutive failures that trip the breaker
        cooldown: Seconds the breaker blocks attempts once tripped
        state: Caller-owned state, shared by identity (never copied)
    """

    failure_threshold: int = Field(..., gt=0)
    cooldown: float = Field(..., ge=0.0)
    state: InstanceOf[CircuitBreakerState]

    model_config = ConfigDict(frozen=True, extra="forbid")


class RetryOptions(BaseModel):
    """Options recognised by :func:`retri.retry`.

    Attributes:
        retries: Retries beyond the initial attempt
        delay: Seconds before the first retry, or a function of the 0-based
            attempt index returning seconds
        factor: Backoff multiplier for a fixed delay
        max_delay: Upper clamp on the wait, applied after jitter
        jitter: Jitter mode (``none``, ``full``, ``equal``; ``True`` means full)
        timeout: Per-attempt timeout in seconds
        max_duration: Budget in seconds measured from the first attempt
        cancellation: Cancellation source polled before attempts and during waits
        retry_on: Predicate ``(error, attempt) -> bool`` (may be async)
        on_retry: Observer ``(error, attempt, next_delay)`` called before each wait
        circuit_breaker: Optional circuit breaker wiring
        clock: Time source for elapsed time, cooldowns and waits
    """

    retries: int = Field(3, ge=0)
    delay: Any = Field(0.1, validate_default=True)
    factor: float = Field(2.0, gt=0.0)
    max_delay: Optional[float] = Field(None, ge=0.0)
    jitter: JitterMode = Field(JitterMode.NONE, validate_default=True)
    timeout: Optional[float] = Field(None, gt=0.0)
    max_duration: Optional[float] = Field(None, ge=0.0)
    cancellation: Optional[Any] = None
    retry_on: Optional[Callable[..., Any]] = None
    on_retry: Optional[Callable[..., Any]] = None
    circuit_breaker: Optional[CircuitBreakerOptions] = None
    clock: InstanceOf[Clock] = Field(default_factory=SystemClock)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("delay", mode="before")
    @classmethod
    def _normalise_delay(cls, value: Any) -> Any:
        if isinstance(value, (FixedDelay, ComputedDelay)):
            return value
        if isinstance(value, bool):
            raise ValueError("delay must be a number of seconds or a callable")
        if isinstance(value, (int, float)):
            return FixedDelay(float(value))
        if callable(value):
            return ComputedDelay(value)
        raise ValueError("delay must be a number of seconds or a callable")

    @field_validator("jitter", mode="before")
    @classmethod
    def _normalise_jitter(cls, value: Any) -> Any:
        if value is None or value is False:
            return JitterMode.NONE
        if value is True:
            return JitterMode.FULL
        return value

    @field_validator("cancellation")
    @classmethod
    def _check_cancellation(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, CancellationSource):
            raise ValueError("cancellation must expose is_cancelled and an async wait()")
        return value
