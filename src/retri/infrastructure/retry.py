"""Retry engine built on tenacity's ``AsyncRetrying``.

tenacity sequences the attempts; the hooks of :class:`_RetryRun` supply the
policy: breaker bookkeeping and predicate consultation around each attempt,
the stop decision, delay computation, observer notification and a wait that
the cancellation source can interrupt.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import math
import random
from typing import Any, Awaitable, Callable, Optional, TypeVar

from tenacity import AsyncRetrying, RetryCallState

from retri.domain.errors import (
    AttemptTimeoutError,
    RetryCancelledError,
    RetryFailedError,
    RetryObserverError,
)
from retri.domain.models.cancellation import CancellationSource
from retri.domain.models.clock import Clock
from retri.domain.models.delay import ComputedDelay, FixedDelay, JitterMode
from retri.domain.models.retry_options import RetryOptions
from retri.infrastructure.circuit_breaker import CircuitBreakerGuard

logger = logging.getLogger(__name__)

T = TypeVar("T")
Operation = Callable[[int], Awaitable[T]]


def apply_jitter(amount: float, mode: JitterMode) -> float:
    """Randomize a delay according to the jitter mode"""
    if mode == JitterMode.FULL:
        return random.random() * amount
    if mode == JitterMode.EQUAL:
        return amount / 2 + random.random() * (amount / 2)
    return amount


def _cancelled(cancellation: CancellationSource) -> RetryCancelledError:
    return RetryCancelledError(getattr(cancellation, "reason", None))


async def wait_or_cancel(
    clock: Clock, seconds: float, cancellation: Optional[CancellationSource]
) -> None:
    """Sleep on ``clock`` unless the cancellation source fires first.

    Raises:
        RetryCancelledError: If cancellation is signaled before or during the wait
    """
    if cancellation is None:
        await clock.sleep(seconds)
        return
    if cancellation.is_cancelled:
        raise _cancelled(cancellation)

    sleeper = asyncio.ensure_future(clock.sleep(seconds))
    watcher = asyncio.ensure_future(cancellation.wait())
    try:
        done, _ = await asyncio.wait({sleeper, watcher}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (sleeper, watcher):
            if not task.done():
                task.cancel()
    if watcher in done:
        raise _cancelled(cancellation)
    sleeper.result()


def _discard_outcome(task: asyncio.Future[Any]) -> None:
    # Outcome of an abandoned attempt is consumed here, never reported
    if not task.cancelled():
        task.exception()


async def _settle(value: Any, timeout: Optional[float]) -> Any:
    """Await an attempt's result, racing it against ``timeout`` when set.

    The losing operation task is cancelled; whether the operation honours
    the cancellation is up to the operation.
    """
    if not inspect.isawaitable(value):
        return value
    if timeout is None:
        return await value

    task = asyncio.ensure_future(value)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        task.cancel()
        task.add_done_callback(_discard_outcome)
        raise
    if task not in done:
        task.cancel()
        task.add_done_callback(_discard_outcome)
        raise AttemptTimeoutError(timeout)
    return task.result()


class _RetryRun:
    """State of one ``retry`` invocation"""

    def __init__(self, operation: Operation, options: RetryOptions):
        self.operation = operation
        self.options = options
        self.clock = options.clock
        self.guard: Optional[CircuitBreakerGuard] = None
        if options.circuit_breaker is not None:
            self.guard = CircuitBreakerGuard(options.circuit_breaker, self.clock)

        self.attempt = 0
        self.started_at = 0.0
        self.elapsed = 0.0
        self.last_error: Optional[Exception] = None
        self.final = False  # budget or deadline used up
        self.vetoed = False  # retry_on returned a falsy verdict
        self.aborted: Optional[Exception] = None  # retry_on itself raised
        self.next_delay = 0.0
        self.running_delay = options.delay.seconds if isinstance(options.delay, FixedDelay) else 0.0

    async def run(self) -> Any:
        if self.guard is not None:
            self.guard.check()

        self.started_at = self.clock.now()
        retrying = AsyncRetrying(
            sleep=self._sleep,
            stop=self._stop,
            wait=self._wait,
            retry=self._should_retry,
            before=self._before_attempt,
            before_sleep=self._before_sleep,
            retry_error_callback=self._give_up,
        )
        try:
            return await retrying(self._attempt)
        except Exception as exc:
            if self.vetoed and exc is self.last_error:
                logger.debug(f"Retry vetoed after attempt {self.attempt}: {exc}")
                raise self._failure() from exc
            raise

    async def _attempt(self) -> Any:
        attempt = self.attempt
        try:
            result = await _settle(self.operation(attempt), self.options.timeout)
        except Exception as exc:
            self._record_failure(exc, attempt)
            await self._consult_predicate(exc, attempt)
            raise
        if self.guard is not None:
            self.guard.record_success()
        return result

    def _record_failure(self, exc: Exception, attempt: int) -> None:
        self.last_error = exc
        if self.guard is not None:
            self.guard.record_failure()
        self.elapsed = self.clock.now() - self.started_at

        max_duration = self.options.max_duration
        self.final = attempt >= self.options.retries or (
            max_duration is not None and self.elapsed >= max_duration
        )

    async def _consult_predicate(self, exc: Exception, attempt: int) -> None:
        retry_on = self.options.retry_on
        if retry_on is None:
            return
        try:
            verdict = retry_on(exc, attempt)
            if inspect.isawaitable(verdict):
                verdict = await verdict
        except Exception as err:
            self.aborted = err
            raise
        if not verdict:
            self.vetoed = True

    def _failure(self) -> RetryFailedError:
        return RetryFailedError(self.last_error, self.attempt + 1, round(self.elapsed * 1000))

    # tenacity hooks

    def _before_attempt(self, retry_state: RetryCallState) -> None:
        self.attempt = retry_state.attempt_number - 1
        cancellation = self.options.cancellation
        if cancellation is not None and cancellation.is_cancelled:
            logger.debug(f"Retry cancelled before attempt {self.attempt}")
            raise _cancelled(cancellation)

    def _should_retry(self, retry_state: RetryCallState) -> bool:
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return False
        if self.vetoed or self.aborted is not None:
            return False
        return isinstance(outcome.exception(), Exception)

    def _stop(self, retry_state: RetryCallState) -> bool:
        return self.final

    def _wait(self, retry_state: RetryCallState) -> float:
        if self.final:
            return 0.0
        delay = self.options.delay
        if isinstance(delay, ComputedDelay):
            base = delay(self.attempt)
        else:
            base = self.running_delay

        wait_time = apply_jitter(base, self.options.jitter)
        max_delay = self.options.max_delay
        if max_delay is not None and wait_time > max_delay:
            wait_time = max_delay
        self.next_delay = wait_time
        return wait_time

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        logger.debug(
            f"Attempt {self.attempt} failed: {self.last_error}. "
            f"Retrying in {self.next_delay:.3f}s ({self.attempt + 1}/{self.options.retries} retries)"
        )
        on_retry = self.options.on_retry
        if on_retry is None:
            return
        try:
            on_retry(self.last_error, self.attempt, self.next_delay)
        except Exception as exc:
            raise RetryObserverError(self.attempt, exc) from exc

    async def _sleep(self, seconds: float) -> None:
        await wait_or_cancel(self.clock, float(seconds), self.options.cancellation)
        if isinstance(self.options.delay, FixedDelay):
            cap = self.options.max_delay if self.options.max_delay is not None else math.inf
            self.running_delay = min(self.running_delay * self.options.factor, cap)

    def _give_up(self, retry_state: RetryCallState) -> Any:
        failure = self._failure()
        logger.debug(f"Giving up: {failure}. Last error: {self.last_error}")
        raise failure from self.last_error


def _resolve_options(options: Optional[RetryOptions], overrides: dict) -> RetryOptions:
    if options is None:
        return RetryOptions(**overrides)
    if not overrides:
        return options
    return RetryOptions(**{**dict(options), **overrides})


async def retry(
    operation: Operation[T],
    options: Optional[RetryOptions] = None,
    **overrides: Any,
) -> T:
    """Invoke ``operation`` until it succeeds or the policy gives up.

    Args:
        operation: Callable taking the 0-based attempt index and returning an
            awaitable (a plain value is accepted as an immediate result)
        options: Retry options; defaults to ``RetryOptions()``
        **overrides: Option fields applied on top of ``options``

    Returns:
        The operation's result, unchanged

    Raises:
        CircuitOpenError: If the circuit breaker is open; the operation is not called
        RetryCancelledError: If cancellation fires before an attempt or during a wait
        RetryFailedError: If retries are exhausted, vetoed or out of time
        RetryObserverError: If the ``on_retry`` observer raises
    """
    resolved = _resolve_options(options, overrides)
    return await _RetryRun(operation, resolved).run()


def with_retry(
    options: Optional[RetryOptions] = None, **overrides: Any
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Create a decorator that runs an async function through :func:`retry`.

    Every attempt re-invokes the function with the original arguments.
    """
    resolved = _resolve_options(options, overrides)

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapped(*args: Any, **kwargs: Any) -> T:
            return await retry(lambda attempt: func(*args, **kwargs), resolved)

        return wrapped

    return decorator
