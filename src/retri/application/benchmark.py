"""Overhead benchmark: direct await vs. the retry wrapper"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from retri.domain.config.benchmark import BenchmarkConfig
from retri.infrastructure.retry import retry

logger = logging.getLogger(__name__)

DIRECT_CALL = "Direct call (no wrapper)"


@dataclass
class BenchmarkResult:
    """Timing of one benchmark scenario"""

    name: str
    total_ms: float
    iterations: int
    overhead_ms: Optional[float] = None  # Per call, relative to the direct call

    @property
    def per_call_ms(self) -> float:
        return self.total_ms / self.iterations


@dataclass
class BenchmarkReport:
    """All scenario results of a benchmark run"""

    iterations: int
    results: List[BenchmarkResult] = field(default_factory=list)

    @property
    def direct(self) -> Optional[BenchmarkResult]:
        for result in self.results:
            if result.name == DIRECT_CALL:
                return result
        return None


async def _noop(*_args) -> None:
    return None


class BenchmarkService:
    """Measures the cost of wrapping an always-successful coroutine in ``retry``"""

    def __init__(self, config: Optional[BenchmarkConfig] = None):
        self.config = config or BenchmarkConfig()

    async def _time(self, iterations: int, call: Callable[[], Awaitable[None]]) -> float:
        start = time.perf_counter()
        for _ in range(iterations):
            await call()
        return (time.perf_counter() - start) * 1000

    def _scenarios(self) -> List[tuple]:
        scenarios = [(DIRECT_CALL, lambda: _noop())]
        for retries in self.config.retries:
            scenarios.append(
                (
                    f"retry(fn, retries={retries})",
                    lambda retries=retries: retry(_noop, retries=retries, delay=0),
                )
            )
        return scenarios

    async def run(self) -> BenchmarkReport:
        """Run warm-up and measured passes for every scenario

        Returns:
            BenchmarkReport with per-scenario timings
        """
        scenarios = self._scenarios()
        iterations = self.config.iterations

        if self.config.warmup:
            logger.debug(f"Warming up with {self.config.warmup} calls per scenario")
            for _, call in scenarios:
                await self._time(self.config.warmup, call)

        report = BenchmarkReport(iterations=iterations)
        for name, call in scenarios:
            total_ms = await self._time(iterations, call)
            report.results.append(BenchmarkResult(name=name, total_ms=total_ms, iterations=iterations))
            logger.debug(f"{name}: {total_ms:.2f}ms total")

        direct = report.direct
        for result in report.results:
            if result is not direct:
                result.overhead_ms = result.per_call_ms - direct.per_call_ms
        return report
