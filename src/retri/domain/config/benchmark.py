"""Benchmark configuration model."""

from typing import List

from pydantic import BaseModel, Field, NonNegativeInt


class BenchmarkConfig(BaseModel):
    """Configuration for the overhead benchmark.

    Attributes:
        iterations: Measured calls per scenario
        warmup: Unmeasured calls before measuring
        retries: Retry budgets to benchmark (every call succeeds first time)
    """

    iterations: int = Field(10_000, gt=0)
    warmup: int = Field(1_000, ge=0)
    retries: List[NonNegativeInt] = Field(default_factory=lambda: [0, 1, 3, 5])
