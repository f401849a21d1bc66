"""Shared fixtures"""

import asyncio
from typing import List

import pytest

from retri.domain.models.clock import Clock


class FakeClock(Clock):
    """Deterministic clock: sleeping advances time instantly"""

    def __init__(self, start: float = 1000.0):
        self.current = start
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds
        await asyncio.sleep(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
