"""Clock interface used for elapsed time, cooldowns and inter-attempt waits"""

import asyncio
import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Abstract time source"""

    @abstractmethod
    def now(self) -> float:
        """Current reading in seconds; only differences are meaningful"""
        pass

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        """Suspend the current task for ``seconds``"""
        pass


class SystemClock(Clock):
    """Monotonic clock backed by the running event loop"""

    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
