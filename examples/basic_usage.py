"""Retry a flaky coroutine, then share a circuit breaker between calls"""

import asyncio
import logging
import random

from retri import (
    CircuitOpenError,
    RetryFailedError,
    create_circuit_breaker_state,
    retry,
)

logging.basicConfig(level=logging.DEBUG, format="%(name)s - %(levelname)s - %(message)s")

breaker_state = create_circuit_breaker_state()


async def fetch_quote(attempt: int) -> str:
    if random.random() < 0.6:
        raise ConnectionError(f"upstream unavailable (attempt {attempt})")
    return "Simple is better than complex."


def report(error: Exception, attempt: int, delay: float) -> None:
    print(f"attempt {attempt} failed with {error!r}, waiting {delay:.2f}s")


async def main() -> None:
    for _ in range(5):
        try:
            quote = await retry(
                fetch_quote,
                retries=3,
                delay=0.05,
                jitter="equal",
                max_delay=0.5,
                on_retry=report,
                circuit_breaker={"failure_threshold": 4, "cooldown": 1.0, "state": breaker_state},
            )
            print(f"got: {quote}")
        except CircuitOpenError as e:
            print(f"breaker open, {e.cooldown_remaining:.2f}s left")
        except RetryFailedError as e:
            print(f"{e}; last error: {e.last_error!r}")


if __name__ == "__main__":
    asyncio.run(main())
