"""Bounded retry for optimistic-concurrency updates.

A get-modify-update sequence against the API server fails with a conflict
whenever somebody else wrote the object in between. The helpers here rerun
the whole sequence a fixed number of times with a short, jittered backoff
and surface the last conflict if the budget runs out.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, NamedTuple, TypeVar

from bootimage.utils.errors import ConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy(NamedTuple):
    #: Maximum number of attempts, including the first one
    steps: int = 5
    #: Initial delay between attempts in seconds
    duration: float = 0.01
    #: Multiplier applied to the delay after every attempt
    factor: float = 1.0
    #: Random extra delay, as a fraction of the current delay
    jitter: float = 0.1

    def delays(self):
        """Yield the sleep before each retry (``steps - 1`` values)."""
        delay = self.duration
        for _ in range(max(self.steps - 1, 0)):
            extra = delay * self.jitter * random.random() if self.jitter > 0 else 0.0
            yield delay + extra
            delay *= self.factor


DEFAULT_RETRY = RetryPolicy()


async def retry_on_conflict(
    policy: RetryPolicy,
    fn: Callable[[], Awaitable[T]],
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``fn`` until it does not raise ConflictError or attempts run out.

    ``fn`` must redo its read itself so that every attempt works on fresh
    data. Any exception other than ConflictError propagates immediately.
    """
    delays = policy.delays()
    attempt = 0
    while True:
        attempt += 1
        try:
            return await fn()
        except ConflictError as e:
            delay = next(delays, None)
            if delay is None:
                logger.warning(f"Giving up after {attempt} conflicting attempt(s): {e}")
                raise
            logger.debug(f"Conflict on attempt {attempt}, retrying in {delay:.3f}s: {e}")
            await sleep(delay)
