from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from ..application.cancel import CancelToken, checkpoint
from ..domain.errors import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryableError(Exception):
    """Raised by an attempt to ask the policy for another try."""


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Exponential backoff with additive jitter.

    delay_ms(i) = base_delay_ms * factor**i + jitter() * max_jitter_ms

    `sleep` takes seconds, like asyncio.sleep; tests swap in a recorder.
    """
    attempts: int = 5
    base_delay_ms: float = 200.0
    factor: float = 1.6
    max_jitter_ms: float = 120.0
    jitter: Callable[[], float] = random.random
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    retry_on: tuple[type[BaseException], ...] = (RetryableError,)

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("attempts must be >= 1")

    def delay_ms(self, attempt: int) -> float:
        return self.base_delay_ms * (self.factor ** attempt) + self.jitter() * self.max_jitter_ms

    async def run(self, fn: Callable[[], Awaitable[T]], *, what: str = "rpc call",
                  cancel: CancelToken | None = None) -> T:
        # sleeps only between attempts: N attempts wait N-1 times, never after the last failure
        last: BaseException | None = None
        for attempt in range(self.attempts):
            checkpoint(cancel)
            try:
                return await fn()
            except self.retry_on as e:
                last = e
                if attempt + 1 >= self.attempts:
                    break
                delay = self.delay_ms(attempt)
                logger.warning("%s failed (attempt %d/%d): %s; retrying in %.0f ms",
                               what, attempt + 1, self.attempts, e, delay)
                await self.sleep(delay / 1000.0)
                checkpoint(cancel)
        raise TransportError(f"{what} failed after {self.attempts} attempts: {last}") from last
