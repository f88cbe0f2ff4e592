from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type, TypeVar

from .context import FetchContext
from .exceptions import FetchCancelled, RetriableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retries around a single attempt.

    - RetriableError: wait exactly what the target asked for.
    - exceptions listed in `retry_on`: exponential backoff, capped at `max_delay`.
    - anything else: terminal, raised immediately.
    """
    max_attempts: int = 5
    base_delay: float = 0.1
    max_delay: float = 10.0
    retry_on: Tuple[Type[BaseException], ...] = ()

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def is_retriable(self, err: BaseException) -> bool:
        if isinstance(err, FetchCancelled):
            return False
        return isinstance(err, RetriableError) or isinstance(err, self.retry_on)

    def delay_for(self, attempt: int, err: BaseException) -> float:
        """Delay before attempt `attempt + 1`, given attempt `attempt` (1-based) failed with `err`."""
        if isinstance(err, RetriableError):
            return err.retry_after
        return min(self.max_delay, self.base_delay * (2 ** (attempt - 1)))

    def run(self, attempt_fn: Callable[[], T], ctx: Optional[FetchContext] = None) -> T:
        ctx = ctx or FetchContext()
        attempt = 0
        while True:
            attempt += 1
            try:
                return attempt_fn()
            except Exception as e:
                if not self.is_retriable(e):
                    raise
                if attempt >= self.max_attempts:
                    if isinstance(e, RetriableError):
                        raise e.cause from e
                    raise
                delay = self.delay_for(attempt, e)
                logger.warning(
                    "Attempt %d/%d failed: %s; retrying in %.2fs",
                    attempt, self.max_attempts, e, delay,
                )
                if ctx.wait(delay):
                    raise FetchCancelled(ctx.reason) from e
