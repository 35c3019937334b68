"""Retry with differentiated backoff for agent delivery."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any, TypeVar

from pydantic import BaseModel, Field

logger = logging.getLogger("voicebridge.retry")

__all__ = ["RetryPolicy", "retry_with_backoff"]

T = TypeVar("T")


class RetryPolicy(BaseModel):
    """Configures retry behaviour for agent delivery.

    Ordinary failures back off exponentially (1 s, 2 s, 4 s with the
    defaults).  Failures listed as *slow* by the caller, such as gateway
    timeouts where the server is probably still working, wait for
    ``slow_delays_seconds[attempt]`` instead, clamped to the last entry.
    """

    max_attempts: int = Field(default=4, ge=1)
    base_delay_seconds: float = Field(default=1.0, ge=0.0)
    max_delay_seconds: float = Field(default=60.0, gt=0.0)
    exponential_base: float = Field(default=2.0, gt=0.0)
    slow_delays_seconds: list[float] = Field(default_factory=lambda: [5.0, 15.0, 30.0, 60.0])

    def delay_for(self, attempt: int, *, slow: bool = False) -> float:
        """Delay in seconds before retrying after the zero-based *attempt*."""
        if slow and self.slow_delays_seconds:
            return self.slow_delays_seconds[min(attempt, len(self.slow_delays_seconds) - 1)]
        return min(
            self.base_delay_seconds * (self.exponential_base**attempt),
            self.max_delay_seconds,
        )


async def retry_with_backoff(
    fn: Callable[..., Coroutine[Any, Any, T]],
    policy: RetryPolicy,
    *args: Any,
    non_retryable: tuple[type[BaseException], ...] = (),
    slow_retry: tuple[type[BaseException], ...] = (),
    **kwargs: Any,
) -> T:
    """Execute *fn* up to ``policy.max_attempts`` times.

    Exceptions in *non_retryable* are re-raised immediately.  Exceptions in
    *slow_retry* use the policy's slow delay table.  Raises the last
    exception if all attempts are exhausted.
    """
    last_exc: Exception | None = None
    for attempt in range(policy.max_attempts):
        try:
            return await fn(*args, **kwargs)
        except non_retryable:
            raise
        except Exception as exc:
            last_exc = exc
            if attempt >= policy.max_attempts - 1:
                break
            delay = policy.delay_for(attempt, slow=isinstance(exc, slow_retry))
            logger.warning(
                "Attempt %d/%d failed (%s), retrying in %.1fs",
                attempt + 1,
                policy.max_attempts,
                exc,
                delay,
                extra={"attempt": attempt + 1, "delay": delay},
            )
            await asyncio.sleep(delay)

    assert last_exc is not None
    raise last_exc
