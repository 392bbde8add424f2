"""Exponential-backoff retry around a single delivery attempt."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from statuscast.results import DeliveryResult, ErrorCode

logger = logging.getLogger(__name__)

Attempt = Callable[[], Awaitable[DeliveryResult]]
Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 2
    retry_delay_ms: int = 1000
    timeout_ms: int = 5000
    max_delay_ms: int = 30000

    def delay_ms(self, attempt_index: int) -> int:
        """Backoff before retry number ``attempt_index + 1`` (0-based)."""
        return min(self.retry_delay_ms * 2**attempt_index, self.max_delay_ms)


async def with_retry(
    attempt: Attempt,
    policy: RetryPolicy,
    *,
    channel: str,
    sleep: Sleep = asyncio.sleep,
) -> DeliveryResult:
    """
    Run ``attempt`` until it succeeds, fails for good, or the retry budget
    is spent. Returns the last attempt's result with ``attempts`` filled in.

    Each attempt is bounded by ``policy.timeout_ms``. A result whose error
    is not retryable ends the loop at once.
    """
    total = policy.max_retries + 1
    result: Optional[DeliveryResult] = None

    for index in range(total):
        logger.debug("Channel %s attempt %d/%d", channel, index + 1, total)

        try:
            result = await asyncio.wait_for(attempt(), timeout=policy.timeout_ms / 1000)
        except asyncio.TimeoutError:
            result = DeliveryResult.failed(
                channel,
                ErrorCode.TIMEOUT,
                f"Attempt timed out after {policy.timeout_ms}ms",
                retryable=True,
            )
        except Exception as e:
            logger.error("Unexpected error delivering to channel %s: %s", channel, e, exc_info=True)
            result = DeliveryResult.failed(channel, ErrorCode.SEND_ERROR, str(e) or type(e).__name__, retryable=False)

        if result.success:
            return result.with_attempts(index + 1)

        if not result.retryable:
            logger.debug("Channel %s failed with non-retryable %s", channel, result.error.code)
            return result.with_attempts(index + 1)

        if index + 1 < total:
            delay = policy.delay_ms(index)
            logger.debug(
                "Channel %s failed with %s, retrying in %dms", channel, result.error.code, delay
            )
            await sleep(delay / 1000)

    return result.with_attempts(total)
