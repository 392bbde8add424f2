"""
Delivery pipeline shared by every channel.

A channel is a validate function plus a transport function. The
``ChannelProvider`` wraps the transport as::

    event filter -> with_retry(with_rate_limit(counted(transport)))

so adding a channel means writing a transport, not subclassing.
"""

import asyncio
import logging
import time
from functools import partial
from typing import Awaitable, Callable, Mapping, Optional

from statuscast.channels import ChannelContext, ChannelPayload
from statuscast.config import Settings, get_settings
from statuscast.errors import ChannelConfigError
from statuscast.events import NotificationEvent
from statuscast.http import post_json
from statuscast.policy import DEFAULT_EVENT_POLICY, channel_accepts
from statuscast.ratelimit import TokenBucket
from statuscast.results import ChannelStatistics, DeliveryResult, ErrorCode
from statuscast.retry import Attempt, RetryPolicy, with_retry
from statuscast.schemas.channel import ChannelConfig

logger = logging.getLogger(__name__)

Transport = Callable[[NotificationEvent], Awaitable[DeliveryResult]]
Validator = Callable[[dict], None]
Formatter = Callable[[dict, NotificationEvent], ChannelPayload]


def retry_policy_for(config: ChannelConfig, settings: Settings) -> RetryPolicy:
    if config.retry is not None:
        return RetryPolicy(
            max_retries=config.retry.max_retries,
            retry_delay_ms=config.retry.retry_delay_ms,
            timeout_ms=config.retry.timeout_ms,
            max_delay_ms=config.retry.max_delay_ms,
        )
    return RetryPolicy(
        max_retries=settings.default_max_retries,
        retry_delay_ms=settings.default_retry_delay_ms,
        timeout_ms=settings.default_timeout_ms,
        max_delay_ms=settings.default_max_delay_ms,
    )


def limiter_for(config: ChannelConfig, settings: Settings) -> TokenBucket:
    if config.rate_limit is not None:
        return TokenBucket(config.rate_limit.capacity, config.rate_limit.refill_per_second)
    return TokenBucket(settings.rate_limit_capacity, settings.rate_limit_refill_per_second)


def with_rate_limit(
    attempt: Attempt,
    limiter: TokenBucket,
    *,
    channel: str,
    on_limited: Optional[Callable[[], None]] = None,
) -> Attempt:
    """
    Gate ``attempt`` behind ``limiter``. One token admits the whole
    delivery: once admitted, retries go straight through.
    """
    admitted = False

    async def gated() -> DeliveryResult:
        nonlocal admitted
        if not admitted:
            if not limiter.try_acquire():
                if on_limited is not None:
                    on_limited()
                logger.debug("Channel %s rate limited", channel)
                return DeliveryResult.failed(
                    channel, ErrorCode.RATE_LIMITED, "Rate limit exceeded for channel", retryable=True
                )
            admitted = True
        return await attempt()

    return gated


class ChannelProvider:
    """One configured channel: filter, throttle, retry, count."""

    def __init__(
        self,
        config: ChannelConfig,
        transport: Transport,
        *,
        validate: Optional[Validator] = None,
        retry_policy: Optional[RetryPolicy] = None,
        limiter: Optional[TokenBucket] = None,
        event_policy: Optional[Mapping[str, bool]] = None,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.perf_counter,
    ):
        if validate is not None:
            try:
                validate(config.options)
            except ChannelConfigError as e:
                e.channel_id = config.id
                raise

        settings = settings or get_settings()
        self.config = config
        self.retry_policy = retry_policy or retry_policy_for(config, settings)
        self._transport = transport
        self._limiter = limiter or limiter_for(config, settings)
        self._event_policy = event_policy or DEFAULT_EVENT_POLICY
        self._sleep = sleep
        self._clock = clock
        self._stats = ChannelStatistics(channel_id=config.id, channel_type=config.type)

    @property
    def id(self) -> str:
        return self.config.id

    @property
    def type(self) -> str:
        return self.config.type

    def accepts(self, event: NotificationEvent) -> bool:
        return self.config.enabled and channel_accepts(self.config, event, self._event_policy)

    def statistics(self) -> ChannelStatistics:
        return self._stats.snapshot()

    def reset_statistics(self) -> None:
        self._stats.reset()

    async def _counted(self, event: NotificationEvent) -> DeliveryResult:
        self._stats.record_attempt()
        return await self._transport(event)

    async def send(self, event: NotificationEvent) -> DeliveryResult:
        """Deliver ``event`` if this channel's filters accept it. Never raises."""
        if not self.accepts(event):
            logger.debug("Channel %s skipping %s due to filters", self.id, event.type)
            return DeliveryResult.skip(self.id)
        return await self.deliver(event)

    async def deliver(self, event: NotificationEvent) -> DeliveryResult:
        """
        Deliver ``event`` without consulting the filters.

        Used by the dispatcher, which has already selected this channel.
        Failures come back as results.
        """
        started = self._clock()
        try:
            attempt = with_rate_limit(
                partial(self._counted, event),
                self._limiter,
                channel=self.id,
                on_limited=self._stats.record_rate_limited,
            )
            result = await with_retry(attempt, self.retry_policy, channel=self.id, sleep=self._sleep)
        except Exception as e:
            logger.exception("Unhandled error in channel %s", self.id)
            result = DeliveryResult.failed(self.id, ErrorCode.SEND_ERROR, str(e) or type(e).__name__, retryable=False)

        if result.success:
            self._stats.record_success((self._clock() - started) * 1000)
            logger.info("Channel %s delivered %s", self.id, event.type)
        else:
            self._stats.record_failure()
            logger.warning(
                "Channel %s failed to deliver %s after %d attempt(s): %s",
                self.id,
                event.type,
                result.attempts,
                result.error.message,
            )
        return result


def http_channel(
    config: ChannelConfig,
    ctx: ChannelContext,
    *,
    validate: Validator,
    formatter: Formatter,
) -> ChannelProvider:
    """Build a provider whose transport renders a payload and POSTs it."""
    policy = retry_policy_for(config, ctx.settings)

    async def transport(event: NotificationEvent) -> DeliveryResult:
        payload = formatter(config.options, event)
        return await post_json(
            ctx.client,
            config.id,
            payload.url,
            payload.body,
            headers=payload.headers,
            timeout=policy.timeout_ms / 1000,
            method=payload.method,
        )

    return ChannelProvider(
        config,
        transport,
        validate=validate,
        retry_policy=policy,
        limiter=limiter_for(config, ctx.settings),
        event_policy=ctx.event_policy or None,
        settings=ctx.settings,
        sleep=ctx.sleep,
    )
