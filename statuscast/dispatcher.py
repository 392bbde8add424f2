"""Notification dispatcher for all configured channels."""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Mapping, Optional, Union

import httpx

from statuscast.channels import ChannelContext
from statuscast.channels.provider import ChannelProvider
from statuscast.config import Settings, get_settings
from statuscast.errors import ChannelConfigError
from statuscast.events import NotificationEvent
from statuscast.http import build_http_client
from statuscast.policy import build_event_policy, channel_accepts
from statuscast.registry import ProviderRegistry, default_registry
from statuscast.results import ChannelStatistics, DeliveryResult, ErrorCode
from statuscast.schemas.channel import ChannelConfig

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Delivers events to every configured channel that wants them.

    Channel configuration is fixed for the dispatcher's lifetime. Providers
    are built on first use and cached; a channel that fails to build is
    remembered and reported as ``INIT_FAILED`` on every dispatch without
    retrying construction.

    Use as an async context manager (or call ``aclose``) to release the
    HTTP client when the dispatcher created it.
    """

    def __init__(
        self,
        channels: Iterable[Union[ChannelConfig, dict]],
        *,
        registry: Optional[ProviderRegistry] = None,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
        event_policy: Optional[Mapping[str, bool]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._settings = settings or get_settings()
        self._registry = registry or default_registry()
        self._event_policy = build_event_policy(event_policy)

        self._configs: dict[str, ChannelConfig] = {}
        for raw in channels:
            config = raw if isinstance(raw, ChannelConfig) else ChannelConfig.model_validate(raw)
            if config.id in self._configs:
                raise ChannelConfigError(f"Duplicate channel id: {config.id}", channel_id=config.id)
            self._configs[config.id] = config

        self._owns_client = client is None
        self._client = client or build_http_client(
            timeout=self._settings.default_timeout_ms / 1000,
            block_private_networks=self._settings.block_private_networks,
            user_agent=self._settings.user_agent,
        )
        self._ctx = ChannelContext(
            client=self._client,
            settings=self._settings,
            event_policy=self._event_policy,
            sleep=sleep,
        )

        self._providers: dict[str, ChannelProvider] = {}
        self._init_errors: dict[str, ChannelConfigError] = {}

    async def __aenter__(self) -> "NotificationDispatcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # --- Providers ---

    def channel_ids(self) -> list[str]:
        return list(self._configs)

    def _provider_for(self, config: ChannelConfig) -> Optional[ChannelProvider]:
        # Check-and-fill happens without awaiting, so concurrent dispatches
        # can never build the same channel twice.
        provider = self._providers.get(config.id)
        if provider is not None or config.id in self._init_errors:
            return provider

        try:
            provider = self._registry.create(config, self._ctx)
        except ChannelConfigError as e:
            self._init_errors[config.id] = e
            logger.warning("Channel %s failed to initialize: %s", config.id, e)
            return None

        self._providers[config.id] = provider
        logger.debug("Initialized channel %s (%s)", config.id, config.type)
        return provider

    def warm_up(self) -> dict[str, Optional[ChannelConfigError]]:
        """Build every enabled channel now. Returns id -> error (or None)."""
        outcome: dict[str, Optional[ChannelConfigError]] = {}
        for config in self._configs.values():
            if not config.enabled:
                continue
            self._provider_for(config)
            outcome[config.id] = self._init_errors.get(config.id)
        return outcome

    # --- Dispatch ---

    def _select(self, event: NotificationEvent) -> list[ChannelConfig]:
        return [
            config
            for config in self._configs.values()
            if config.enabled and channel_accepts(config, event, self._event_policy)
        ]

    async def dispatch(self, event: NotificationEvent) -> list[DeliveryResult]:
        """
        Deliver ``event`` to every channel that accepts it.

        Returns one result per selected channel once all have settled.
        Order follows completion, not configuration; match on
        ``result.provider``.
        """
        selected = self._select(event)
        if not selected:
            logger.debug("No channels accept %s", event.type)
            return []

        semaphore = asyncio.Semaphore(self._settings.max_concurrency)

        async def deliver(config: ChannelConfig) -> DeliveryResult:
            provider = self._provider_for(config)
            if provider is None:
                return DeliveryResult.failed(
                    config.id,
                    ErrorCode.INIT_FAILED,
                    str(self._init_errors[config.id]),
                    retryable=False,
                    attempts=0,
                )
            async with semaphore:
                # selection above is the only filter applied
                return await provider.deliver(event)

        settled = await asyncio.gather(*(deliver(config) for config in selected), return_exceptions=True)

        results: list[DeliveryResult] = []
        for config, outcome in zip(selected, settled):
            if isinstance(outcome, Exception):
                # only reachable through a custom provider whose deliver raises
                logger.error("Channel %s raised during send: %s", config.id, outcome, exc_info=outcome)
                outcome = DeliveryResult.failed(config.id, ErrorCode.SEND_ERROR, str(outcome), retryable=False)
            elif isinstance(outcome, BaseException):
                raise outcome
            results.append(outcome)

        succeeded = sum(1 for r in results if r.success)
        logger.info(
            "Dispatched %s: %d succeeded, %d failed",
            event.type,
            succeeded,
            len(results) - succeeded,
        )
        return results

    async def dispatch_all(self, events: Iterable[NotificationEvent]) -> list[DeliveryResult]:
        """Dispatch events one after another; event N settles before N+1 starts."""
        results: list[DeliveryResult] = []
        for event in events:
            results.extend(await self.dispatch(event))
        return results

    # --- Statistics ---

    def statistics(self) -> dict[str, ChannelStatistics]:
        """Snapshot of every constructed channel's counters."""
        return {channel_id: provider.statistics() for channel_id, provider in self._providers.items()}

    def reset_statistics(self) -> None:
        for provider in self._providers.values():
            provider.reset_statistics()
