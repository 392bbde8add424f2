"""Channel-type registry: tag -> provider factory."""

import logging
from typing import Callable

from statuscast.channels import ChannelContext
from statuscast.channels.discord import create_discord_provider
from statuscast.channels.email import create_email_provider
from statuscast.channels.provider import ChannelProvider
from statuscast.channels.slack import create_slack_provider
from statuscast.channels.telegram import create_telegram_provider
from statuscast.channels.validate import suggest_channel_type
from statuscast.channels.webhook import create_webhook_provider
from statuscast.errors import ChannelConfigError, UnknownChannelTypeError
from statuscast.schemas.channel import ChannelConfig

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[ChannelConfig, ChannelContext], ChannelProvider]

BUILTIN_FACTORIES: dict[str, ProviderFactory] = {
    "slack": create_slack_provider,
    "telegram": create_telegram_provider,
    "discord": create_discord_provider,
    "webhook": create_webhook_provider,
    "email": create_email_provider,
}


class ProviderRegistry:
    """
    Maps channel-type tags to factories.

    Factories are plain callables; registering one does not construct
    anything. Instances are built by ``create`` and cached by the caller.
    """

    def __init__(self) -> None:
        self._factories: dict[str, ProviderFactory] = {}

    def register(self, channel_type: str, factory: ProviderFactory, *, replace: bool = False) -> None:
        if not channel_type:
            raise ValueError("Channel type tag must be a non-empty string")
        if channel_type in self._factories and not replace:
            raise ValueError(f"Channel type '{channel_type}' is already registered")
        self._factories[channel_type] = factory
        logger.debug("Registered channel type %s", channel_type)

    def unregister(self, channel_type: str) -> None:
        self._factories.pop(channel_type, None)

    def has(self, channel_type: str) -> bool:
        return channel_type in self._factories

    def types(self) -> list[str]:
        return sorted(self._factories)

    def create(self, config: ChannelConfig, ctx: ChannelContext) -> ChannelProvider:
        """
        Build a provider for ``config``.

        Raises ``UnknownChannelTypeError`` for unregistered tags and
        ``ChannelConfigError`` when the channel rejects its options.
        """
        factory = self._factories.get(config.type)
        if factory is None:
            suggestion = suggest_channel_type(config.type)
            if suggestion is not None and suggestion not in self._factories:
                suggestion = None
            raise UnknownChannelTypeError(
                config.type, self._factories, suggestion=suggestion, channel_id=config.id
            )

        try:
            provider = factory(config, ctx)
        except ChannelConfigError as e:
            if e.channel_id is None:
                e.channel_id = config.id
            raise
        except Exception as e:
            raise ChannelConfigError(
                f"Failed to instantiate channel '{config.id}' of type '{config.type}': {e}",
                channel_id=config.id,
            ) from e
        return provider


def default_registry() -> ProviderRegistry:
    """A fresh registry holding the built-in channels."""
    registry = ProviderRegistry()
    for channel_type, factory in BUILTIN_FACTORIES.items():
        registry.register(channel_type, factory)
    return registry
