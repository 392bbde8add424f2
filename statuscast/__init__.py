"""Multi-channel delivery of status-page events."""

from statuscast.channels.provider import ChannelProvider
from statuscast.config import Settings, get_settings
from statuscast.dispatcher import NotificationDispatcher
from statuscast.errors import ChannelConfigError, UnknownChannelTypeError
from statuscast.events import EVENT_TYPES, NotificationEvent, parse_event
from statuscast.loader import load_channel_configs, load_channel_configs_file, resolve_env_references
from statuscast.policy import DEFAULT_EVENT_POLICY
from statuscast.registry import ProviderRegistry, default_registry
from statuscast.results import ChannelStatistics, DeliveryError, DeliveryResult, ErrorCode
from statuscast.retry import RetryPolicy, with_retry
from statuscast.ratelimit import TokenBucket
from statuscast.schemas.channel import ChannelConfig, RateLimitConfig, RetryConfig

__version__ = "0.1.0"

__all__ = [
    "ChannelConfig",
    "ChannelConfigError",
    "ChannelProvider",
    "ChannelStatistics",
    "DEFAULT_EVENT_POLICY",
    "DeliveryError",
    "DeliveryResult",
    "EVENT_TYPES",
    "ErrorCode",
    "NotificationDispatcher",
    "NotificationEvent",
    "ProviderRegistry",
    "RateLimitConfig",
    "RetryConfig",
    "RetryPolicy",
    "Settings",
    "TokenBucket",
    "UnknownChannelTypeError",
    "default_registry",
    "get_settings",
    "load_channel_configs",
    "load_channel_configs_file",
    "parse_event",
    "resolve_env_references",
    "with_retry",
]
