from statuscast.schemas.channel import ChannelConfig, RateLimitConfig, RetryConfig

__all__ = ["ChannelConfig", "RateLimitConfig", "RetryConfig"]
