"""Construction-time errors.

Delivery failures are never raised; see ``statuscast.results``.
"""

from typing import Iterable, Optional


class ChannelConfigError(ValueError):
    """A channel is misconfigured. Raised when the channel is built."""

    def __init__(self, message: str, channel_id: Optional[str] = None):
        super().__init__(message)
        self.channel_id = channel_id


class UnknownChannelTypeError(ChannelConfigError):
    def __init__(
        self,
        channel_type: str,
        available: Iterable[str],
        suggestion: Optional[str] = None,
        channel_id: Optional[str] = None,
    ):
        message = f"Unknown channel type: {channel_type}. Available types: {', '.join(sorted(available))}"
        if suggestion:
            message += f". Did you mean '{suggestion}'?"
        super().__init__(message, channel_id=channel_id)
        self.channel_type = channel_type
        self.suggestion = suggestion
