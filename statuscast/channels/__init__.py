"""Base types for notification channel adapters."""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping

import httpx

from statuscast.config import Settings


@dataclass
class ChannelPayload:
    """Represents the HTTP request a channel makes for one event."""
    method: str
    url: str
    headers: dict[str, str]
    body: Any  # JSON-serialisable


@dataclass
class ChannelContext:
    """Shared resources handed to every channel factory."""
    client: httpx.AsyncClient
    settings: Settings
    event_policy: Mapping[str, bool] = field(default_factory=dict)
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
