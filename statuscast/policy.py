"""Which events a channel receives."""

from typing import Mapping, Optional

from statuscast.events import (
    EVENT_TYPES,
    SEVERITY_RANK,
    NotificationEvent,
    affected_entities,
    event_severity,
)
from statuscast.schemas.channel import ChannelConfig

# Everything on except incident updates, which tend to be noisy.
DEFAULT_EVENT_POLICY: dict[str, bool] = {event_type: True for event_type in EVENT_TYPES}
DEFAULT_EVENT_POLICY["incident.updated"] = False


def build_event_policy(overrides: Optional[Mapping[str, bool]] = None) -> dict[str, bool]:
    """Return the default policy table with ``overrides`` applied."""
    policy = dict(DEFAULT_EVENT_POLICY)
    for event_type, enabled in (overrides or {}).items():
        if event_type not in policy:
            raise ValueError(f"Unknown event type in policy: {event_type}")
        policy[event_type] = bool(enabled)
    return policy


def channel_accepts(
    config: ChannelConfig,
    event: NotificationEvent,
    policy: Optional[Mapping[str, bool]] = None,
) -> bool:
    if config.events is not None:
        if event.type not in config.events:
            return False
    elif not (policy or DEFAULT_EVENT_POLICY).get(event.type, False):
        return False

    if event.type in config.exclude_events:
        return False

    if config.entities:
        if not set(affected_entities(event)) & set(config.entities):
            return False

    severity = event_severity(event)
    if config.min_severity and severity:
        if SEVERITY_RANK[severity] < SEVERITY_RANK[config.min_severity]:
            return False

    return True
