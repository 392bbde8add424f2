"""Discord channel adapter."""

from statuscast.channels import ChannelContext, ChannelPayload
from statuscast.channels.formatting import EVENT_ICONS, event_color, event_fields, event_title
from statuscast.channels.provider import ChannelProvider, http_channel
from statuscast.channels.validate import validate_discord
from statuscast.events import NotificationEvent, event_severity, event_url
from statuscast.schemas.channel import ChannelConfig


def _role_mentions(config: dict, event: NotificationEvent) -> list[str]:
    if event.type != "incident.opened":
        return []
    roles = config.get("mention_roles")
    severity = event_severity(event)
    if isinstance(roles, dict):
        return list(roles.get(severity) or [])
    if roles and severity == "critical":
        return [roles] if isinstance(roles, str) else list(roles)
    return []


def format_discord(config: dict, event: NotificationEvent) -> ChannelPayload:
    """
    Format a notification for a Discord webhook.

    Config expects:
        - webhook_url: Discord webhook URL
        - username, avatar_url: optional overrides
        - mention_roles: optional role IDs for critical incidents
    """
    fields = [
        {"name": label, "value": value[:1024], "inline": len(value) < 50}
        for label, value in event_fields(event)
    ]

    embed = {
        "title": f"{EVENT_ICONS[event.type]} {event_title(event)}"[:256],
        "color": int(event_color(event).lstrip("#"), 16),
        "timestamp": event.timestamp.isoformat(),
        "fields": fields,
        "footer": {"text": config.get("footer") or "Status Monitor"},
    }
    url = event_url(event)
    if url:
        embed["url"] = url

    discord_body: dict = {"embeds": [embed]}
    roles = _role_mentions(config, event)
    if roles:
        discord_body["content"] = " ".join(f"<@&{role}>" for role in roles)
    for key in ("username", "avatar_url"):
        if config.get(key):
            discord_body[key] = config[key]

    return ChannelPayload(
        method="POST",
        url=config["webhook_url"],
        headers={"Content-Type": "application/json"},
        body=discord_body,
    )


def create_discord_provider(config: ChannelConfig, ctx: ChannelContext) -> ChannelProvider:
    return http_channel(config, ctx, validate=validate_discord, formatter=format_discord)
