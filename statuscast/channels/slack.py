"""Slack channel adapter (Incoming Webhooks)."""

from statuscast.channels import ChannelContext, ChannelPayload
from statuscast.channels.formatting import (
    EVENT_EMOJI,
    event_color,
    event_fields,
    event_title,
)
from statuscast.channels.provider import ChannelProvider, http_channel
from statuscast.channels.validate import validate_slack
from statuscast.events import NotificationEvent, event_severity, event_url
from statuscast.schemas.channel import ChannelConfig

HEADER_LIMIT = 150  # Slack rejects longer plain_text headers


def mentions_for(config: dict, event: NotificationEvent) -> list[str]:
    """
    User IDs to @mention for ``event``.

    ``mention_users`` is either a list (mentioned on critical incidents) or
    a mapping of severity -> list of IDs.
    """
    if event.type != "incident.opened":
        return []
    severity = event_severity(event)
    mention_users = config.get("mention_users")
    if not mention_users:
        return []
    if isinstance(mention_users, dict):
        return list(mention_users.get(severity) or [])
    if severity == "critical":
        return [mention_users] if isinstance(mention_users, str) else list(mention_users)
    return []


def format_slack(config: dict, event: NotificationEvent) -> ChannelPayload:
    """
    Format a notification for a Slack webhook.

    Config expects:
        - webhook_url: Slack webhook URL
        - channel, username, icon_emoji: optional overrides
        - mention_users: optional user IDs for critical incidents
    """
    title = event_title(event)
    header = f"{EVENT_EMOJI[event.type]} {title}"

    blocks: list[dict] = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": header[:HEADER_LIMIT], "emoji": True},
        }
    ]

    mentions = mentions_for(config, event)
    if mentions:
        blocks.append({
            "type": "section",
            "text": {"type": "mrkdwn", "text": " ".join(f"<@{user}>" for user in mentions)},
        })

    fields = [
        {"type": "mrkdwn", "text": f"*{label}:*\n{value}"}
        for label, value in event_fields(event)
    ]
    if fields:
        blocks.append({"type": "section", "fields": fields[:10]})

    if event.type == "incident.opened" and event.incident.body:
        body = event.incident.body
        preview = body[:500] + ("..." if len(body) > 500 else "")
        blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": preview}})

    url = event_url(event)
    if url:
        blocks.append({
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "text": {"type": "plain_text", "text": "View Details"},
                    "url": url,
                }
            ],
        })

    slack_body = {
        "text": title,
        "blocks": blocks,
        "attachments": [{"color": event_color(event), "fallback": title}],
    }
    for key in ("channel", "username", "icon_emoji"):
        if config.get(key):
            slack_body[key] = config[key]

    return ChannelPayload(
        method="POST",
        url=config["webhook_url"],
        headers={"Content-Type": "application/json"},
        body=slack_body,
    )


def create_slack_provider(config: ChannelConfig, ctx: ChannelContext) -> ChannelProvider:
    return http_channel(config, ctx, validate=validate_slack, formatter=format_slack)
