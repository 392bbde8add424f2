"""Generic webhook channel adapter."""

import base64
from functools import partial

from statuscast.channels import ChannelContext, ChannelPayload
from statuscast.channels.provider import ChannelProvider, http_channel
from statuscast.channels.validate import validate_webhook
from statuscast.events import NotificationEvent
from statuscast.schemas.channel import ChannelConfig

_PAYLOAD_FIELDS = ("incident", "maintenance", "system", "slo")


def build_webhook_body(event: NotificationEvent, config: dict) -> dict:
    """``{event, timestamp, data: {<family>: {...}}}`` with camelCase keys."""
    dumped = event.model_dump(mode="json", by_alias=True)
    data = {key: dumped[key] for key in _PAYLOAD_FIELDS if key in dumped}
    body = {"event": event.type, "timestamp": dumped["timestamp"], "data": data}
    if config.get("organization"):
        body["organization"] = config["organization"]
    if config.get("status_page_url"):
        body["statusPageUrl"] = config["status_page_url"]
    return body


def auth_headers(auth: dict) -> dict[str, str]:
    auth_type = auth.get("type")
    if auth_type == "bearer":
        return {"Authorization": f"Bearer {auth['token']}"}
    if auth_type == "basic":
        credentials = base64.b64encode(f"{auth['username']}:{auth['password']}".encode()).decode()
        return {"Authorization": f"Basic {credentials}"}
    if auth_type == "api-key":
        return {auth["header_name"]: auth["token"]}
    return {}


def format_webhook(config: dict, event: NotificationEvent, *, user_agent: str = "statuscast") -> ChannelPayload:
    """
    Format a notification for a generic webhook.

    Config expects:
        - url: Webhook URL
        - method: Optional POST (default), PUT or PATCH
        - headers: Optional dict of custom headers
        - authentication: Optional bearer / basic / api-key credentials
    """
    headers = {
        "Content-Type": "application/json",
        "User-Agent": user_agent,
    }

    # Add custom headers if provided
    custom_headers = config.get("headers") or {}
    if isinstance(custom_headers, dict):
        headers.update(custom_headers)

    if config.get("authentication"):
        headers.update(auth_headers(config["authentication"]))

    return ChannelPayload(
        method=str(config.get("method", "POST")).upper(),
        url=config["url"],
        headers=headers,
        body=build_webhook_body(event, config),
    )


def create_webhook_provider(config: ChannelConfig, ctx: ChannelContext) -> ChannelProvider:
    return http_channel(
        config,
        ctx,
        validate=partial(validate_webhook, block_private_networks=ctx.settings.block_private_networks),
        formatter=partial(format_webhook, user_agent=ctx.settings.user_agent),
    )
