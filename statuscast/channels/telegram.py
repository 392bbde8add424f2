"""Telegram channel adapter (Bot API sendMessage)."""

import html
import re
from functools import partial

from statuscast.channels import ChannelContext, ChannelPayload
from statuscast.channels.formatting import EVENT_ICONS, event_fields, event_title, format_timestamp
from statuscast.channels.provider import ChannelProvider, http_channel
from statuscast.channels.validate import validate_telegram
from statuscast.events import NotificationEvent, event_url
from statuscast.schemas.channel import ChannelConfig

DEFAULT_PARSE_MODE = "Markdown"

_MARKDOWN_SPECIALS = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")


def escape_markdown(text: str) -> str:
    """Backslash-escape Markdown control characters."""
    return _MARKDOWN_SPECIALS.sub(r"\\\1", text)


def escape_html(text: str) -> str:
    return html.escape(text, quote=True)


def render_telegram_text(event: NotificationEvent, parse_mode: str = DEFAULT_PARSE_MODE) -> str:
    icon = EVENT_ICONS[event.type]
    title = event_title(event)
    url = event_url(event)
    time_line = format_timestamp(event.timestamp)

    if parse_mode == "HTML":
        lines = [f"{icon} <b>{escape_html(title)}</b>", ""]
        lines += [f"<b>{escape_html(label)}:</b> {escape_html(value)}" for label, value in event_fields(event)]
        if url:
            lines += ["", f'<a href="{escape_html(url)}">View Details</a>']
        lines += ["", f"<i>{escape_html(time_line)}</i>"]
        return "\n".join(lines)

    lines = [f"{icon} *{escape_markdown(title)}*", ""]
    lines += [f"{escape_markdown(label)}: {escape_markdown(value)}" for label, value in event_fields(event)]
    if url:
        # link targets only need ')' and '\' escaped
        target = url.replace("\\", "\\\\").replace(")", "\\)")
        lines += ["", f"[View Details]({target})"]
    lines += ["", f"🕒 {escape_markdown(time_line)}"]
    return "\n".join(lines)


def format_telegram(config: dict, event: NotificationEvent, *, api_host: str = "api.telegram.org") -> ChannelPayload:
    """
    Format a notification for the Telegram Bot API.

    Config expects:
        - bot_token: Bot token from @BotFather
        - chat_id: Target chat ID
        - parse_mode: Optional, Markdown (default), MarkdownV2 or HTML
    """
    parse_mode = config.get("parse_mode") or DEFAULT_PARSE_MODE
    telegram_body = {
        "chat_id": config["chat_id"],
        "text": render_telegram_text(event, parse_mode),
        "parse_mode": parse_mode,
        "disable_web_page_preview": bool(config.get("disable_web_page_preview", False)),
    }
    return ChannelPayload(
        method="POST",
        url=f"https://{api_host}/bot{config['bot_token']}/sendMessage",
        headers={"Content-Type": "application/json"},
        body=telegram_body,
    )


def create_telegram_provider(config: ChannelConfig, ctx: ChannelContext) -> ChannelProvider:
    api_host = config.options.get("api_host") or ctx.settings.telegram_api_host
    return http_channel(
        config,
        ctx,
        validate=validate_telegram,
        formatter=partial(format_telegram, api_host=api_host),
    )
