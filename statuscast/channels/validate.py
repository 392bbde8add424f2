"""Construction-time validation for built-in channels.

Every validator raises ``ChannelConfigError`` with a message naming the
channel and the offending option. Nothing here touches the network.
"""

from typing import Optional
from urllib.parse import urlparse

from statuscast.errors import ChannelConfigError
from statuscast.http import is_blocked_hostname

BUILTIN_CHANNEL_TYPES = {"slack", "telegram", "discord", "webhook", "email"}

# Common typos -> correct type
_CHANNEL_SUGGESTIONS: dict[str, str] = {
    "discrod": "discord",
    "dicord": "discord",
    "disocrd": "discord",
    "slak": "slack",
    "sclack": "slack",
    "telegarm": "telegram",
    "telgram": "telegram",
    "tg": "telegram",
    "emal": "email",
    "mail": "email",
    "e-mail": "email",
    "smtp": "email",
    "webhok": "webhook",
    "hook": "webhook",
    "http": "webhook",
}

WEBHOOK_METHODS = {"POST", "PUT", "PATCH"}
TELEGRAM_PARSE_MODES = {"Markdown", "MarkdownV2", "HTML"}


def suggest_channel_type(input_type: str) -> Optional[str]:
    """Return a suggestion if the input looks like a typo of a built-in type."""
    if input_type in BUILTIN_CHANNEL_TYPES:
        return None
    lowered = input_type.lower()
    if lowered in BUILTIN_CHANNEL_TYPES:
        return lowered
    return _CHANNEL_SUGGESTIONS.get(lowered)


# --- Helpers ---


def _is_http_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _string_list(config: dict, key: str, message: str) -> list[str]:
    value = config.get(key) or []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise ChannelConfigError(message)
    return value


def _mention_ids(config: dict, key: str, channel: str) -> None:
    value = config.get(key)
    if value is None:
        return
    if isinstance(value, dict):
        for severity, ids in value.items():
            _string_list({key: ids}, key, f"{channel} {key}.{severity} must be a list of IDs")
        return
    _string_list(config, key, f"{channel} {key} must be a list of IDs")


# --- Channels ---


def validate_slack(config: dict) -> None:
    url = config.get("webhook_url")
    if not url:
        raise ChannelConfigError("Slack webhook_url is required")
    if not isinstance(url, str) or not url.startswith("https://hooks.slack.com/"):
        raise ChannelConfigError("Invalid Slack webhook URL")
    _mention_ids(config, "mention_users", "Slack")


def validate_telegram(config: dict) -> None:
    if not config.get("bot_token"):
        raise ChannelConfigError("Telegram bot_token is required")
    if not config.get("chat_id"):
        raise ChannelConfigError("Telegram chat_id is required")
    parse_mode = config.get("parse_mode")
    if parse_mode is not None and parse_mode not in TELEGRAM_PARSE_MODES:
        raise ChannelConfigError(
            f"Telegram parse_mode must be one of: {', '.join(sorted(TELEGRAM_PARSE_MODES))}"
        )


def validate_discord(config: dict) -> None:
    url = config.get("webhook_url")
    if not url:
        raise ChannelConfigError("Discord webhook_url is required")
    if not isinstance(url, str) or not url.startswith(
        ("https://discord.com/api/webhooks/", "https://discordapp.com/api/webhooks/")
    ):
        raise ChannelConfigError("Invalid Discord webhook URL")
    _mention_ids(config, "mention_roles", "Discord")


def validate_webhook(config: dict, *, block_private_networks: bool = False) -> None:
    url = config.get("url")
    if not url:
        raise ChannelConfigError("Webhook url is required")
    if not isinstance(url, str) or not _is_http_url(url):
        raise ChannelConfigError("Invalid webhook URL")
    if block_private_networks and is_blocked_hostname(urlparse(url).hostname or ""):
        raise ChannelConfigError("Webhook url points to a private or internal address")

    method = str(config.get("method", "POST")).upper()
    if method not in WEBHOOK_METHODS:
        raise ChannelConfigError(f"Webhook method must be one of: {', '.join(sorted(WEBHOOK_METHODS))}")

    headers = config.get("headers")
    if headers is not None and not isinstance(headers, dict):
        raise ChannelConfigError("Webhook headers must be an object")

    auth = config.get("authentication")
    if auth is None:
        return
    if not isinstance(auth, dict):
        raise ChannelConfigError("Webhook authentication must be an object")
    auth_type = auth.get("type")
    if auth_type == "bearer":
        if not auth.get("token"):
            raise ChannelConfigError("Bearer token is required")
    elif auth_type == "basic":
        if not auth.get("username") or not auth.get("password"):
            raise ChannelConfigError("Username and password are required for basic auth")
    elif auth_type == "api-key":
        if not auth.get("token") or not auth.get("header_name"):
            raise ChannelConfigError("API key and header name are required")
    else:
        raise ChannelConfigError(f"Unknown webhook authentication type: {auth_type}")


def validate_email(config: dict) -> None:
    from_address = config.get("from_address")
    if not from_address:
        raise ChannelConfigError("Email from_address is required")
    if not isinstance(from_address, str) or "@" not in from_address:
        raise ChannelConfigError(f"Invalid email address: {from_address}")

    recipients = config.get("to")
    if not recipients:
        raise ChannelConfigError("Email to addresses are required")
    for key in ("to", "cc", "bcc"):
        for address in _string_list(config, key, f"Email {key} must be a list of addresses"):
            if "@" not in address:
                raise ChannelConfigError(f"Invalid email address: {address}")

    smtp = config.get("smtp")
    if not isinstance(smtp, dict) or not smtp.get("host"):
        raise ChannelConfigError("SMTP host is required")
    port = smtp.get("port", 587)
    try:
        port = int(port)
    except (TypeError, ValueError):
        raise ChannelConfigError("SMTP port must be between 1 and 65535")
    if port < 1 or port > 65535:
        raise ChannelConfigError("SMTP port must be between 1 and 65535")
