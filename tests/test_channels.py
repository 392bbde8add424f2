import asyncio
from functools import partial

import httpx
import pytest

from statuscast.channels.email import create_email_provider
from statuscast.registry import default_registry
from statuscast.schemas.channel import ChannelConfig

MINIMAL_OPTIONS = {
    "slack": {"webhook_url": "https://hooks.slack.com/services/T000/B000/XXXX"},
    "telegram": {"bot_token": "123:ABC", "chat_id": "-1001"},
    "discord": {"webhook_url": "https://discord.com/api/webhooks/1/abc"},
    "webhook": {"url": "https://hooks.example.com/status"},
    "email": {
        "from_address": "status@example.com",
        "to": ["ops@example.com"],
        "smtp": {"host": "smtp.example.com"},
    },
}


@pytest.mark.parametrize("channel_type", sorted(MINIMAL_OPTIONS))
def test_minimal_options_construct_without_network(channel_type, make_ctx, make_event):
    requests = []
    emails = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200)

    registry = default_registry()
    registry.register("email", partial(create_email_provider, send_func=emails.append), replace=True)
    ctx = make_ctx(handler)

    provider = registry.create(ChannelConfig(type=channel_type, options=MINIMAL_OPTIONS[channel_type]), ctx)

    assert provider.type == channel_type
    assert requests == []
    assert emails == []

    result = asyncio.run(provider.send(make_event("incident.opened")))

    assert result.success
    assert len(requests) + len(emails) == 1
