import asyncio
import json

import httpx
import pytest

from statuscast.channels.telegram import (
    create_telegram_provider,
    escape_markdown,
    format_telegram,
    render_telegram_text,
)
from statuscast.errors import ChannelConfigError
from statuscast.schemas.channel import ChannelConfig

OPTIONS = {"bot_token": "123:ABC", "chat_id": "-1001"}


@pytest.mark.parametrize(
    "options, message",
    [
        ({"chat_id": "-1001"}, "Telegram bot_token is required"),
        ({"bot_token": "123:ABC"}, "Telegram chat_id is required"),
        ({**OPTIONS, "parse_mode": "RTF"}, "Telegram parse_mode must be one of"),
    ],
)
def test_validation_messages(make_ctx, options, message):
    with pytest.raises(ChannelConfigError, match=message):
        create_telegram_provider(ChannelConfig(type="telegram", options=options), make_ctx())


def test_escape_markdown():
    assert escape_markdown("a_b [x]") == "a\\_b \\[x\\]"
    assert escape_markdown("v1.2!") == "v1\\.2\\!"


def test_payload(make_event):
    payload = format_telegram(OPTIONS, make_event("incident.opened"))

    assert payload.url == "https://api.telegram.org/bot123:ABC/sendMessage"
    assert payload.body["chat_id"] == "-1001"
    assert payload.body["parse_mode"] == "Markdown"
    assert payload.body["disable_web_page_preview"] is False
    assert "[View Details](https://status.example.com/incidents/1)" in payload.body["text"]


def test_markdown_escapes_titles(make_event):
    text = render_telegram_text(make_event("incident.opened", title="API [prod] outage"))

    assert "API \\[prod\\] outage" in text


def test_html_mode(make_event):
    event = make_event("incident.opened", title="<script> & co")

    payload = format_telegram({**OPTIONS, "parse_mode": "HTML"}, event)

    assert payload.body["parse_mode"] == "HTML"
    assert "<b>&lt;script&gt; &amp; co</b>" in payload.body["text"]
    assert '<a href="https://status.example.com/incidents/1">View Details</a>' in payload.body["text"]


def test_custom_api_host(make_ctx, make_event):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"ok": True})

    config = ChannelConfig(type="telegram", options={**OPTIONS, "api_host": "tg.internal.example.com"})
    provider = create_telegram_provider(config, make_ctx(handler))
    result = asyncio.run(provider.send(make_event("system.down")))

    assert result.success
    assert requests[0].url.host == "tg.internal.example.com"
    assert requests[0].url.path == "/bot123:ABC/sendMessage"
    assert json.loads(requests[0].content)["chat_id"] == "-1001"


def test_html_link_quotes_are_escaped(make_event):
    event = make_event("incident.opened", url='https://status.example.com/incidents/1?q="x"')

    text = render_telegram_text(event, "HTML")

    assert '<a href="https://status.example.com/incidents/1?q=&quot;x&quot;">View Details</a>' in text
