import asyncio
import smtplib

import pytest

from statuscast.channels.email import create_email_provider, format_email
from statuscast.errors import ChannelConfigError
from statuscast.results import ErrorCode
from statuscast.schemas.channel import ChannelConfig

OPTIONS = {
    "from_address": "status@example.com",
    "to": ["ops@example.com"],
    "cc": ["lead@example.com"],
    "smtp": {"host": "smtp.example.com", "port": 587},
}


@pytest.mark.parametrize(
    "options, message",
    [
        ({**OPTIONS, "from_address": None}, "Email from_address is required"),
        ({**OPTIONS, "to": []}, "Email to addresses are required"),
        ({**OPTIONS, "to": ["not-an-address"]}, "Invalid email address: not-an-address"),
        ({**OPTIONS, "smtp": {}}, "SMTP host is required"),
        ({**OPTIONS, "smtp": {"host": "smtp.example.com", "port": 70000}}, "SMTP port must be between"),
    ],
)
def test_validation_messages(make_ctx, options, message):
    with pytest.raises(ChannelConfigError, match=message):
        create_email_provider(ChannelConfig(type="email", options=options), make_ctx())


def test_message_rendering(make_event):
    message = format_email(OPTIONS, make_event("incident.opened", title="DB <down>"))

    assert message.subject == "[Status] 🔴 DB <down>"
    assert message.recipients == ["ops@example.com", "lead@example.com"]
    assert "DB &lt;down&gt;" in message.html
    assert "View Details" in message.html
    assert "Severity: CRITICAL" in message.text


def test_send_func_receives_message(make_ctx, make_event):
    sent = []

    provider = create_email_provider(
        ChannelConfig(type="email", options={**OPTIONS, "subject_prefix": "[Acme]"}),
        make_ctx(),
        send_func=sent.append,
    )
    result = asyncio.run(provider.send(make_event("maintenance.scheduled")))

    assert result.success
    assert sent[0].subject.startswith("[Acme]")
    assert "Database upgrade" in sent[0].subject


def test_async_send_func(make_ctx, make_event):
    sent = []

    async def send(message):
        sent.append(message)

    provider = create_email_provider(ChannelConfig(type="email", options=OPTIONS), make_ctx(), send_func=send)
    result = asyncio.run(provider.send(make_event("system.down")))

    assert result.success
    assert len(sent) == 1


def test_auth_failure_is_final(make_ctx, make_event):
    calls = []

    def send(message):
        calls.append(message)
        raise smtplib.SMTPAuthenticationError(535, b"bad credentials")

    provider = create_email_provider(ChannelConfig(type="email", options=OPTIONS), make_ctx(), send_func=send)
    result = asyncio.run(provider.send(make_event("incident.opened")))

    assert result.error.code == ErrorCode.AUTH_ERROR
    assert len(calls) == 1


def test_connection_errors_are_retried(make_ctx, make_event):
    calls = []

    def send(message):
        calls.append(message)
        raise ConnectionRefusedError("connection refused")

    provider = create_email_provider(ChannelConfig(type="email", options=OPTIONS), make_ctx(), send_func=send)
    result = asyncio.run(provider.send(make_event("incident.opened")))

    assert result.error.code == ErrorCode.NETWORK_ERROR
    assert result.attempts == 3
    assert len(calls) == 3
