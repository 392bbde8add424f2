"""E-mail channel over SMTP (works with any SMTP server)."""

import asyncio
import html as html_lib
import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from functools import partial
from typing import Callable, Optional

from statuscast.channels import ChannelContext
from statuscast.channels.formatting import (
    EVENT_ICONS,
    event_color,
    event_fields,
    event_title,
    format_timestamp,
)
from statuscast.channels.provider import ChannelProvider, limiter_for, retry_policy_for
from statuscast.channels.validate import validate_email
from statuscast.events import NotificationEvent, event_url
from statuscast.results import DeliveryResult, ErrorCode
from statuscast.schemas.channel import ChannelConfig

logger = logging.getLogger(__name__)

BODY_PREVIEW_LIMIT = 500


@dataclass
class EmailMessage:
    subject: str
    text: str
    html: str
    from_address: str
    to: list[str]
    cc: list[str]
    bcc: list[str]

    @property
    def recipients(self) -> list[str]:
        return self.to + self.cc + self.bcc


def _as_list(value) -> list[str]:
    if not value:
        return []
    return [value] if isinstance(value, str) else list(value)


def _body_preview(event: NotificationEvent) -> Optional[str]:
    if event.type != "incident.opened" or not event.incident.body:
        return None
    body = event.incident.body
    return body[:BODY_PREVIEW_LIMIT] + ("..." if len(body) > BODY_PREVIEW_LIMIT else "")


def build_email_html(event: NotificationEvent, sender_name: str) -> str:
    """Build the HTML e-mail body for an event."""
    escape = html_lib.escape
    title = escape(event_title(event))
    icon = EVENT_ICONS[event.type]

    field_rows = ""
    for label, value in event_fields(event):
        field_rows += (
            f"<tr>"
            f'<td style="padding:10px 14px;font-weight:600;color:#555;'
            f'white-space:nowrap;vertical-align:top;border-bottom:1px solid #eee;">{escape(label)}</td>'
            f'<td style="padding:10px 14px;color:#222;border-bottom:1px solid #eee;">{escape(value)}</td>'
            f"</tr>"
        )

    description = ""
    preview = _body_preview(event)
    if preview:
        description = f'<p style="margin:0 0 16px;color:#333;font-size:14px;white-space:pre-wrap;">{escape(preview)}</p>'

    button = ""
    url = event_url(event)
    if url:
        button = (
            f'<tr><td style="padding:0 32px 24px;"><a href="{escape(url)}" '
            f'style="display:inline-block;padding:10px 20px;background:#1a1a2e;color:#fff;'
            f'text-decoration:none;border-radius:5px;font-size:14px;">View Details</a></td></tr>'
        )

    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="margin:0;padding:0;background:#f4f5f7;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,Helvetica,Arial,sans-serif;">
  <table width="100%" cellpadding="0" cellspacing="0" style="background:#f4f5f7;padding:32px 0;">
    <tr><td align="center">
      <table width="600" cellpadding="0" cellspacing="0" style="background:#ffffff;border-radius:8px;overflow:hidden;">
        <tr>
          <td style="background:{event_color(event)};padding:24px 32px;">
            <h1 style="margin:0;color:#ffffff;font-size:20px;font-weight:600;">{icon} {title}</h1>
          </td>
        </tr>
        <tr>
          <td style="padding:24px 32px;">
            {description}
            <table width="100%" cellpadding="0" cellspacing="0" style="border:1px solid #eee;border-radius:6px;overflow:hidden;">
              {field_rows}
            </table>
          </td>
        </tr>
        {button}
        <tr>
          <td style="padding:16px 32px;background:#fafafa;border-top:1px solid #eee;">
            <p style="margin:0;color:#999;font-size:12px;">Sent by {escape(sender_name)} &middot; {escape(format_timestamp(event.timestamp))}</p>
          </td>
        </tr>
      </table>
    </td></tr>
  </table>
</body>
</html>"""


def build_email_text(event: NotificationEvent) -> str:
    lines = [f"{EVENT_ICONS[event.type]} {event_title(event)}", ""]
    preview = _body_preview(event)
    if preview:
        lines += [preview, ""]
    lines += [f"{label}: {value}" for label, value in event_fields(event)]
    url = event_url(event)
    if url:
        lines += ["", url]
    return "\n".join(lines)


def format_email(config: dict, event: NotificationEvent, *, sender_name: str = "Status") -> EmailMessage:
    """
    Render an event as an e-mail.

    Config expects:
        - from_address: Sender address
        - to: Recipient list; cc / bcc optional
        - subject_prefix: Optional, defaults to "[Status]"
        - smtp: {host, port, username, password, use_tls}
    """
    prefix = config.get("subject_prefix", "[Status]")
    subject = f"{prefix} {EVENT_ICONS[event.type]} {event_title(event)}".strip()
    return EmailMessage(
        subject=subject,
        text=build_email_text(event),
        html=build_email_html(event, config.get("sender_name") or sender_name),
        from_address=config["from_address"],
        to=_as_list(config.get("to")),
        cc=_as_list(config.get("cc")),
        bcc=_as_list(config.get("bcc")),
    )


def _send_sync(smtp: dict, message: EmailMessage, timeout: float) -> None:
    """Synchronous SMTP send."""
    mime = MIMEMultipart("alternative")
    mime["Subject"] = message.subject
    mime["From"] = message.from_address
    mime["To"] = ", ".join(message.to)
    if message.cc:
        mime["Cc"] = ", ".join(message.cc)
    mime.attach(MIMEText(message.text, "plain", "utf-8"))
    mime.attach(MIMEText(message.html, "html", "utf-8"))

    host = smtp["host"]
    port = int(smtp.get("port", 587))
    username = smtp.get("username")
    password = smtp.get("password")

    if smtp.get("ssl"):
        server_cls = smtplib.SMTP_SSL
    else:
        server_cls = smtplib.SMTP

    with server_cls(host, port, timeout=timeout) as server:
        if smtp.get("use_tls", True) and not smtp.get("ssl"):
            server.starttls()
        if username:
            server.login(username, password or "")
        server.send_message(mime, from_addr=message.from_address, to_addrs=message.recipients)


def classify_smtp_error(channel: str, exc: Exception) -> DeliveryResult:
    if isinstance(exc, smtplib.SMTPAuthenticationError):
        return DeliveryResult.failed(channel, ErrorCode.AUTH_ERROR, f"SMTP authentication failed: {exc}", retryable=False)
    if isinstance(exc, (smtplib.SMTPRecipientsRefused, smtplib.SMTPSenderRefused)):
        return DeliveryResult.failed(channel, ErrorCode.INVALID_PAYLOAD, f"SMTP refused message: {exc}", retryable=False)
    if isinstance(exc, TimeoutError):
        return DeliveryResult.failed(channel, ErrorCode.TIMEOUT, f"SMTP timed out: {exc}", retryable=True)
    return DeliveryResult.failed(channel, ErrorCode.NETWORK_ERROR, f"SMTP send failed: {exc}", retryable=True)


def create_email_provider(
    config: ChannelConfig,
    ctx: ChannelContext,
    *,
    send_func: Optional[Callable[[EmailMessage], None]] = None,
) -> ChannelProvider:
    """
    ``send_func`` replaces the SMTP call; it receives the rendered
    ``EmailMessage`` and may be sync or async.
    """
    policy = retry_policy_for(config, ctx.settings)
    options = config.options

    async def transport(event: NotificationEvent) -> DeliveryResult:
        message = format_email(options, event, sender_name=ctx.settings.sender_name)
        try:
            if send_func is not None:
                result = send_func(message)
                if asyncio.iscoroutine(result):
                    await result
            else:
                loop = asyncio.get_running_loop()
                await loop.run_in_executor(
                    None,
                    partial(_send_sync, options["smtp"], message, policy.timeout_ms / 1000),
                )
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("Email send failed via %s: %s", config.id, e)
            return classify_smtp_error(config.id, e)

        logger.info("Email sent via %s to=%s subject=%s", config.id, ", ".join(message.to), message.subject)
        return DeliveryResult.ok(config.id)

    return ChannelProvider(
        config,
        transport,
        validate=validate_email,
        retry_policy=policy,
        limiter=limiter_for(config, ctx.settings),
        event_policy=ctx.event_policy or None,
        settings=ctx.settings,
        sleep=ctx.sleep,
    )
