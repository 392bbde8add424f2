"""HTTP transport for channels: shared client, SSRF guard, outcome mapping."""

import asyncio
import ipaddress
import logging
import socket
from typing import Any, Optional
from urllib.parse import urlsplit

import httpx

from statuscast.results import DeliveryResult, ErrorCode

logger = logging.getLogger(__name__)

_BLOCKED_NETWORKS = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]

_BLOCKED_HOSTNAMES = {
    "localhost",
    "metadata",
    "metadata.google.internal",
}


def is_blocked_address(ip_str: str) -> bool:
    try:
        ip = ipaddress.ip_address(ip_str)
    except ValueError:
        return True
    return any(ip in network for network in _BLOCKED_NETWORKS)


def is_blocked_hostname(hostname: str) -> bool:
    """Literal check only: blocked names and private IP literals. No DNS."""
    hostname = hostname.lower().strip("[]")
    if hostname in _BLOCKED_HOSTNAMES:
        return True
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return is_blocked_address(hostname)


class PrivateNetworkGuard(httpx.AsyncHTTPTransport):
    """Refuses requests whose host resolves to a private or internal address."""

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        hostname = request.url.host
        if hostname:
            if is_blocked_hostname(hostname):
                raise httpx.ConnectError(f"Blocked hostname: {hostname}", request=request)
            loop = asyncio.get_running_loop()
            try:
                addr_infos = await loop.getaddrinfo(
                    hostname, None, family=socket.AF_UNSPEC, type=socket.SOCK_STREAM
                )
            except socket.gaierror:
                raise httpx.ConnectError(f"Cannot resolve hostname: {hostname}", request=request)
            for _, _, _, _, sockaddr in addr_infos:
                if is_blocked_address(sockaddr[0]):
                    raise httpx.ConnectError(
                        f"DNS resolved to blocked IP for {hostname}", request=request
                    )
        return await super().handle_async_request(request)


def build_http_client(
    timeout: float = 10,
    *,
    block_private_networks: bool = False,
    user_agent: Optional[str] = None,
    **kwargs,
) -> httpx.AsyncClient:
    headers = kwargs.pop("headers", {})
    if user_agent:
        headers.setdefault("User-Agent", user_agent)
    if block_private_networks:
        kwargs.setdefault("transport", PrivateNetworkGuard())
    return httpx.AsyncClient(timeout=timeout, headers=headers, **kwargs)


def redact_url(url: str) -> str:
    """Drop path and query so tokens embedded in URLs never reach the logs."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}/..." if parts.netloc else "<invalid url>"


def classify_response(channel: str, response: httpx.Response) -> DeliveryResult:
    status = response.status_code
    if 200 <= status < 300:
        return DeliveryResult.ok(channel)

    detail = response.text[:200] if response.content else response.reason_phrase
    message = f"HTTP {status}: {detail}"
    if status in (401, 403):
        return DeliveryResult.failed(channel, ErrorCode.AUTH_ERROR, message, retryable=False, status_code=status)
    if status == 429:
        return DeliveryResult.failed(channel, ErrorCode.RATE_LIMITED, message, retryable=True, status_code=status)
    if status == 400 or status == 422:
        return DeliveryResult.failed(channel, ErrorCode.INVALID_PAYLOAD, message, retryable=False, status_code=status)
    # server errors are worth another try, other client errors are not
    return DeliveryResult.failed(
        channel, ErrorCode.HTTP_ERROR, message, retryable=status >= 500, status_code=status
    )


async def post_json(
    client: httpx.AsyncClient,
    channel: str,
    url: str,
    body: Any,
    *,
    headers: Optional[dict[str, str]] = None,
    timeout: Optional[float] = None,
    method: str = "POST",
) -> DeliveryResult:
    """
    Send ``body`` as JSON and map the outcome to a ``DeliveryResult``.

    Transport failures and non-2xx responses come back as failed results;
    nothing is raised.
    """
    request_headers = {"Content-Type": "application/json"}
    request_headers.update(headers or {})
    try:
        response = await client.request(
            method,
            url,
            json=body,
            headers=request_headers,
            timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
        )
    except httpx.TimeoutException as e:
        logger.warning("Channel %s timed out calling %s: %s", channel, redact_url(url), e)
        return DeliveryResult.failed(channel, ErrorCode.TIMEOUT, f"Request timed out: {e}", retryable=True)
    except httpx.HTTPError as e:
        logger.warning("Channel %s failed calling %s: %s", channel, redact_url(url), e)
        return DeliveryResult.failed(channel, ErrorCode.NETWORK_ERROR, str(e) or type(e).__name__, retryable=True)

    result = classify_response(channel, response)
    if not result.success:
        logger.warning("Channel %s returned status %s: %s", channel, response.status_code, result.error.message)
    return result
