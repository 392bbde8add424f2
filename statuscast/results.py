"""Delivery results and per-channel statistics."""

import datetime
from dataclasses import dataclass, field, replace
from typing import Optional


def _now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


class ErrorCode:
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    RATE_LIMITED = "RATE_LIMITED"
    HTTP_ERROR = "HTTP_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    SEND_ERROR = "SEND_ERROR"
    INIT_FAILED = "INIT_FAILED"


@dataclass(frozen=True)
class DeliveryError:
    code: str
    message: str
    retryable: bool
    timestamp: str = field(default_factory=_now)
    status_code: Optional[int] = None


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of delivering one event to one channel.

    ``skipped`` marks an event the channel's filters declined; no transport
    call was made and statistics were not touched.
    """

    provider: str
    success: bool
    error: Optional[DeliveryError] = None
    attempts: int = 0
    skipped: bool = False

    @classmethod
    def ok(cls, provider: str, attempts: int = 1) -> "DeliveryResult":
        return cls(provider=provider, success=True, attempts=attempts)

    @classmethod
    def failed(
        cls,
        provider: str,
        code: str,
        message: str,
        *,
        retryable: bool,
        status_code: Optional[int] = None,
        attempts: int = 1,
    ) -> "DeliveryResult":
        error = DeliveryError(
            code=code,
            message=message,
            retryable=retryable,
            status_code=status_code,
        )
        return cls(provider=provider, success=False, error=error, attempts=attempts)

    @classmethod
    def skip(cls, provider: str) -> "DeliveryResult":
        return cls(provider=provider, success=True, skipped=True)

    @property
    def retryable(self) -> bool:
        return self.error is not None and self.error.retryable

    def with_attempts(self, attempts: int) -> "DeliveryResult":
        return replace(self, attempts=attempts)


@dataclass
class ChannelStatistics:
    """Running counters for one channel.

    ``attempts`` counts transport attempts, retries included.
    ``successes`` and ``failures`` count final delivery outcomes.
    """

    channel_id: str
    channel_type: str
    attempts: int = 0
    successes: int = 0
    failures: int = 0
    rate_limit_hits: int = 0
    last_success: Optional[str] = None
    last_failure: Optional[str] = None
    average_latency_ms: Optional[float] = None

    def record_attempt(self) -> None:
        self.attempts += 1

    def record_rate_limited(self) -> None:
        self.rate_limit_hits += 1

    def record_success(self, latency_ms: float) -> None:
        self.successes += 1
        self.last_success = _now()
        # rolling mean over successful deliveries
        previous = self.average_latency_ms if self.average_latency_ms is not None else latency_ms
        self.average_latency_ms = (previous * (self.successes - 1) + latency_ms) / self.successes

    def record_failure(self) -> None:
        self.failures += 1
        self.last_failure = _now()

    def snapshot(self) -> "ChannelStatistics":
        return replace(self)

    def reset(self) -> None:
        self.attempts = 0
        self.successes = 0
        self.failures = 0
        self.rate_limit_hits = 0
        self.last_success = None
        self.last_failure = None
        self.average_latency_ms = None
