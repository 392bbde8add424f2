"""Pydantic schemas for channel configuration."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from statuscast.events import EVENT_TYPES, SEVERITY_RANK


# ---------------------------------------------------------------------------
# Delivery tuning
# ---------------------------------------------------------------------------

class RetryConfig(BaseModel):
    max_retries: int = Field(2, ge=0, le=10, description="Extra attempts after the first one")
    retry_delay_ms: int = Field(1000, ge=0, description="Base delay, doubled on every retry")
    timeout_ms: int = Field(5000, gt=0, description="Per-attempt timeout")
    max_delay_ms: int = Field(30000, ge=0, description="Upper bound for a single backoff delay")

    model_config = {"frozen": True}


class RateLimitConfig(BaseModel):
    capacity: int = Field(..., ge=1, description="Bucket size (burst)")
    refill_per_second: float = Field(..., gt=0, description="Tokens added per second")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------

class ChannelConfig(BaseModel):
    id: str = Field("", description="Channel identity; defaults to the type")
    type: str = Field(..., min_length=1, description="Registry tag: slack, telegram, discord, webhook, email, ...")
    enabled: bool = True
    options: dict = Field(default_factory=dict, description="Channel-specific settings and resolved credentials")
    retry: Optional[RetryConfig] = None
    rate_limit: Optional[RateLimitConfig] = None
    events: Optional[list[str]] = Field(None, description="Allow list; overrides the default event policy")
    exclude_events: list[str] = Field(default_factory=list)
    entities: list[str] = Field(default_factory=list, description="Only notify for these entities")
    min_severity: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator("events", "exclude_events")
    @classmethod
    def _known_event_types(cls, value):
        if value is None:
            return value
        unknown = [name for name in value if name not in EVENT_TYPES]
        if unknown:
            raise ValueError(f"Unknown event type(s): {', '.join(unknown)}")
        return value

    @field_validator("min_severity")
    @classmethod
    def _known_severity(cls, value):
        if value is not None and value not in SEVERITY_RANK:
            raise ValueError(f"min_severity must be one of: {', '.join(SEVERITY_RANK)}")
        return value

    @model_validator(mode="before")
    @classmethod
    def _default_id(cls, data):
        if isinstance(data, dict) and not data.get("id"):
            data = {**data, "id": data.get("type", "")}
        return data
