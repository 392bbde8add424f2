from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Dispatch
    max_concurrency: int = Field(5, ge=1)

    # Retry defaults, applied when a channel has no retry block
    default_max_retries: int = Field(2, ge=0, le=10)
    default_retry_delay_ms: int = Field(1000, ge=0)
    default_timeout_ms: int = Field(5000, gt=0)
    default_max_delay_ms: int = Field(30000, ge=0)

    # Token bucket defaults, generous enough that normal traffic never throttles
    rate_limit_capacity: int = Field(60, ge=1)
    rate_limit_refill_per_second: float = Field(1.0, gt=0)

    telegram_api_host: str = "api.telegram.org"
    user_agent: str = "statuscast/0.1"
    sender_name: str = "Status"

    # Refuse generic webhooks that resolve to private/internal addresses
    block_private_networks: bool = True

    model_config = {"env_prefix": "STATUSCAST_", "env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
