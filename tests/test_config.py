import pytest
from pydantic import ValidationError

from statuscast.config import Settings


def test_defaults():
    settings = Settings()

    assert settings.max_concurrency >= 1
    assert settings.rate_limit_capacity >= 1


@pytest.mark.parametrize(
    "field, value",
    [
        ("max_concurrency", 0),
        ("max_concurrency", -1),
        ("default_max_retries", -1),
        ("default_max_retries", 11),
        ("default_retry_delay_ms", -5),
        ("default_timeout_ms", 0),
        ("default_max_delay_ms", -1),
        ("rate_limit_capacity", 0),
        ("rate_limit_refill_per_second", 0),
    ],
)
def test_out_of_range_values_are_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(**{field: value})


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("STATUSCAST_MAX_CONCURRENCY", "0")
    with pytest.raises(ValidationError):
        Settings()

    monkeypatch.setenv("STATUSCAST_MAX_CONCURRENCY", "3")
    assert Settings().max_concurrency == 3
