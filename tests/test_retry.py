import asyncio

from statuscast.results import DeliveryResult, ErrorCode
from statuscast.retry import RetryPolicy, with_retry


def _scripted(results):
    calls = []

    async def attempt():
        calls.append(len(calls))
        return results[min(len(calls) - 1, len(results) - 1)]

    return attempt, calls


def _retryable():
    return DeliveryResult.failed("ch", ErrorCode.NETWORK_ERROR, "connection reset", retryable=True)


def test_zero_retries_means_one_attempt(fake_sleep, sleeps):
    attempt, calls = _scripted([_retryable()])

    result = asyncio.run(with_retry(attempt, RetryPolicy(max_retries=0), channel="ch", sleep=fake_sleep))

    assert not result.success
    assert len(calls) == 1
    assert result.attempts == 1
    assert sleeps == []


def test_retries_until_success(fake_sleep, sleeps):
    attempt, calls = _scripted([_retryable(), _retryable(), DeliveryResult.ok("ch")])
    policy = RetryPolicy(max_retries=3, retry_delay_ms=100)

    result = asyncio.run(with_retry(attempt, policy, channel="ch", sleep=fake_sleep))

    assert result.success
    assert result.attempts == 3
    assert sleeps == [0.1, 0.2]


def test_exhausted_retries_return_last_error(fake_sleep):
    attempt, calls = _scripted([_retryable()])

    result = asyncio.run(with_retry(attempt, RetryPolicy(max_retries=2), channel="ch", sleep=fake_sleep))

    assert len(calls) == 3
    assert result.attempts == 3
    assert result.error.code == ErrorCode.NETWORK_ERROR


def test_non_retryable_failure_stops_immediately(fake_sleep, sleeps):
    auth = DeliveryResult.failed("ch", ErrorCode.AUTH_ERROR, "HTTP 401", retryable=False, status_code=401)
    attempt, calls = _scripted([auth, DeliveryResult.ok("ch")])

    result = asyncio.run(with_retry(attempt, RetryPolicy(max_retries=5), channel="ch", sleep=fake_sleep))

    assert len(calls) == 1
    assert result.error.code == ErrorCode.AUTH_ERROR
    assert result.error.status_code == 401
    assert sleeps == []


def test_slow_attempt_times_out(fake_sleep):
    calls = []

    async def hang():
        calls.append(1)
        await asyncio.sleep(5)
        return DeliveryResult.ok("ch")

    policy = RetryPolicy(max_retries=1, timeout_ms=10)
    result = asyncio.run(with_retry(hang, policy, channel="ch", sleep=fake_sleep))

    assert not result.success
    assert result.error.code == ErrorCode.TIMEOUT
    assert result.error.retryable
    assert len(calls) == 2


def test_raising_attempt_becomes_send_error(fake_sleep):
    async def boom():
        raise RuntimeError("formatter exploded")

    result = asyncio.run(with_retry(boom, RetryPolicy(max_retries=3), channel="ch", sleep=fake_sleep))

    assert result.error.code == ErrorCode.SEND_ERROR
    assert "formatter exploded" in result.error.message
    assert result.attempts == 1


def test_backoff_is_capped():
    policy = RetryPolicy(retry_delay_ms=1000, max_delay_ms=5000)

    assert [policy.delay_ms(i) for i in range(5)] == [1000, 2000, 4000, 5000, 5000]
