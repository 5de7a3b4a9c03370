import pytest

from alchemy_web3.utils.retry import aretry_call, retry_delay


def test_retry_delay_bounds():
    assert retry_delay(1.0, 0.25, rand=lambda: 0.0) == 1.0
    assert retry_delay(1.0, 0.25, rand=lambda: 0.999) == pytest.approx(1.24975)
    assert retry_delay(0.5, 0.0) == 0.5
    with pytest.raises(ValueError):
        retry_delay(-1.0, 0.0)


def test_retry_delay_stays_below_upper_bound():
    # 1.0 + (1 - 2**-53) * 0.25 rounds to exactly 1.25 in binary floating point.
    delay = retry_delay(1.0, 0.25, rand=lambda: 1 - 2**-53)
    assert 1.0 <= delay < 1.25


@pytest.mark.asyncio
async def test_retries_then_reraises_last_error(fake_sleep):
    errors = [ValueError("e1"), ValueError("e2"), ValueError("e3")]
    calls = []

    async def flaky():
        calls.append(1)
        raise errors[len(calls) - 1]

    with pytest.raises(ValueError) as ei:
        await aretry_call(flaky, retries=2, interval=1.0, jitter=0.5, sleep=fake_sleep, rand=lambda: 0.5)

    assert len(calls) == 3
    assert ei.value is errors[2]
    assert fake_sleep.delays == [1.25, 1.25]


@pytest.mark.asyncio
async def test_non_retryable_error_propagates_immediately(fake_sleep):
    calls = []

    async def bad():
        calls.append(1)
        raise KeyError("nope")

    with pytest.raises(KeyError):
        await aretry_call(bad, retries=5, retry_if=lambda e: not isinstance(e, KeyError), sleep=fake_sleep)

    assert calls == [1]
    assert fake_sleep.delays == []


@pytest.mark.asyncio
async def test_success_after_failures_passes_args_and_reports(fake_sleep):
    seen = []
    attempts = []

    async def flaky(a, b=0):
        attempts.append((a, b))
        if len(attempts) < 3:
            raise RuntimeError("again")
        return a + b

    result = await aretry_call(
        flaky, 2, b=3, retries=3, interval=0.1, jitter=0.0,
        on_retry=lambda i, exc, delay: seen.append((i, str(exc), delay)),
        sleep=fake_sleep,
    )

    assert result == 5
    assert attempts == [(2, 3)] * 3
    assert seen == [(1, "again", 0.1), (2, "again", 0.1)]


@pytest.mark.asyncio
async def test_zero_retries_means_one_attempt(fake_sleep):
    calls = []

    async def bad():
        calls.append(1)
        raise RuntimeError("x")

    with pytest.raises(RuntimeError):
        await aretry_call(bad, retries=0, sleep=fake_sleep)
    assert calls == [1]
