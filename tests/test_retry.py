"""Tests for the retry policy."""

import asyncio

import pytest

from kickbase_companion.api.retry import RetryExhaustedError, RetryPolicy


class Flaky:
    """Operation failing a given number of times before succeeding."""

    def __init__(self, failures: list[Exception], result="ok"):
        self.failures = list(failures)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.result


class Transient(Exception):
    pass


class Fatal(Exception):
    pass


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def policy(sleeps) -> RetryPolicy:
    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    return RetryPolicy(
        is_retryable=lambda e: isinstance(e, Transient),
        sleep=fake_sleep,
    )


def test_delays_double():
    policy = RetryPolicy()
    assert policy.delay_for(1) == pytest.approx(0.6)
    assert policy.delay_for(2) == pytest.approx(1.2)
    assert policy.delay_for(3) == pytest.approx(2.4)


def test_rejects_zero_attempts():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)


def test_first_attempt_succeeds(policy, sleeps):
    operation = Flaky([])
    assert asyncio.run(policy.run(operation)) == "ok"
    assert operation.calls == 1
    assert sleeps == []


def test_recovers_on_last_attempt(policy, sleeps):
    operation = Flaky([Transient("empty"), Transient("html")])
    assert asyncio.run(policy.run(operation)) == "ok"
    assert operation.calls == 3
    assert sleeps == [pytest.approx(0.6), pytest.approx(1.2)]


def test_exhausted(policy, sleeps):
    operation = Flaky([Transient("1"), Transient("2"), Transient("3"), Transient("4")])

    with pytest.raises(RetryExhaustedError) as exc_info:
        asyncio.run(policy.run(operation))

    assert operation.calls == 3
    assert exc_info.value.attempts == 3
    assert str(exc_info.value.last_error) == "3"
    # No wait after the final attempt
    assert len(sleeps) == 2


def test_terminal_error_is_not_retried(policy, sleeps):
    operation = Flaky([Transient("empty"), Fatal("too old")])

    with pytest.raises(Fatal):
        asyncio.run(policy.run(operation))

    assert operation.calls == 2
    assert sleeps == [pytest.approx(0.6)]


def test_single_attempt_policy(sleeps):
    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    policy = RetryPolicy(max_attempts=1, sleep=fake_sleep)

    with pytest.raises(RetryExhaustedError):
        asyncio.run(policy.run(Flaky([Transient("x")])))
    assert sleeps == []
