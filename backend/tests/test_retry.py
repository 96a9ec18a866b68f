"""Tests for the bounded retry policy."""

import pytest

from recap.errors import UpstreamServiceError, is_transient_overload
from recap.services.retry import RetryPolicy

from .fakes import RecordingSleep


class Flaky:
    def __init__(self, failures: list[BaseException], result: str = "ok"):
        self.failures = list(failures)
        self.result = result
        self.calls = 0

    async def __call__(self, *args, **kwargs) -> str:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.result


def test_transient_overload_classification():
    assert is_transient_overload(UpstreamServiceError("busy", upstream_status=503))
    assert is_transient_overload(UpstreamServiceError("overloaded", upstream_status=529))
    assert not is_transient_overload(UpstreamServiceError("bad", upstream_status=500))
    assert not is_transient_overload(UpstreamServiceError("no connection"))
    assert not is_transient_overload(ValueError("boom"))


@pytest.mark.asyncio
async def test_returns_first_success_without_sleeping():
    sleep = RecordingSleep()
    fn = Flaky([])
    assert await RetryPolicy(sleep=sleep).call(fn) == "ok"
    assert fn.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_custom_policy_bounds():
    sleep = RecordingSleep()
    policy = RetryPolicy(
        max_attempts=5,
        delay_seconds=0.5,
        retryable=lambda e: isinstance(e, TimeoutError),
        sleep=sleep,
    )
    fn = Flaky([TimeoutError()] * 4, result="done")

    assert await policy.call(fn, "arg", key="value") == "done"
    assert fn.calls == 5
    assert sleep.delays == [0.5] * 4


@pytest.mark.asyncio
async def test_non_retryable_error_propagates_immediately():
    sleep = RecordingSleep()
    fn = Flaky([KeyError("x")])

    with pytest.raises(KeyError):
        await RetryPolicy(sleep=sleep).call(fn)

    assert fn.calls == 1
    assert sleep.delays == []
