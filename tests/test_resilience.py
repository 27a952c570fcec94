import asyncio

import pytest

from trainhunter.errors import NetworkError, ValidationError
from trainhunter.models import Failed, Ok
from trainhunter.resilience import with_item_retry, with_retry, with_timeout


class Flaky:
    def __init__(self, failures: int, error: Exception | None = None, value="ok"):
        self.failures = failures
        self.error = error or RuntimeError("boom")
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.value


def test_with_retry_backs_off_exponentially(sleeps):
    operation = Flaky(failures=10)

    with pytest.raises(NetworkError) as exc_info:
        asyncio.run(with_retry(operation, max_attempts=3, base_delay=1.0, context="One-way trip search"))

    assert operation.calls == 3
    assert sleeps == [1.0, 2.0]
    assert str(exc_info.value) == "One-way trip search failed after 3 attempts: boom"
    assert isinstance(exc_info.value.cause, RuntimeError)


def test_with_retry_returns_first_success(sleeps):
    operation = Flaky(failures=1, value=42)
    assert asyncio.run(with_retry(operation, max_attempts=3, base_delay=1.0)) == 42
    assert operation.calls == 2
    assert sleeps == [1.0]


def test_with_retry_does_not_retry_validation_errors(sleeps):
    operation = Flaky(failures=10, error=ValidationError("bad input"))
    with pytest.raises(ValidationError):
        asyncio.run(with_retry(operation, max_attempts=3))
    assert operation.calls == 1
    assert sleeps == []


def test_item_retry_reports_failure_as_value(sleeps):
    operation = Flaky(failures=10)
    result = asyncio.run(with_item_retry(operation, "2025-08-15", max_attempts=2, delay=2.0))
    assert result == Failed("boom")
    assert operation.calls == 2
    assert sleeps == [2.0]


def test_item_retry_success_after_one_failure(sleeps):
    operation = Flaky(failures=1, value="done")
    assert asyncio.run(with_item_retry(operation, "2025-08-15")) == Ok("done")


def test_with_timeout_passes_result_through():
    async def quick():
        return "fast"

    assert asyncio.run(with_timeout(quick(), 1, "quick")) == "fast"


def test_with_timeout_raises_network_error():
    async def run():
        with pytest.raises(NetworkError) as exc_info:
            await with_timeout(asyncio.sleep(5), 0.05, "Same-day trip search")
        assert str(exc_info.value) == "Same-day trip search timed out after 0.05s"

    asyncio.run(run())


def test_with_timeout_discards_late_failure():
    async def run():
        async def late_failure():
            await asyncio.sleep(0.1)
            raise RuntimeError("too late")

        with pytest.raises(NetworkError):
            await with_timeout(late_failure(), 0.01, "slow")
        # the abandoned task settles without an unretrieved-exception warning
        await asyncio.sleep(0.2)

    asyncio.run(run())
