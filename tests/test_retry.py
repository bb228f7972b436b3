import time

import pytest

from resume_ingest.core.errors import ServiceQuotaExceeded, ServiceTimeout
from resume_ingest.core.retry import call_with_retry


class Flaky:
    def __init__(self, failures, error_cls=ServiceTimeout):
        self.failures = failures
        self.error_cls = error_cls
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error_cls("boom", service="test")
        return "ok"


def test_retries_with_exponential_backoff():
    sleeps = []
    fn = Flaky(failures=2)
    assert call_with_retry(fn, attempts=3, initial_delay=0.5, max_delay=4.0, sleep=sleeps.append) == "ok"
    assert fn.calls == 3
    assert sleeps == [0.5, 1.0]


def test_backoff_is_capped():
    sleeps = []
    fn = Flaky(failures=4)
    call_with_retry(fn, attempts=5, initial_delay=1.0, max_delay=2.5, sleep=sleeps.append)
    assert sleeps == [1.0, 2.0, 2.5, 2.5]


def test_gives_up_after_attempts():
    fn = Flaky(failures=10)
    with pytest.raises(ServiceTimeout):
        call_with_retry(fn, attempts=3, sleep=lambda s: None)
    assert fn.calls == 3


def test_non_retryable_raises_immediately():
    fn = Flaky(failures=1, error_cls=ServiceQuotaExceeded)
    with pytest.raises(ServiceQuotaExceeded):
        call_with_retry(fn, attempts=3, sleep=lambda s: None)
    assert fn.calls == 1


def test_other_exceptions_propagate():
    def broken():
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        call_with_retry(broken, sleep=lambda s: None)


def test_no_sleep_past_deadline():
    sleeps = []
    fn = Flaky(failures=1)
    with pytest.raises(ServiceTimeout):
        call_with_retry(fn, attempts=3, initial_delay=5.0, deadline=time.monotonic() + 1.0, sleep=sleeps.append)
    assert sleeps == []
    assert fn.calls == 1
