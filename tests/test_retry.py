import time

import pytest

from rss_aggregator.context import FetchContext
from rss_aggregator.exceptions import FetchCancelled, ParseError, RetriableError, TransportError
from rss_aggregator.retry import RetryPolicy

from conftest import RecordingContext


class Flaky:
    """Raises the queued errors in order, then returns `result`."""

    def __init__(self, errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.attempts = 0

    def __call__(self):
        self.attempts += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


def rate_limited(seconds):
    return RetriableError(TransportError("HTTP 429", status_code=429), seconds)


class TestRetryPolicy:

    def test_success_first_attempt(self):
        ctx = RecordingContext()
        fn = Flaky([])
        assert RetryPolicy().run(fn, ctx) == "ok"
        assert fn.attempts == 1
        assert ctx.waits == []

    def test_honours_retry_after(self):
        ctx = RecordingContext()
        fn = Flaky([rate_limited(2), rate_limited(7)])

        assert RetryPolicy(base_delay=0.01).run(fn, ctx) == "ok"

        assert fn.attempts == 3
        assert ctx.waits == [2, 7]

    def test_really_waits_retry_after(self):
        fn = Flaky([rate_limited(2)])
        start = time.monotonic()

        assert RetryPolicy().run(fn, FetchContext()) == "ok"

        assert fn.attempts == 2
        assert time.monotonic() - start >= 2

    def test_terminal_error_not_retried(self):
        ctx = RecordingContext()
        fn = Flaky([ParseError("bad date")])

        with pytest.raises(ParseError):
            RetryPolicy().run(fn, ctx)

        assert fn.attempts == 1
        assert ctx.waits == []

    def test_exhaustion_surfaces_cause(self):
        ctx = RecordingContext()
        fn = Flaky([rate_limited(1)] * 3)

        with pytest.raises(TransportError) as exc_info:
            RetryPolicy(max_attempts=3).run(fn, ctx)

        assert not isinstance(exc_info.value, RetriableError)
        assert exc_info.value.status_code == 429
        assert fn.attempts == 3
        assert ctx.waits == [1, 1]

    def test_exponential_backoff_for_configured_errors(self):
        ctx = RecordingContext()
        fn = Flaky([ConnectionError("reset")] * 4)
        policy = RetryPolicy(max_attempts=5, base_delay=0.5, max_delay=3.0, retry_on=(ConnectionError,))

        assert policy.run(fn, ctx) == "ok"

        assert ctx.waits == [0.5, 1.0, 2.0, 3.0]

    def test_backoff_is_monotonic_and_bounded(self):
        policy = RetryPolicy(base_delay=0.1, max_delay=10.0)
        delays = [policy.delay_for(n, ValueError()) for n in range(1, 20)]
        assert delays == sorted(delays)
        assert max(delays) == 10.0

    def test_cancelled_during_wait(self):
        ctx = FetchContext()
        ctx.cancel("client went away")
        fn = Flaky([rate_limited(30)])

        with pytest.raises(FetchCancelled, match="client went away"):
            RetryPolicy().run(fn, ctx)

        assert fn.attempts == 1

    def test_cancellation_is_never_retried(self):
        fn = Flaky([FetchCancelled("gone")])
        policy = RetryPolicy(retry_on=(Exception,))

        with pytest.raises(FetchCancelled):
            policy.run(fn, RecordingContext())

        assert fn.attempts == 1

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_retry_after_must_be_positive(self):
        with pytest.raises(ValueError):
            RetriableError(TransportError("HTTP 429"), 0)
