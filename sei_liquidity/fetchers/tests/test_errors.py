"""
Tests for error classification and retry policy.
"""

import pytest

from sei_liquidity.fetchers.errors import (
    ErrorHandler,
    InvalidInputError,
    MalformedRecordError,
    RateLimitError,
    UpstreamUnavailableError,
)


@pytest.fixture
def handler():
    return ErrorHandler()


class TestErrorTypes:
    def test_rate_limit_is_upstream_unavailable(self):
        error = RateLimitError("slow down", retry_after=3)

        assert isinstance(error, UpstreamUnavailableError)
        assert error.status == 429
        assert error.retry_after == 3

    def test_upstream_status(self):
        assert UpstreamUnavailableError("boom", status=503).status == 503

    def test_shared_with_data_model(self):
        from sei_liquidity.core import errors as core_errors

        assert MalformedRecordError is core_errors.MalformedRecordError
        assert InvalidInputError is core_errors.InvalidInputError


class TestClassification:
    @pytest.mark.parametrize(
        "error, category",
        [
            (RateLimitError("limited"), "rate_limit"),
            (Exception("429 Too Many Requests"), "rate_limit"),
            (MalformedRecordError("bad log"), "validation"),
            (InvalidInputError("bad block"), "validation"),
            (ConnectionError("reset"), "network"),
            (TimeoutError(), "network"),
            (Exception("503 Service Unavailable"), "network"),
            (Exception("invalid params"), "validation"),
            (Exception("something odd"), "unknown"),
        ],
    )
    def test_classify(self, handler, error, category):
        assert handler.classify_error(error) == category


class TestRetryPolicy:
    def test_network_errors_retry(self, handler):
        assert handler.should_retry(ConnectionError("reset"), attempt=0, max_retries=3) is True

    def test_last_attempt_does_not_retry(self, handler):
        assert handler.should_retry(ConnectionError("reset"), attempt=2, max_retries=3) is False

    def test_validation_errors_never_retry(self, handler):
        assert handler.should_retry(InvalidInputError("bad"), attempt=0, max_retries=3) is False

    def test_exponential_backoff(self, handler):
        error = ConnectionError("reset")

        assert handler.get_retry_delay(error, 0, base_delay=1.0) == 1.0
        assert handler.get_retry_delay(error, 2, base_delay=1.0) == 4.0
        assert handler.get_retry_delay(error, 10, base_delay=1.0) == 60

    def test_retry_after_wins(self, handler):
        assert handler.get_retry_delay(RateLimitError("limited", retry_after=7), 0) == 7

    def test_rate_limit_doubles_delay(self, handler):
        assert handler.get_retry_delay(RateLimitError("limited"), 1, base_delay=1.0) == 4.0
