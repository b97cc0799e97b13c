"""Tests for the retry policy and remote error classification."""

import random
import time

import pytest
import requests
from unittest.mock import Mock

from model_manager.retry_policy import RetryPolicy
from utils.exceptions import PartialFailure
from utils.exceptions import ValidationError
from utils.exceptions import TerminalRemoteError
from utils.exceptions import TransientRemoteError
from utils.exceptions import classify_remote_error


def http_error(status_code: int) -> requests.HTTPError:
    response             = requests.Response()
    response.status_code = status_code

    return requests.HTTPError(f"{status_code} error", response=response)


class TestComputeDelay:
    def test_exponential_growth_without_jitter(self) -> None:
        policy = RetryPolicy(base_delay_ms=1000, backoff_multiplier=2.0, max_delay_ms=10000, jitter=0.0)

        assert policy.compute_delay(1) == 1.0
        assert policy.compute_delay(2) == 2.0
        assert policy.compute_delay(3) == 4.0

    def test_delay_is_capped(self) -> None:
        policy = RetryPolicy(base_delay_ms=1000, backoff_multiplier=2.0, max_delay_ms=10000, jitter=0.0)

        assert policy.compute_delay(10) == 10.0

    def test_jitter_stays_within_bounds(self) -> None:
        policy = RetryPolicy(base_delay_ms=1000, backoff_multiplier=2.0, max_delay_ms=10000, jitter=0.1)
        rng    = random.Random(42)

        for _ in range(100):
            delay = policy.compute_delay(2, rng)
            assert 1.8 <= delay <= 2.2


class TestExecute:
    """Retry loop behaviour for each error kind."""

    def test_transient_error_is_retried_until_success(self) -> None:
        sleeps = list()
        func   = Mock(side_effect=[requests.ConnectionError("connection reset"), "ok"])
        policy = RetryPolicy(max_attempts=3, base_delay_ms=100, jitter=0.0)

        result = policy.execute(func, operation="search_similar_clauses", sleep=sleeps.append)

        assert result == "ok"
        assert func.call_count == 2
        assert sleeps == [0.1]

    def test_exhausted_retries_raise_with_attempt_count(self) -> None:
        sleeps = list()
        func   = Mock(side_effect=requests.Timeout("read timed out"))
        policy = RetryPolicy(max_attempts=3, base_delay_ms=100, jitter=0.0)

        with pytest.raises(TransientRemoteError) as exc_info:
            policy.execute(func, operation="search_similar_clauses", sleep=sleeps.append, context={"clause_index": 4})

        assert func.call_count == 3
        assert len(sleeps) == 2
        assert exc_info.value.attempts == 3
        assert exc_info.value.context["service"] == "search_similar_clauses"
        assert exc_info.value.context["clause_index"] == 4

    def test_terminal_error_is_not_retried(self) -> None:
        sleeps = list()
        func   = Mock(side_effect=http_error(401))
        policy = RetryPolicy(max_attempts=5)

        with pytest.raises(TerminalRemoteError) as exc_info:
            policy.execute(func, operation="embeddings.create", sleep=sleeps.append)

        assert func.call_count == 1
        assert sleeps == []
        assert exc_info.value.scope == "provider"

    def test_validation_error_passes_through(self) -> None:
        func   = Mock(side_effect=ValidationError("bad input"))
        policy = RetryPolicy(max_attempts=5)

        with pytest.raises(ValidationError):
            policy.execute(func, operation="embeddings.create", sleep=lambda s: None)

        assert func.call_count == 1

    def test_no_retry_after_deadline(self) -> None:
        func   = Mock(side_effect=requests.ConnectionError("refused"))
        policy = RetryPolicy(max_attempts=5)

        with pytest.raises(TransientRemoteError):
            policy.execute(func, operation="embeddings.create", sleep=lambda s: None, deadline=time.monotonic() - 1)

        assert func.call_count == 1

    def test_custom_retryable_predicate(self) -> None:
        func   = Mock(side_effect=requests.ConnectionError("refused"))
        policy = RetryPolicy(max_attempts=5, retryable=lambda error: False)

        with pytest.raises(TransientRemoteError):
            policy.execute(func, operation="embeddings.create", sleep=lambda s: None)

        assert func.call_count == 1

    def test_with_overrides_returns_copy(self) -> None:
        policy   = RetryPolicy(max_attempts=3)
        modified = policy.with_overrides({"max_attempts": 6}, jitter=0.0)

        assert modified.max_attempts == 6
        assert modified.jitter == 0.0
        assert policy.max_attempts == 3


class TestClassifyRemoteError:
    @pytest.mark.parametrize("status_code, expected, scope",
                             [(401, TerminalRemoteError, "provider"),
                              (403, TerminalRemoteError, "provider"),
                              (400, TerminalRemoteError, "item"),
                              (429, TransientRemoteError, None),
                              (503, TransientRemoteError, None),
                             ])
    def test_http_status_mapping(self, status_code, expected, scope) -> None:
        error = classify_remote_error(http_error(status_code), service="search_similar_clauses")

        assert type(error) is expected
        assert error.context["service"] == "search_similar_clauses"

        if scope is not None:
            assert error.scope == scope

    def test_message_markers(self) -> None:
        quota   = classify_remote_error(RuntimeError("insufficient_quota: billing limit reached"), service="embeddings.create")
        content = classify_remote_error(ValueError("content_policy_violation"), service="embeddings.create")
        timeout = classify_remote_error(TimeoutError("timed out"), service="embeddings.create")

        assert isinstance(quota, TerminalRemoteError) and quota.scope == "provider"
        assert isinstance(content, TerminalRemoteError) and content.scope == "item"
        assert isinstance(timeout, TransientRemoteError)

    def test_unknown_errors_are_transient(self) -> None:
        error = classify_remote_error(RuntimeError("something odd"), service="embeddings.create", attempts=2)

        assert isinstance(error, TransientRemoteError)
        assert error.attempts == 2
        assert error.retryable

    def test_partial_failure_inherits_cause_context(self) -> None:
        cause   = TerminalRemoteError("rejected", service="embeddings.create", scope="item")
        failure = PartialFailure("item failed", index=3, operation="embeddings.create", cause=cause)

        assert failure.context["index"] == 3
        assert failure.context["service"] == "embeddings.create"
        assert failure.context["scope"] == "item"
        assert failure.to_dict()["error_type"] == "PartialFailure"
