"""Tests for the completion backoff policy."""

import pytest

from llm_market_assistant.core.errors import AuthError, NetworkError, RateLimitError
from llm_market_assistant.infra.llm_infra.retry import BackoffPolicy


class TestBackoffPolicy:
    def test_default_delays(self):
        policy = BackoffPolicy()
        assert [policy.delay_for(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 5.0]

    def test_delay_capped(self):
        policy = BackoffPolicy(base_delay=2.0, max_delay=3.0)
        assert policy.delay_for(5) == 3.0

    def test_should_retry_respects_budget(self):
        policy = BackoffPolicy(max_attempts=3)
        error = NetworkError("down")
        assert policy.should_retry(1, error)
        assert policy.should_retry(2, error)
        assert not policy.should_retry(3, error)

    def test_rate_limit_is_retryable(self):
        assert BackoffPolicy().should_retry(1, RateLimitError("slow down", status_code=429))

    def test_auth_never_retried(self):
        assert not BackoffPolicy().should_retry(1, AuthError("bad key", status_code=401))

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_attempts": 0}, {"base_delay": -1.0}, {"max_delay": -0.5}],
    )
    def test_invalid_policy(self, kwargs):
        with pytest.raises(ValueError):
            BackoffPolicy(**kwargs)

    def test_attempt_index_is_one_based(self):
        with pytest.raises(ValueError):
            BackoffPolicy().delay_for(0)
