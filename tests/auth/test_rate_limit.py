"""Tests for the in-memory rate limiter."""

from unittest.mock import MagicMock

from greenreceipt.auth.rate_limit import (
    InMemoryRateLimiter,
    RateLimitConfig,
    get_client_identifier,
)


class TestInMemoryRateLimiter:
    """Tests for InMemoryRateLimiter."""

    def test_allows_requests_under_limit(self):
        limiter = InMemoryRateLimiter()
        limit = RateLimitConfig(max_requests=3, window_seconds=60, block_seconds=120)

        for _ in range(3):
            allowed, retry_after = limiter.check_rate_limit("1.2.3.4", "login", limit)
            assert allowed is True
            assert retry_after is None

    def test_blocks_after_limit(self):
        """The request over the limit is refused and the client is blocked."""
        limiter = InMemoryRateLimiter()
        limit = RateLimitConfig(max_requests=2, window_seconds=60, block_seconds=120)

        limiter.check_rate_limit("1.2.3.4", "login", limit)
        limiter.check_rate_limit("1.2.3.4", "login", limit)
        allowed, retry_after = limiter.check_rate_limit("1.2.3.4", "login", limit)

        assert allowed is False
        assert retry_after == 120
        blocked, remaining = limiter.is_blocked("1.2.3.4", "login")
        assert blocked is True
        assert 0 < remaining <= 120

    def test_actions_and_clients_are_independent(self):
        limiter = InMemoryRateLimiter()
        limit = RateLimitConfig(max_requests=1, window_seconds=60, block_seconds=60)

        assert limiter.check_rate_limit("1.2.3.4", "login", limit)[0] is True
        assert limiter.check_rate_limit("1.2.3.4", "signup", limit)[0] is True
        assert limiter.check_rate_limit("5.6.7.8", "login", limit)[0] is True

    def test_reset_clears_block(self):
        limiter = InMemoryRateLimiter()
        limit = RateLimitConfig(max_requests=1, window_seconds=60, block_seconds=60)

        limiter.check_rate_limit("1.2.3.4", "login", limit)
        limiter.check_rate_limit("1.2.3.4", "login", limit)
        limiter.reset("1.2.3.4", "login")

        assert limiter.is_blocked("1.2.3.4", "login") == (False, None)
        assert limiter.check_rate_limit("1.2.3.4", "login", limit)[0] is True


class TestClientIdentifier:
    """Tests for get_client_identifier."""

    def _request(self, headers: dict, host: str = "10.0.0.1"):
        request = MagicMock()
        request.headers = headers
        request.client.host = host
        return request

    def test_prefers_forwarded_for(self):
        request = self._request({"x-forwarded-for": "203.0.113.5, 10.0.0.2"})
        assert get_client_identifier(request) == "203.0.113.5"

    def test_uses_real_ip(self):
        request = self._request({"x-real-ip": "203.0.113.9"})
        assert get_client_identifier(request) == "203.0.113.9"

    def test_falls_back_to_peer(self):
        assert get_client_identifier(self._request({})) == "10.0.0.1"
