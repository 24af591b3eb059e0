"""Unit tests for rate limiting functionality.

Tests rate limit configuration, key generation and the 429 handler.
"""

import json
from unittest.mock import MagicMock, patch

from slowapi.errors import RateLimitExceeded


class TestRateLimitConfiguration:
    """Test rate limit configuration values."""

    def test_rate_limit_constants_defined(self):
        """Test that rate limit constants are defined correctly."""
        from ppdo.api.ratelimit import (
            RATE_LIMIT_DEFAULT,
            RATE_LIMIT_REINDEX,
            RATE_LIMIT_SEARCH,
            RATE_LIMIT_SUGGEST,
        )

        assert RATE_LIMIT_DEFAULT == "100/minute"
        assert RATE_LIMIT_SEARCH == "30/minute"
        assert RATE_LIMIT_SUGGEST == "120/minute"
        assert RATE_LIMIT_REINDEX == "2/minute"

    def test_limiter_exists(self):
        """Test that global limiter is created."""
        from ppdo.api.ratelimit import limiter

        assert limiter is not None

    def test_create_limiter_can_be_disabled(self):
        from ppdo.api.ratelimit import _create_limiter

        assert _create_limiter(enabled=False).enabled is False


class TestRateLimitKeyGeneration:
    """Test rate limit key generation."""

    def test_get_rate_limit_key_with_user(self):
        """Test key generation for authenticated user."""
        from ppdo.api.ratelimit import _get_rate_limit_key

        mock_request = MagicMock()
        mock_request.state.user = MagicMock(id="user-123")
        mock_request.client.host = "192.168.1.1"

        assert _get_rate_limit_key(mock_request) == "user:user-123"

    def test_get_rate_limit_key_without_user(self):
        """Test key generation for unauthenticated request (uses IP)."""
        from ppdo.api.ratelimit import _get_rate_limit_key

        mock_request = MagicMock()
        mock_request.state = MagicMock(spec=[])  # No user attribute
        mock_request.client.host = "192.168.1.1"

        assert _get_rate_limit_key(mock_request) == "192.168.1.1"

    def test_get_rate_limit_key_user_is_none(self):
        """Test key generation when user is None."""
        from ppdo.api.ratelimit import _get_rate_limit_key

        mock_request = MagicMock()
        mock_request.state.user = None
        mock_request.client.host = "10.0.0.1"

        assert _get_rate_limit_key(mock_request) == "10.0.0.1"


class TestRateLimitExceededHandler:
    """Test custom rate limit exceeded handler."""

    def _create_mock_limit(self, limit_str: str) -> MagicMock:
        """Create a mock limit object that slowapi expects."""
        mock_limit = MagicMock()
        mock_limit.error_message = None
        mock_limit.__str__ = MagicMock(return_value=limit_str)
        return mock_limit

    def _handle(self, path: str, limit: str, retry_after: int | None = None):
        mock_request = MagicMock()
        mock_request.url.path = path
        mock_request.method = "GET"
        mock_request.state.user = MagicMock(id="user-123")

        exc = RateLimitExceeded(self._create_mock_limit(limit))
        if retry_after is not None:
            exc.retry_after = retry_after

        with patch("ppdo.api.ratelimit.logger"):
            from ppdo.api.ratelimit import rate_limit_exceeded_handler

            return rate_limit_exceeded_handler(mock_request, exc)

    def test_handler_returns_429(self):
        response = self._handle("/api/v1/search", "30/minute")

        assert response.status_code == 429

    def test_handler_returns_json_body(self):
        response = self._handle("/api/v1/search/suggestions", "120/minute")
        body = json.loads(response.body)

        assert body["error"] == "too_many_requests"
        assert "Too many requests" in body["message"]

    def test_handler_includes_retry_after_header(self):
        response = self._handle("/api/v1/search/reindex", "2/minute", retry_after=30)

        assert response.headers["Retry-After"] == "30"
