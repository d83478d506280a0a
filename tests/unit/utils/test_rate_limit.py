"""Tests for the client-side throttle and 429 header decoding."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from requests import PreparedRequest, Response, Session

from mcp_productiv.utils.rate_limit import (
    RateLimitConfig,
    ThrottledAdapter,
    TokenBucket,
    configure_rate_limiting,
    get_config_from_env,
    parse_rate_limit_headers,
    parse_retry_after,
)

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeMonotonic:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def fake_time():
    clock = FakeMonotonic()
    with patch("mcp_productiv.utils.rate_limit.time.monotonic", clock):
        yield clock


class TestGetConfigFromEnv:
    """Test the get_config_from_env function."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PRODUCTIV_RATE_LIMIT_RPS", raising=False)
        monkeypatch.delenv("PRODUCTIV_RATE_LIMIT_BURST", raising=False)

        config = get_config_from_env()

        assert config == RateLimitConfig(requests_per_second=10.0, burst_capacity=20)

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PRODUCTIV_RATE_LIMIT_RPS", "2.5")
        monkeypatch.setenv("PRODUCTIV_RATE_LIMIT_BURST", "4")

        config = get_config_from_env()

        assert config.requests_per_second == 2.5
        assert config.burst_capacity == 4

    def test_invalid_values_use_default(self, monkeypatch):
        monkeypatch.setenv("PRODUCTIV_RATE_LIMIT_RPS", "fast")
        monkeypatch.setenv("PRODUCTIV_RATE_LIMIT_BURST", "1.5")

        config = get_config_from_env()

        assert config.requests_per_second == 10.0
        assert config.burst_capacity == 20


class TestTokenBucket:
    """Test the TokenBucket class with a controlled clock."""

    def test_starts_full(self, fake_time):
        bucket = TokenBucket(RateLimitConfig(burst_capacity=3))
        assert bucket.tokens == 3.0
        assert bucket.get_wait_time() == 0.0

    def test_depletes_and_reports_wait(self, fake_time):
        bucket = TokenBucket(RateLimitConfig(burst_capacity=2, requests_per_second=4.0))

        assert bucket.try_acquire() is True
        assert bucket.try_acquire() is True
        assert bucket.try_acquire() is False
        assert bucket.get_wait_time() == pytest.approx(0.25)

    def test_refills_with_elapsed_time_up_to_capacity(self, fake_time):
        bucket = TokenBucket(RateLimitConfig(burst_capacity=2, requests_per_second=4.0))
        bucket.try_acquire()
        bucket.try_acquire()

        fake_time.now += 0.25
        assert bucket.try_acquire() is True

        fake_time.now += 60
        bucket._refill()
        assert bucket.tokens == 2.0

    def test_acquire_sleeps_until_token_available(self, fake_time):
        bucket = TokenBucket(RateLimitConfig(burst_capacity=1, requests_per_second=2.0))
        bucket.try_acquire()

        def advance(seconds):
            fake_time.now += seconds

        with patch("mcp_productiv.utils.rate_limit.time.sleep", side_effect=advance) as sleep:
            bucket.acquire()

        sleep.assert_called_once_with(pytest.approx(0.5))


class TestThrottledAdapter:
    """Test the ThrottledAdapter class."""

    def _send(self, adapter, status_code):
        request = MagicMock(spec=PreparedRequest)
        request.url = "https://api.example.com/v1/applications"
        upstream = MagicMock(spec=Response)
        upstream.status_code = status_code
        with patch.object(
            adapter.__class__.__bases__[0], "send", return_value=upstream
        ) as base_send:
            response = adapter.send(request)
        return response, base_send

    def test_takes_a_token_per_request(self):
        bucket = MagicMock(spec=TokenBucket)
        adapter = ThrottledAdapter(bucket)

        response, base_send = self._send(adapter, 200)

        assert response.status_code == 200
        bucket.acquire.assert_called_once()
        base_send.assert_called_once()

    def test_429_is_returned_without_retry(self):
        bucket = MagicMock(spec=TokenBucket)
        adapter = ThrottledAdapter(bucket)

        with patch("mcp_productiv.utils.rate_limit.logger") as mock_logger:
            response, base_send = self._send(adapter, 429)

        assert response.status_code == 429
        assert base_send.call_count == 1
        mock_logger.warning.assert_called_once()


class TestParseRetryAfter:
    def test_seconds(self):
        assert parse_retry_after("30", NOW) == datetime(
            2024, 5, 1, 12, 0, 30, tzinfo=timezone.utc
        )

    def test_http_date(self):
        assert parse_retry_after("Wed, 01 May 2024 12:05:00 GMT", NOW) == datetime(
            2024, 5, 1, 12, 5, 0, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize("value", [None, "", "soon"])
    def test_missing_or_invalid(self, value):
        assert parse_retry_after(value, NOW) is None


class TestParseRateLimitHeaders:
    def test_limit_and_epoch_reset(self):
        limit, reset_at = parse_rate_limit_headers(
            {"X-RateLimit-Limit": "100", "X-RateLimit-Reset": "1700000000"}
        )
        assert limit == 100
        assert reset_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_reset_header_wins_over_retry_after(self):
        _, reset_at = parse_rate_limit_headers(
            {"X-RateLimit-Reset": "1700000000", "Retry-After": "5"}, NOW
        )
        assert reset_at.year == 2023

    def test_falls_back_to_retry_after(self):
        limit, reset_at = parse_rate_limit_headers({"Retry-After": "5"}, NOW)
        assert limit is None
        assert reset_at == datetime(2024, 5, 1, 12, 0, 5, tzinfo=timezone.utc)

    def test_garbage_headers(self):
        assert parse_rate_limit_headers(
            {"X-RateLimit-Limit": "lots", "X-RateLimit-Reset": "later"}
        ) == (None, None)

    def test_no_headers(self):
        assert parse_rate_limit_headers({}) == (None, None)


class TestConfigureRateLimiting:
    def test_mounts_adapter_for_both_schemes(self):
        session = MagicMock(spec=Session)

        configure_rate_limiting(session, RateLimitConfig())

        prefixes = [c.args[0] for c in session.mount.call_args_list]
        assert prefixes == ["https://", "http://"]

    def test_returns_shared_bucket(self):
        session = Session()
        config = RateLimitConfig(requests_per_second=1.0, burst_capacity=1)

        bucket = configure_rate_limiting(session, config)

        https_adapter = session.get_adapter("https://api.example.com")
        http_adapter = session.get_adapter("http://api.example.com")
        assert isinstance(https_adapter, ThrottledAdapter)
        assert https_adapter is http_adapter
        assert https_adapter.rate_limiter is bucket
        assert bucket.config is config
