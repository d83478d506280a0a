"""Rate limiting utilities for the Productiv API.

Outgoing requests are throttled client-side with a token bucket. Nothing
here retries: when the API still answers HTTP 429 the response is handed
back untouched and the client turns it into ``RateLimitExceededError``
using :func:`parse_rate_limit_headers`.
"""

import logging
import os
import time
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from threading import Lock

from requests import PreparedRequest, Response, Session
from requests.adapters import HTTPAdapter

logger = logging.getLogger("mcp-productiv.rate_limit")


@dataclass
class RateLimitConfig:
    """Configuration for client-side throttling.

    Attributes:
        requests_per_second: Rate at which tokens are refilled (default 10.0)
        burst_capacity: Maximum number of tokens in the bucket (default 20)
    """

    requests_per_second: float = 10.0
    burst_capacity: int = 20


def get_config_from_env() -> RateLimitConfig:
    """Load throttle configuration from environment variables.

    Environment Variables:
        PRODUCTIV_RATE_LIMIT_RPS: Requests per second (default 10.0)
        PRODUCTIV_RATE_LIMIT_BURST: Burst capacity (default 20)
    """
    config = RateLimitConfig()

    rps = os.getenv("PRODUCTIV_RATE_LIMIT_RPS")
    if rps:
        try:
            config.requests_per_second = float(rps)
        except ValueError:
            logger.warning(
                f"Invalid float value for PRODUCTIV_RATE_LIMIT_RPS: {rps}, using default"
            )

    burst = os.getenv("PRODUCTIV_RATE_LIMIT_BURST")
    if burst:
        try:
            config.burst_capacity = int(burst)
        except ValueError:
            logger.warning(
                f"Invalid int value for PRODUCTIV_RATE_LIMIT_BURST: {burst}, "
                f"using default"
            )

    return config


class TokenBucket:
    """Token bucket limiter shared by every request of one session.

    Attributes:
        config: Throttle configuration
        tokens: Current number of available tokens
        last_refill: Timestamp of last token refill
    """

    def __init__(self, config: RateLimitConfig) -> None:
        self.config = config
        self.tokens: float = float(config.burst_capacity)
        self.last_refill: float = time.monotonic()
        self._lock = Lock()

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self.last_refill
        self.tokens = min(
            self.config.burst_capacity,
            self.tokens + elapsed * self.config.requests_per_second,
        )
        self.last_refill = now

    def get_wait_time(self) -> float:
        """Seconds until the next token is available, 0.0 if one is ready."""
        with self._lock:
            self._refill()
            if self.tokens >= 1.0:
                return 0.0
            return (1.0 - self.tokens) / self.config.requests_per_second

    def try_acquire(self) -> bool:
        """Take a token without waiting.

        Returns:
            True if a token was acquired, False otherwise.
        """
        with self._lock:
            self._refill()
            if self.tokens >= 1.0:
                self.tokens -= 1.0
                return True
            return False

    def acquire(self) -> None:
        """Take a token, sleeping until one is available."""
        while True:
            wait_time = self.get_wait_time()
            if wait_time <= 0:
                if self.try_acquire():
                    return
            else:
                time.sleep(wait_time)


class ThrottledAdapter(HTTPAdapter):
    """HTTP adapter that waits for a bucket token before each send."""

    def __init__(self, rate_limiter: TokenBucket, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.rate_limiter = rate_limiter

    def send(
        self,
        request: PreparedRequest,
        stream: bool = False,  # noqa: FBT001, FBT002
        timeout: float | tuple[float, float] | None = None,
        verify: bool | str = True,  # noqa: FBT001, FBT002
        cert: str | tuple[str, str] | None = None,
        proxies: dict[str, str] | None = None,
    ) -> Response:
        self.rate_limiter.acquire()
        logger.debug(f"Sending request to {request.url}")
        response = super().send(
            request,
            stream=stream,
            timeout=timeout,
            verify=verify,
            cert=cert,
            proxies=proxies,
        )
        if response.status_code == 429:
            logger.warning(f"Rate limited (429) by upstream for {request.url}")
        return response


def parse_retry_after(value: str | None, now: datetime | None = None) -> datetime | None:
    """Decode a Retry-After header into an absolute UTC timestamp.

    Both forms are accepted: a delay in seconds and an HTTP-date.
    """
    if not value:
        return None
    now = now or datetime.now(timezone.utc)
    try:
        return now + timedelta(seconds=float(value))
    except ValueError:
        pass
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.debug(f"Could not parse Retry-After header: {value}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_rate_limit_headers(
    headers: Mapping[str, str], now: datetime | None = None
) -> tuple[int | None, datetime | None]:
    """Extract the request limit and reset time from a 429 response.

    ``X-RateLimit-Reset`` carries epoch seconds and wins over
    ``Retry-After`` when both are present.

    Returns:
        Tuple of (limit or None, reset timestamp in UTC or None).
    """
    limit: int | None = None
    raw_limit = headers.get("X-RateLimit-Limit")
    if raw_limit:
        try:
            limit = int(raw_limit)
        except ValueError:
            logger.debug(f"Could not parse X-RateLimit-Limit header: {raw_limit}")

    reset_at: datetime | None = None
    raw_reset = headers.get("X-RateLimit-Reset")
    if raw_reset:
        try:
            reset_at = datetime.fromtimestamp(float(raw_reset), tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            logger.debug(f"Could not parse X-RateLimit-Reset header: {raw_reset}")
    if reset_at is None:
        reset_at = parse_retry_after(headers.get("Retry-After"), now)

    return limit, reset_at


def configure_rate_limiting(
    session: Session, config: RateLimitConfig | None = None
) -> TokenBucket:
    """Mount a :class:`ThrottledAdapter` on a session for HTTP and HTTPS.

    Args:
        session: The requests Session to configure
        config: Throttle configuration (read from the environment if None)

    Returns:
        The token bucket backing the adapter.
    """
    config = config or get_config_from_env()
    bucket = TokenBucket(config)
    adapter = ThrottledAdapter(bucket)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    logger.debug(
        f"Configured throttling: {config.requests_per_second} RPS, "
        f"burst {config.burst_capacity}"
    )
    return bucket
