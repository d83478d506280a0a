"""Base client module for Productiv API interactions."""

import logging
from typing import Any

import requests
from requests import Response, Session

from mcp_productiv.exceptions import (
    NotFoundError,
    UnauthorizedError,
    RateLimitExceededError,
    UpstreamError,
)
from mcp_productiv.utils.logging import (
    get_masked_session_headers,
    log_config_param,
    mask_sensitive,
)
from mcp_productiv.utils.rate_limit import configure_rate_limiting, parse_rate_limit_headers

from .config import ProductivConfig

# Configure logging
logger = logging.getLogger("mcp-productiv.client")


class ProductivClient:
    """Blocking HTTP client for the Productiv REST API.

    Every non-2xx answer and every transport failure is converted into the
    ``mcp_productiv.exceptions`` taxonomy here, so nothing above this layer
    sees a ``requests`` exception.
    """

    config: ProductivConfig

    def __init__(
        self, config: ProductivConfig | None = None, session: Session | None = None
    ) -> None:
        """Initialize the Productiv client with configuration options.

        Args:
            config: Optional configuration object (will use env vars if not provided)
            session: Optional pre-built session, used as-is (tests pass a mock)

        Raises:
            ValueError: If configuration is invalid or the API key is missing
        """
        self.config = config or ProductivConfig.from_env()

        if session is not None:
            self.session = session
            return

        logger.debug(
            f"Initializing Productiv client. URL: {self.config.url}, "
            f"API key (masked): {mask_sensitive(self.config.api_key)}"
        )
        self.session = Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )
        self.session.verify = self.config.ssl_verify
        if not self.config.ssl_verify:
            logger.warning(
                "SSL verification disabled for Productiv. This is insecure and "
                "should only be used in testing environments."
            )

        # Proxy configuration
        proxies = {}
        if self.config.http_proxy:
            proxies["http"] = self.config.http_proxy
        if self.config.https_proxy:
            proxies["https"] = self.config.https_proxy
        if proxies:
            self.session.proxies.update(proxies)
            for k, v in proxies.items():
                log_config_param(
                    logger, "Productiv", f"{k.upper()}_PROXY", v, sensitive=True
                )

        configure_rate_limiting(self.session, self.config.rate_limit)

        if self.config.custom_headers:
            self._apply_custom_headers()

        logger.debug(
            f"Productiv client initialized. Headers: "
            f"{get_masked_session_headers(dict(self.session.headers))}"
        )

    def _apply_custom_headers(self) -> None:
        """Apply custom headers to the session."""
        logger.debug(
            f"Applying {len(self.config.custom_headers)} custom headers to Productiv session"
        )
        for header_name, header_value in self.config.custom_headers.items():
            self.session.headers[header_name] = header_value
            logger.debug(f"Applied custom header: {header_name}")

    def close(self) -> None:
        self.session.close()

    def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        resource_kind: str = "Resource",
        resource_id: str | None = None,
    ) -> dict[str, Any]:
        """Issue a GET request and return the decoded JSON envelope.

        Args:
            path: API path starting with ``/v1``
            params: Optional query parameters
            resource_kind: Name used in ``NotFoundError`` (e.g. "Application")
            resource_id: Identifier used in ``NotFoundError``

        Returns:
            The decoded JSON object.

        Raises:
            NotFoundError: On HTTP 404
            UnauthorizedError: On HTTP 401 or 403
            RateLimitExceededError: On HTTP 429
            UpstreamError: On any other failure
        """
        url = f"{self.config.url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.config.timeout)
        except requests.Timeout as e:
            logger.error(f"Timeout calling Productiv API {path}: {e}")
            raise UpstreamError(f"Request to {path} timed out", cause=e) from e
        except requests.RequestException as e:
            logger.error(f"Error calling Productiv API {path}: {e}")
            raise UpstreamError(f"Request to {path} failed", cause=e) from e

        self._raise_for_status(response, path, resource_kind, resource_id)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(
                f"Invalid JSON in response from {path}",
                status_code=response.status_code,
                cause=e,
            ) from e
        if not isinstance(data, dict):
            raise UpstreamError(
                f"Unexpected response shape from {path}: expected an object",
                status_code=response.status_code,
            )
        return data

    def _raise_for_status(
        self,
        response: Response,
        path: str,
        resource_kind: str,
        resource_id: str | None,
    ) -> None:
        status = response.status_code
        if status < 400:
            return

        if status == 404:
            raise NotFoundError(resource_kind, resource_id or path)
        if status in (401, 403):
            raise UnauthorizedError(
                self._error_reason(response) or "Invalid or missing API key"
            )
        if status == 429:
            limit, reset_at = parse_rate_limit_headers(response.headers)
            raise RateLimitExceededError(limit=limit, reset_at=reset_at)

        reason = self._error_reason(response) or response.reason or "Unknown error"
        logger.error(f"Productiv API {path} returned HTTP {status}: {reason}")
        raise UpstreamError(f"HTTP {status} from {path}: {reason}", status_code=status)

    @staticmethod
    def _error_reason(response: Response) -> str | None:
        """Pull a message out of an error body, if the API sent one."""
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            for key in ("message", "error", "detail"):
                value = body.get(key)
                if isinstance(value, str) and value:
                    return value
        return None
