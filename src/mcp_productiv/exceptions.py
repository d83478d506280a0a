"""Exceptions raised by the Productiv MCP server."""

from datetime import datetime
from typing import Any


class ProductivError(Exception):
    """Base class for all errors surfaced to the tool layer.

    Attributes:
        code: Stable machine-readable error code
        message: Human-readable description
        details: Extra structured data for the caller
    """

    code = "PRODUCTIV_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the structured error payload returned to the host."""
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(ProductivError):
    """A requested resource does not exist upstream."""

    code = "NOT_FOUND"

    def __init__(
        self,
        resource_kind: str,
        identifier: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.resource_kind = resource_kind
        self.identifier = identifier
        merged = {"resource": resource_kind, "id": identifier}
        merged.update(details or {})
        super().__init__(
            message or f"{resource_kind} not found with ID: {identifier}", merged
        )


class UnauthorizedError(ProductivError):
    """The API key was rejected by the upstream API."""

    code = "UNAUTHORIZED"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Unauthorized: {reason}")


class RateLimitExceededError(ProductivError):
    """The upstream API answered with HTTP 429."""

    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, limit: int | None = None, reset_at: datetime | None = None) -> None:
        self.limit = limit
        self.reset_at = reset_at
        if limit is not None:
            message = f"Rate limit exceeded. Maximum {limit} requests"
        else:
            message = "Rate limit exceeded"
        details: dict[str, Any] = {}
        if limit is not None:
            details["limit"] = limit
        if reset_at is not None:
            details["resetAt"] = reset_at.isoformat()
        super().__init__(message, details)


class UpstreamError(ProductivError):
    """Any other failure talking to the upstream API."""

    code = "UPSTREAM_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.status_code = status_code
        self.cause = cause
        details: dict[str, Any] = {}
        if status_code is not None:
            details["status"] = status_code
        if cause is not None:
            details["cause"] = f"{type(cause).__name__}: {cause}"
        super().__init__(f"Upstream error: {message}", details)


class InvalidInputError(ProductivError):
    """A tool argument failed validation."""

    code = "INVALID_INPUT"

    def __init__(self, param: str, reason: str) -> None:
        self.param = param
        self.reason = reason
        super().__init__(
            f"Invalid parameter '{param}': {reason}", {"param": param}
        )


class NotConfiguredError(ProductivError):
    """The server started without a usable Productiv configuration."""

    code = "NOT_CONFIGURED"

    def __init__(self, message: str) -> None:
        super().__init__(message)
