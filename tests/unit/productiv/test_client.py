"""Tests for the Productiv HTTP client and its error mapping."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests
from requests import Response, Session

from mcp_productiv.exceptions import (
    NotFoundError,
    RateLimitExceededError,
    UnauthorizedError,
    UpstreamError,
)
from mcp_productiv.productiv.client import ProductivClient
from mcp_productiv.productiv.config import ProductivConfig
from mcp_productiv.utils.rate_limit import ThrottledAdapter


def make_response(status_code=200, json_data=None, headers=None, reason="OK"):
    """Create a mock requests Response."""
    response = MagicMock(spec=Response)
    response.status_code = status_code
    response.headers = headers or {}
    response.reason = reason
    if json_data is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def config():
    return ProductivConfig(api_key="secret-api-key-1234", url="https://api.example.com/")


@pytest.fixture
def mock_session():
    return MagicMock(spec=Session)


@pytest.fixture
def client(config, mock_session):
    return ProductivClient(config, session=mock_session)


class TestSessionSetup:
    """Test session configuration when no session is injected."""

    def test_bearer_token_and_headers(self, config):
        client = ProductivClient(config)

        assert client.session.headers["Authorization"] == "Bearer secret-api-key-1234"
        assert client.session.headers["Content-Type"] == "application/json"

    def test_throttle_adapter_mounted(self, config):
        client = ProductivClient(config)

        assert isinstance(client.session.get_adapter("https://api.example.com"), ThrottledAdapter)

    def test_custom_headers_and_proxies(self):
        config = ProductivConfig(
            api_key="k",
            custom_headers={"X-Tenant": "acme"},
            https_proxy="http://proxy:3128",
            ssl_verify=False,
        )
        client = ProductivClient(config)

        assert client.session.headers["X-Tenant"] == "acme"
        assert client.session.proxies["https"] == "http://proxy:3128"
        assert client.session.verify is False

    def test_missing_api_key_from_env(self, monkeypatch):
        monkeypatch.delenv("PRODUCTIV_API_KEY", raising=False)
        with pytest.raises(ValueError, match="PRODUCTIV_API_KEY"):
            ProductivClient()


class TestGet:
    def test_success_returns_json(self, client, mock_session):
        mock_session.get.return_value = make_response(json_data={"applications": []})

        data = client.get("/v1/applications", params={"x": 1})

        assert data == {"applications": []}
        mock_session.get.assert_called_once_with(
            "https://api.example.com/v1/applications", params={"x": 1}, timeout=30.0
        )

    def test_404_maps_to_not_found(self, client, mock_session):
        mock_session.get.return_value = make_response(404, reason="Not Found")

        with pytest.raises(NotFoundError) as exc_info:
            client.get("/v1/applications/abc", resource_kind="Application", resource_id="abc")

        assert exc_info.value.message == "Application not found with ID: abc"
        assert exc_info.value.code == "NOT_FOUND"

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_failures_map_to_unauthorized(self, client, mock_session, status):
        mock_session.get.return_value = make_response(
            status, json_data={"message": "Invalid API key"}
        )

        with pytest.raises(UnauthorizedError) as exc_info:
            client.get("/v1/applications")

        assert exc_info.value.reason == "Invalid API key"

    def test_401_without_body_uses_default_reason(self, client, mock_session):
        mock_session.get.return_value = make_response(401)

        with pytest.raises(UnauthorizedError, match="Invalid or missing API key"):
            client.get("/v1/applications")

    def test_429_decodes_reset_header(self, client, mock_session):
        mock_session.get.return_value = make_response(
            429,
            headers={"X-RateLimit-Limit": "100", "X-RateLimit-Reset": "1700000000"},
        )

        with pytest.raises(RateLimitExceededError) as exc_info:
            client.get("/v1/applications")

        error = exc_info.value
        assert error.limit == 100
        assert error.reset_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert error.to_dict()["details"]["resetAt"] == "2023-11-14T22:13:20+00:00"
        assert error.message == "Rate limit exceeded. Maximum 100 requests"

    def test_429_without_headers(self, client, mock_session):
        mock_session.get.return_value = make_response(429)

        with pytest.raises(RateLimitExceededError) as exc_info:
            client.get("/v1/applications")

        assert exc_info.value.limit is None
        assert exc_info.value.reset_at is None

    def test_500_maps_to_upstream_error(self, client, mock_session):
        mock_session.get.return_value = make_response(
            500, json_data={"error": "boom"}, reason="Internal Server Error"
        )

        with pytest.raises(UpstreamError) as exc_info:
            client.get("/v1/contracts")

        assert exc_info.value.status_code == 500
        assert "boom" in exc_info.value.message

    def test_timeout_maps_to_upstream_error(self, client, mock_session):
        mock_session.get.side_effect = requests.Timeout("read timed out")

        with pytest.raises(UpstreamError, match="timed out") as exc_info:
            client.get("/v1/contracts")

        assert isinstance(exc_info.value.cause, requests.Timeout)

    def test_connection_error_maps_to_upstream_error(self, client, mock_session):
        mock_session.get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(UpstreamError, match="failed"):
            client.get("/v1/contracts")

    def test_invalid_json_maps_to_upstream_error(self, client, mock_session):
        mock_session.get.return_value = make_response(200)

        with pytest.raises(UpstreamError, match="Invalid JSON"):
            client.get("/v1/contracts")

    def test_non_object_json_maps_to_upstream_error(self, client, mock_session):
        mock_session.get.return_value = make_response(200, json_data=[1, 2])

        with pytest.raises(UpstreamError, match="expected an object"):
            client.get("/v1/contracts")

    def test_close(self, client, mock_session):
        client.close()
        mock_session.close.assert_called_once()
