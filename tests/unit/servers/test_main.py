"""Tests for main server wiring, lifespan and dependency lookup."""

from unittest.mock import MagicMock

import pytest
from fastmcp import Client

from mcp_productiv.exceptions import NotConfiguredError
from mcp_productiv.productiv import ProductivConfig, ProductivServices
from mcp_productiv.servers.context import MainAppContext
from mcp_productiv.servers.dependencies import get_productiv_services
from mcp_productiv.servers.main import (
    create_main_server,
    main_lifespan,
    parse_enabled_toolsets,
)


class TestParseEnabledToolsets:
    @pytest.mark.parametrize("raw", [None, "", "  ", "all", "contracts,ALL"])
    def test_all(self, raw):
        assert parse_enabled_toolsets(raw) == ["all"]

    def test_subset_in_input_order(self):
        assert parse_enabled_toolsets(" Contracts , applications,contracts") == [
            "contracts",
            "applications",
        ]

    def test_unknown_names_are_dropped(self, caplog):
        assert parse_enabled_toolsets("applications,billing") == ["applications"]
        assert "billing" in caplog.text

    def test_only_unknown_names_enable_everything(self):
        assert parse_enabled_toolsets("billing") == ["all"]


def make_context(lifespan_context):
    ctx = MagicMock()
    ctx.request_context.lifespan_context = lifespan_context
    return ctx


class TestGetProductivServices:
    @pytest.mark.anyio
    async def test_returns_services(self):
        services = MagicMock(spec=ProductivServices)
        ctx = make_context({"app_lifespan_context": MainAppContext(productiv=services)})

        assert await get_productiv_services(ctx) is services

    @pytest.mark.anyio
    async def test_missing_lifespan_context(self):
        with pytest.raises(NotConfiguredError, match="Application context"):
            await get_productiv_services(make_context({}))

    @pytest.mark.anyio
    async def test_not_configured(self):
        ctx = make_context({"app_lifespan_context": MainAppContext()})

        with pytest.raises(NotConfiguredError, match="PRODUCTIV_API_KEY"):
            await get_productiv_services(ctx)


class TestMainLifespan:
    @pytest.mark.anyio
    async def test_builds_and_closes_services(self, monkeypatch):
        monkeypatch.setenv("PRODUCTIV_API_KEY", "test-key")

        async with main_lifespan(MagicMock()) as state:
            app_context = state["app_lifespan_context"]
            services = app_context.productiv
            assert isinstance(services, ProductivServices)
            assert services.config.api_key == "test-key"
            services.client.session = MagicMock()
            session = services.client.session

        session.close.assert_called_once()

    @pytest.mark.anyio
    async def test_missing_api_key_leaves_services_unset(self, monkeypatch):
        monkeypatch.delenv("PRODUCTIV_API_KEY", raising=False)

        async with main_lifespan(MagicMock()) as state:
            app_context = state["app_lifespan_context"]
            assert app_context.productiv is None


class TestProductivServices:
    def test_instances_do_not_share_state(self):
        config = ProductivConfig(api_key="k")

        first = ProductivServices.from_config(config, client=MagicMock(config=config))
        second = ProductivServices.from_config(config, client=MagicMock(config=config))

        assert first.cache is not second.cache
        assert first.gateway.cache is first.cache
        assert first.resolver.gateway is first.gateway
        assert first.analyzer.gateway is first.gateway


async def list_tool_names(server):
    async with Client(server) as client:
        tools = await client.list_tools()
    return sorted(tool.name for tool in tools)


class TestCreateMainServer:
    @pytest.fixture(autouse=True)
    def unconfigured(self, monkeypatch):
        monkeypatch.delenv("PRODUCTIV_API_KEY", raising=False)

    @pytest.mark.anyio
    async def test_all_toolsets(self):
        names = await list_tool_names(
            create_main_server(enabled_toolsets=["all"], read_only=False)
        )

        assert len(names) == 13
        assert "clear_cache" in names
        assert "find_underutilized_applications" in names

    @pytest.mark.anyio
    async def test_toolset_filtering_with_read_only(self):
        names = await list_tool_names(
            create_main_server(enabled_toolsets=["contracts", "admin"], read_only=True)
        )

        assert names == ["get_application_contracts", "get_contracts"]

    @pytest.mark.anyio
    async def test_admin_toolset_without_read_only(self):
        names = await list_tool_names(
            create_main_server(enabled_toolsets=["admin"], read_only=False)
        )

        assert names == ["clear_cache"]

    @pytest.mark.anyio
    async def test_settings_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("MCP_ENABLED_TOOLSETS", "users,security")
        monkeypatch.setenv("READ_ONLY_MODE", "true")

        names = await list_tool_names(create_main_server())

        assert names == ["get_shadow_it", "get_users"]
