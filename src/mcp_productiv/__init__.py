"""MCP server for the Productiv SaaS management platform."""

import logging
import os
from pathlib import Path

import typer
from dotenv import load_dotenv

from mcp_productiv.utils.logging import setup_logging

__version__ = "0.1.0"

logger = logging.getLogger("mcp-productiv")

app = typer.Typer(add_completion=False, help="Productiv MCP server")

TRANSPORTS = ("stdio", "sse", "streamable-http")


@app.command()
def run(
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="Increase verbosity (-v info, -vv debug)"
    ),
    env_file: Path | None = typer.Option(
        None, "--env-file", help="Path to a .env file", exists=True, dir_okay=False
    ),
    transport: str = typer.Option(
        "stdio", "--transport", envvar="TRANSPORT", help="stdio, sse or streamable-http"
    ),
    host: str = typer.Option("0.0.0.0", "--host", envvar="HOST"),
    port: int = typer.Option(8000, "--port", envvar="PORT"),
    path: str = typer.Option("/mcp", "--path", help="Endpoint path for streamable-http"),
    productiv_url: str | None = typer.Option(None, "--productiv-url", help="Productiv API URL"),
    productiv_api_key: str | None = typer.Option(
        None, "--productiv-api-key", help="Productiv API key"
    ),
    enabled_toolsets: str | None = typer.Option(
        None, "--enabled-toolsets", help="Comma-separated toolsets, or 'all'"
    ),
    read_only: bool = typer.Option(False, "--read-only", help="Disable write tools"),
) -> None:
    """Start the Productiv MCP server."""
    if env_file:
        load_dotenv(env_file, override=True)
    else:
        load_dotenv()

    if verbose >= 2 or os.getenv("MCP_VERY_VERBOSE", "").lower() == "true":
        level = logging.DEBUG
    elif verbose == 1 or os.getenv("MCP_VERBOSE", "").lower() == "true":
        level = logging.INFO
    else:
        level = logging.WARNING
    setup_logging(level)

    # Command-line options take precedence over the environment
    if productiv_url:
        os.environ["PRODUCTIV_API_URL"] = productiv_url
    if productiv_api_key:
        os.environ["PRODUCTIV_API_KEY"] = productiv_api_key
    if enabled_toolsets:
        os.environ["MCP_ENABLED_TOOLSETS"] = enabled_toolsets
    if read_only:
        os.environ["READ_ONLY_MODE"] = "true"

    transport = transport.lower()
    if transport not in TRANSPORTS:
        raise typer.BadParameter(
            f"Unknown transport '{transport}', expected one of {', '.join(TRANSPORTS)}",
            param_hint="--transport",
        )

    from mcp_productiv.servers import create_main_server

    server = create_main_server()
    run_kwargs: dict[str, object] = {"transport": transport}
    if transport != "stdio":
        run_kwargs.update(host=host, port=port)
        if transport == "streamable-http":
            run_kwargs["path"] = path
        logger.info(f"Starting Productiv MCP server on {host}:{port} ({transport})")
    else:
        logger.info("Starting Productiv MCP server with stdio transport")
    server.run(**run_kwargs)


def main() -> None:
    """Entry point for the ``mcp-productiv`` command."""
    app()


__all__ = ["main", "__version__"]

if __name__ == "__main__":
    main()
