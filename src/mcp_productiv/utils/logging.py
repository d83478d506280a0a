"""Logging utilities for the Productiv MCP server."""

import logging
import sys
from typing import TextIO

SENSITIVE_HEADERS = {"authorization", "cookie", "x-api-key"}


def setup_logging(
    level: int = logging.WARNING, stream: TextIO = sys.stderr
) -> logging.Logger:
    """Configure the ``mcp-productiv`` logger hierarchy.

    Logs always go to stderr by default: stdout carries the stdio MCP
    transport and must stay clean.

    Args:
        level: Logging level for the root and package loggers
        stream: Stream the handler writes to

    Returns:
        The package logger.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    root_logger.addHandler(handler)

    logger = logging.getLogger("mcp-productiv")
    logger.setLevel(level)
    return logger


def mask_sensitive(value: str | None, keep_chars: int = 4) -> str:
    """Mask a secret, keeping only a few characters at each end.

    Args:
        value: The secret to mask
        keep_chars: Number of characters to keep visible at each end

    Returns:
        The masked string.
    """
    if not value:
        return "Not Provided"
    if len(value) <= keep_chars * 2:
        return "*" * len(value)
    masked = "*" * (len(value) - keep_chars * 2)
    return f"{value[:keep_chars]}{masked}{value[-keep_chars:]}"


def get_masked_session_headers(headers: dict[str, str]) -> dict[str, str]:
    """Return a copy of session headers with credentials masked."""
    masked: dict[str, str] = {}
    for name, value in headers.items():
        if name.lower() in SENSITIVE_HEADERS:
            if value.startswith("Bearer "):
                masked[name] = f"Bearer {mask_sensitive(value[7:])}"
            else:
                masked[name] = mask_sensitive(value)
        else:
            masked[name] = str(value)
    return masked


def log_config_param(
    logger: logging.Logger,
    service: str,
    param: str,
    value: object,
    sensitive: bool = False,
) -> None:
    """Log a configuration parameter, masking it when sensitive."""
    display = mask_sensitive(str(value)) if sensitive and value else value
    logger.info(f"{service} {param}: {display}")
