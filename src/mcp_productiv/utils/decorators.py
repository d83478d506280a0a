"""Decorators for Productiv MCP tools."""

import json
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

from fastmcp.exceptions import ToolError

from mcp_productiv.exceptions import ProductivError

logger = logging.getLogger("mcp-productiv.utils.decorators")

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def handle_productiv_errors(func: F) -> F:
    """Convert Productiv errors raised by a tool into ``ToolError``.

    The ToolError message is the JSON error payload, so the host gets a
    stable ``code`` next to the human-readable ``message``. Anything that
    is not a ``ProductivError`` propagates unchanged.
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except ProductivError as e:
            logger.error(f"Tool {func.__name__} failed: {e.code}: {e.message}")
            raise ToolError(json.dumps(e.to_dict(), ensure_ascii=False)) from e

    return wrapper  # type: ignore[return-value]
