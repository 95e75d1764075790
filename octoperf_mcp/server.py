from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

import httpx
from mcp.server.fastmcp import FastMCP

from .client import OctoPerfClient
from .config import Settings
from .dispatcher import ToolDispatcher
from .observability import InMemoryMetrics, setup_logger
from .operations import get_operation
from .tool_aliases import register_operation_aliases
from .tools import register_octoperf_tools


@dataclass
class AppContext:
    settings: Settings
    client: OctoPerfClient
    dispatcher: ToolDispatcher
    metrics: InMemoryMetrics
    logger: logging.Logger


def create_server(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastMCP:
    """
    Build the OctoPerf MCP server.

    ``transport`` replaces the outbound HTTP transport; tests use it to stub
    the OctoPerf API.
    """
    logger = setup_logger(settings.log_level)

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
        client = OctoPerfClient.from_settings(settings, transport=transport)
        metrics = InMemoryMetrics()
        dispatcher = ToolDispatcher(
            client,
            default_project_id=settings.default_project_id,
            metrics=metrics,
        )
        logger.info("OctoPerf client ready for %s", settings.base_url)
        try:
            yield AppContext(
                settings=settings,
                client=client,
                dispatcher=dispatcher,
                metrics=metrics,
                logger=logger,
            )
        finally:
            logger.info("Tool call metrics: %s", json.dumps(metrics.snapshot(), sort_keys=True))
            await client.aclose()

    mcp = FastMCP(
        settings.server_name,
        lifespan=lifespan,
        host=settings.host,
        port=settings.port,
    )

    tools = register_octoperf_tools(mcp)
    for operation in tools:
        logger.info("Adding tool", extra={"tool": get_operation(operation).tool_name})
    if settings.register_aliases:
        register_operation_aliases(mcp, tools)
        logger.info("Registered operation-name aliases for %d tools", len(tools))
    return mcp
