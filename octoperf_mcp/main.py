"""
Entry point for the OctoPerf MCP server.

Reads configuration, refuses to start without OCTOPERF_API_KEY, then serves
the tool catalog over stdio (default) or streamable HTTP.
"""
from __future__ import annotations

import argparse
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .config import TRANSPORTS, load_settings
from .errors import ConfigurationError
from .observability import setup_logger
from .server import create_server


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="octoperf-mcp", description="OctoPerf MCP server")
    parser.add_argument("--config", type=Path, default=None, help="Path to the YAML config file")
    parser.add_argument("--transport", choices=TRANSPORTS, default=None, help="MCP transport to serve")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logger = setup_logger(os.getenv("MCP_LOG_LEVEL", "INFO"))
    logger.info("Starting OctoPerf MCP server...")

    try:
        settings = load_settings(config_path=args.config)
    except ConfigurationError as exc:
        logger.error("Error creating OctoPerf client: %s", exc)
        sys.exit(1)
    if args.transport:
        settings = replace(settings, transport=args.transport)

    server = create_server(settings)
    logger.info("Serving MCP over %s", settings.transport)
    try:
        server.run(transport=settings.transport)
    except KeyboardInterrupt:
        logger.info("Server shutdown requested...")
        sys.exit(0)


if __name__ == "__main__":
    main()
