"""MCP server exposing the OctoPerf load-testing API as agent tools."""

__version__ = "1.0.0"
