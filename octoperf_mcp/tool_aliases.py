from __future__ import annotations

from typing import Any, Callable, Dict

from mcp.server.fastmcp import FastMCP

from .operations import get_operation
from .tools import tool_annotations


def register_operation_aliases(mcp: FastMCP, tools: Dict[str, Callable[..., Any]]) -> None:
    """
    Publish every tool a second time under its operation name (RunTest, GetTestStatus, ...).

    The alias shares the tool function and annotations, so the argument schema,
    hints and dispatch path are identical to the primary tool.
    """
    for operation, fn in tools.items():
        op = get_operation(operation)
        mcp.add_tool(
            fn,
            name=op.name,
            description=f"{op.description} (alias of {op.tool_name})",
            annotations=tool_annotations(op),
            structured_output=False,
        )
