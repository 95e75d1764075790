from __future__ import annotations

import asyncio
import os
import sys

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client


SERVER = StdioServerParameters(
    command=sys.executable,
    args=["-m", "octoperf_mcp"],
    env=dict(os.environ),
)


async def main() -> None:
    async with stdio_client(SERVER) as (read_stream, write_stream):
        async with ClientSession(read_stream, write_stream) as session:
            await session.initialize()
            tools_result = await session.list_tools()
            print("Available tools:")
            for tool in tools_result.tools:
                required = tool.inputSchema.get("required", [])
                print(f"- {tool.name}: {tool.description} (required: {', '.join(required) or 'none'})")


if __name__ == "__main__":
    asyncio.run(main())
