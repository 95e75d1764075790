"""
End-to-end tests: MCP client session -> FastMCP tools -> dispatcher -> stubbed OctoPerf API.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List

import httpx
import pytest
from mcp.server.fastmcp import FastMCP
from mcp.shared.memory import create_connected_server_and_client_session

from octoperf_mcp.config import Settings
from octoperf_mcp.main import main
from octoperf_mcp.observability import setup_logger
from octoperf_mcp.server import create_server

PRIMARY_TOOLS = {
    "octoperf_run_test",
    "octoperf_status",
    "octoperf_report",
    "octoperf_get_report_metrics",
    "octoperf_get_current_user_workspaces",
    "get_project_by_workspace_id",
    "get_runtime_id",
}
ALIASES = {
    "RunTest",
    "GetTestStatus",
    "GetReportDetails",
    "GetMetricDetail",
    "GetCurrentUserWorkspaces",
    "GetProjectsByWorkspaceId",
    "GetRuntimeIds",
}


def stub_api(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.MockTransport:
    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_catalog_lists_tools_and_aliases() -> None:
    server = create_server(Settings(api_key="k"))
    tools = {tool.name: tool for tool in await server.list_tools()}

    assert set(tools) == PRIMARY_TOOLS | ALIASES

    metrics = tools["octoperf_get_report_metrics"].inputSchema
    assert set(metrics["required"]) == {"benchResultId", "metricIds"}
    assert metrics["properties"]["metricIds"]["type"] == "array"
    assert metrics["properties"]["metricIds"]["items"] == {"type": "string"}

    assert "projectId" not in tools["get_runtime_id"].inputSchema.get("required", [])
    assert "ctx" not in tools["octoperf_run_test"].inputSchema["properties"]
    assert tools["RunTest"].inputSchema == tools["octoperf_run_test"].inputSchema


@pytest.mark.asyncio
async def test_aliases_carry_primary_annotations() -> None:
    server = create_server(Settings(api_key="k"))
    tools = {tool.name: tool for tool in await server.list_tools()}

    assert tools["RunTest"].annotations == tools["octoperf_run_test"].annotations
    assert tools["RunTest"].annotations.readOnlyHint is False
    assert tools["GetTestStatus"].annotations == tools["octoperf_status"].annotations
    assert tools["GetTestStatus"].annotations.readOnlyHint is True
    for alias in ALIASES:
        assert tools[alias].annotations is not None


@pytest.mark.asyncio
async def test_aliases_can_be_disabled() -> None:
    server = create_server(Settings(api_key="k", register_aliases=False))
    assert {tool.name for tool in await server.list_tools()} == PRIMARY_TOOLS


@pytest.mark.asyncio
async def test_run_test_over_mcp_session() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(202, text='{"id":"xyz"}')

    server = create_server(Settings(api_key="k"), transport=stub_api(handler))
    async with create_connected_server_and_client_session(server._mcp_server) as session:
        result = await session.call_tool("octoperf_run_test", {"runtimeId": "abc"})

    assert result.isError is False
    assert result.content[0].text == '{"status":"test_started","response":"{\\"id\\":\\"xyz\\"}"}'
    assert len(seen) == 1
    assert seen[0].url.path == "/runtime/scenarios/run/abc"


@pytest.mark.asyncio
async def test_alias_reaches_same_endpoint() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="[]")

    server = create_server(Settings(api_key="k"), transport=stub_api(handler))
    async with create_connected_server_and_client_session(server._mcp_server) as session:
        result = await session.call_tool("GetProjectsByWorkspaceId", {"workspaceId": "ws-1"})

    assert result.isError is False
    assert result.content[0].text == '{"status":"retrieved","workspaceId":"ws-1","response":"[]"}'
    assert seen[0].url.path == "/design/projects/by-workspace/ws-1/DESIGN"


@pytest.mark.asyncio
async def test_remote_error_is_an_error_result() -> None:
    server = create_server(
        Settings(api_key="k"),
        transport=stub_api(lambda request: httpx.Response(403, text="forbidden workspace")),
    )
    async with create_connected_server_and_client_session(server._mcp_server) as session:
        result = await session.call_tool("octoperf_status", {"benchResultId": "br-1"})
        # the session keeps serving after an error result
        again = await session.call_tool("octoperf_status", {"benchResultId": "br-1"})

    assert result.isError is True
    assert "403" in result.content[0].text
    assert "forbidden workspace" in result.content[0].text
    assert again.isError is True


@pytest.mark.asyncio
async def test_missing_argument_makes_no_remote_call() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="{}")

    server = create_server(Settings(api_key="k"), transport=stub_api(handler))
    async with create_connected_server_and_client_session(server._mcp_server) as session:
        metrics = await session.call_tool("octoperf_get_report_metrics", {"benchResultId": "br-1"})
        runtimes = await session.call_tool("get_runtime_id", {})

    assert metrics.isError is True
    assert runtimes.isError is True
    assert "projectId is required" in runtimes.content[0].text
    assert seen == []


@pytest.mark.asyncio
async def test_default_project_is_used_over_mcp() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="[]")

    server = create_server(Settings(api_key="k", default_project_id="prj-7"), transport=stub_api(handler))
    async with create_connected_server_and_client_session(server._mcp_server) as session:
        result = await session.call_tool("get_runtime_id", {})

    assert result.isError is False
    assert seen[0].url.path == "/runtime/scenarios/by-project/prj-7"


def test_main_exits_without_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OCTOPERF_API_KEY", raising=False)
    monkeypatch.delenv("OCTOPERF_MCP_CONFIG", raising=False)
    monkeypatch.delenv("MCP_TRANSPORT", raising=False)

    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 1


def test_main_applies_configured_log_level(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    config = tmp_path / "server.yaml"
    config.write_text("server:\n  log_level: DEBUG\n", encoding="utf-8")
    monkeypatch.setenv("OCTOPERF_API_KEY", "k")
    monkeypatch.delenv("OCTOPERF_MCP_CONFIG", raising=False)
    monkeypatch.delenv("MCP_LOG_LEVEL", raising=False)
    monkeypatch.delenv("MCP_TRANSPORT", raising=False)
    runs: List[str] = []
    monkeypatch.setattr(FastMCP, "run", lambda self, transport="stdio", **kwargs: runs.append(transport))

    try:
        main(["--config", str(config)])
        assert logging.getLogger("octoperf_mcp").level == logging.DEBUG
    finally:
        setup_logger("INFO")
    assert runs == ["stdio"]
