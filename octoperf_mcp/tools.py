"""
OctoPerf MCP tools.

Each tool is a thin wrapper: it collects its arguments into a mapping and
hands it to the ToolDispatcher held in the lifespan context.
"""
from typing import Annotated, Any, Callable, Dict, List, Optional

from mcp.server.fastmcp import Context, FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import ToolAnnotations
from pydantic import Field

from .operations import Operation, get_operation

READ_ONLY = ToolAnnotations(readOnlyHint=True, openWorldHint=True)
STARTS_TEST = ToolAnnotations(readOnlyHint=False, destructiveHint=False, idempotentHint=False, openWorldHint=True)


def tool_annotations(op: Operation) -> ToolAnnotations:
    return READ_ONLY if op.read_only else STARTS_TEST


async def _dispatch(ctx: Context, operation: str, arguments: Dict[str, Any]) -> str:
    dispatcher = ctx.request_context.lifespan_context.dispatcher
    bag = {key: value for key, value in arguments.items() if value is not None}
    result = await dispatcher.dispatch(operation, bag)
    if result.is_error:
        raise ToolError(result.text)
    return result.text


def register_octoperf_tools(mcp: FastMCP) -> Dict[str, Callable[..., Any]]:
    """Register the OctoPerf tools and return them keyed by operation name."""

    def tool(operation: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        op = get_operation(operation)
        return mcp.tool(
            name=op.tool_name,
            description=op.description,
            annotations=tool_annotations(op),
            structured_output=False,
        )

    @tool("RunTest")
    async def octoperf_run_test(
        runtimeId: Annotated[str, Field(description="The runtime Id of the OctoPerf test to start")],
        ctx: Context,
    ) -> str:
        return await _dispatch(ctx, "RunTest", {"runtimeId": runtimeId})

    @tool("GetTestStatus")
    async def octoperf_status(
        benchResultId: Annotated[str, Field(description="The benchmark Id for which to check the status")],
        ctx: Context,
    ) -> str:
        return await _dispatch(ctx, "GetTestStatus", {"benchResultId": benchResultId})

    @tool("GetReportDetails")
    async def octoperf_report(
        reportId: Annotated[str, Field(description="The Id of the test report to retrieve")],
        ctx: Context,
    ) -> str:
        return await _dispatch(ctx, "GetReportDetails", {"reportId": reportId})

    @tool("GetMetricDetail")
    async def octoperf_get_report_metrics(
        benchResultId: Annotated[str, Field(description="The benchmark Id for which to retrieve metrics")],
        metricIds: Annotated[
            List[str],
            Field(description="List of metric Ids to retrieve (e.g., HITS_TOTAL, ERRORS_TOTAL, etc.)"),
        ],
        ctx: Context,
    ) -> str:
        return await _dispatch(ctx, "GetMetricDetail", {"benchResultId": benchResultId, "metricIds": metricIds})

    @tool("GetCurrentUserWorkspaces")
    async def octoperf_get_current_user_workspaces(ctx: Context) -> str:
        return await _dispatch(ctx, "GetCurrentUserWorkspaces", {})

    @tool("GetProjectsByWorkspaceId")
    async def get_project_by_workspace_id(
        workspaceId: Annotated[str, Field(description="The workspace Id for which to retrieve projects")],
        ctx: Context,
    ) -> str:
        return await _dispatch(ctx, "GetProjectsByWorkspaceId", {"workspaceId": workspaceId})

    @tool("GetRuntimeIds")
    async def get_runtime_id(
        ctx: Context,
        projectId: Annotated[
            Optional[str],
            Field(description="The project Id for which to retrieve runtime Ids (uses the default project if omitted)"),
        ] = None,
    ) -> str:
        return await _dispatch(ctx, "GetRuntimeIds", {"projectId": projectId})

    return {
        "RunTest": octoperf_run_test,
        "GetTestStatus": octoperf_status,
        "GetReportDetails": octoperf_report,
        "GetMetricDetail": octoperf_get_report_metrics,
        "GetCurrentUserWorkspaces": octoperf_get_current_user_workspaces,
        "GetProjectsByWorkspaceId": get_project_by_workspace_id,
        "GetRuntimeIds": get_runtime_id,
    }
