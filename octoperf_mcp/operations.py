from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from .client import OctoPerfClient
from .params import (
    MetricDetailParams,
    NoParams,
    ReportParams,
    RunTestParams,
    RuntimeIdsParams,
    StatusParams,
    WorkspaceProjectsParams,
)

Invoke = Callable[[OctoPerfClient, Any, Optional[float]], Awaitable[str]]


@dataclass(frozen=True)
class Operation:
    name: str
    tool_name: str
    description: str
    params: type
    status: str
    error_prefix: str
    invoke: Invoke
    read_only: bool = True
    # (wire name, params attribute) pairs copied into the success envelope
    echo: Tuple[Tuple[str, str], ...] = ()

    def echoed(self, params: Any) -> Dict[str, Any]:
        return {wire: getattr(params, attr) for wire, attr in self.echo}

    def error_message(self, params: Any, exc: BaseException) -> str:
        return f"{self.error_prefix.format(**self.echoed(params))}: {exc}"


OPERATIONS: Tuple[Operation, ...] = (
    Operation(
        name="RunTest",
        tool_name="octoperf_run_test",
        description="Start an OctoPerf performance test with the specified runtime Id",
        params=RunTestParams,
        status="test_started",
        error_prefix="Error running test",
        invoke=lambda client, p, timeout: client.run_test(p.runtime_id, timeout=timeout),
        read_only=False,
    ),
    Operation(
        name="GetTestStatus",
        tool_name="octoperf_status",
        description="Check the status of an OctoPerf performance test",
        params=StatusParams,
        status="retrieved",
        error_prefix="Error checking status",
        invoke=lambda client, p, timeout: client.get_test_status(p.bench_result_id, timeout=timeout),
    ),
    Operation(
        name="GetReportDetails",
        tool_name="octoperf_report",
        description="Retrieve the details of an OctoPerf test report",
        params=ReportParams,
        status="report_retrieved",
        error_prefix="Error retrieving report",
        invoke=lambda client, p, timeout: client.get_report_details(p.report_id, timeout=timeout),
    ),
    Operation(
        name="GetMetricDetail",
        tool_name="octoperf_get_report_metrics",
        description="Retrieve specific metrics from an OctoPerf test report",
        params=MetricDetailParams,
        status="metrics_retrieved",
        error_prefix="Error retrieving metrics",
        invoke=lambda client, p, timeout: client.get_metric_detail(
            p.bench_result_id, p.metric_ids, timeout=timeout
        ),
    ),
    Operation(
        name="GetCurrentUserWorkspaces",
        tool_name="octoperf_get_current_user_workspaces",
        description="Retrieve the workspaces of the current user",
        params=NoParams,
        status="retrieved",
        error_prefix="Error retrieving user workspaces",
        invoke=lambda client, p, timeout: client.get_current_user_workspaces(timeout=timeout),
    ),
    Operation(
        name="GetProjectsByWorkspaceId",
        tool_name="get_project_by_workspace_id",
        description="Retrieve the projects linked to a specific workspace",
        params=WorkspaceProjectsParams,
        status="retrieved",
        error_prefix="Error retrieving projects for workspace {workspaceId}",
        invoke=lambda client, p, timeout: client.get_projects_by_workspace_id(p.workspace_id, timeout=timeout),
        echo=(("workspaceId", "workspace_id"),),
    ),
    Operation(
        name="GetRuntimeIds",
        tool_name="get_runtime_id",
        description="Retrieve the available runtime Ids for a project",
        params=RuntimeIdsParams,
        status="retrieved",
        error_prefix="Error retrieving Runtime IDs for project {projectId}",
        invoke=lambda client, p, timeout: client.get_runtime_ids(p.project_id, timeout=timeout),
        echo=(("projectId", "project_id"),),
    ),
)

OPERATIONS_BY_NAME: Dict[str, Operation] = {}
for _op in OPERATIONS:
    OPERATIONS_BY_NAME[_op.name] = _op
    OPERATIONS_BY_NAME[_op.tool_name] = _op
del _op


def get_operation(name: str) -> Optional[Operation]:
    """Look an operation up by operation name or published tool name."""
    return OPERATIONS_BY_NAME.get(name)
