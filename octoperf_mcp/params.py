"""
Typed tool parameters.

Each operation declares a frozen dataclass whose fields carry the wire name,
kind and description of the argument. parse_params() validates an untyped
argument mapping against it and reports every problem at once.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

from .errors import ValidationError

STRING = "string"
STRING_ARRAY = "array"

P = TypeVar("P")


def param(wire_name: str, description: str, *, kind: str = STRING, required: bool = True) -> Any:
    metadata = {
        "wire_name": wire_name,
        "description": description,
        "kind": kind,
        "required": required,
    }
    if required:
        return field(metadata=metadata)
    return field(default=None, metadata=metadata)


@dataclass(frozen=True)
class NoParams:
    pass


@dataclass(frozen=True)
class RunTestParams:
    runtime_id: str = param("runtimeId", "The runtime Id of the OctoPerf test to start")


@dataclass(frozen=True)
class StatusParams:
    bench_result_id: str = param("benchResultId", "The benchmark Id for which to check the status")


@dataclass(frozen=True)
class ReportParams:
    report_id: str = param("reportId", "The Id of the test report to retrieve")


@dataclass(frozen=True)
class MetricDetailParams:
    bench_result_id: str = param("benchResultId", "The benchmark Id for which to retrieve metrics")
    metric_ids: Tuple[str, ...] = param(
        "metricIds",
        "List of metric Ids to retrieve (e.g., HITS_TOTAL, ERRORS_TOTAL, etc.)",
        kind=STRING_ARRAY,
    )


@dataclass(frozen=True)
class WorkspaceProjectsParams:
    workspace_id: str = param("workspaceId", "The workspace Id for which to retrieve projects")


@dataclass(frozen=True)
class RuntimeIdsParams:
    project_id: Optional[str] = param(
        "projectId",
        "The project Id for which to retrieve runtime Ids (uses the configured default project if omitted)",
        required=False,
    )


def _check_string(name: str, value: Any, problems: List[str]) -> Optional[str]:
    if not isinstance(value, str):
        problems.append(f"{name} must be a string, got {type(value).__name__}")
        return None
    if not value.strip():
        problems.append(f"{name} must not be empty")
        return None
    return value


def _check_string_array(name: str, value: Any, problems: List[str]) -> Optional[Tuple[str, ...]]:
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        problems.append(f"{name} must be an array of strings, got {type(value).__name__}")
        return None
    bad = [index for index, item in enumerate(value) if not isinstance(item, str) or not item.strip()]
    if bad:
        problems.append(f"{name} items must be non-empty strings (bad positions: {bad})")
        return None
    return tuple(value)


def parse_params(param_cls: Type[P], arguments: Optional[Mapping[str, Any]]) -> P:
    """Validate ``arguments`` into ``param_cls``, raising ValidationError listing every problem."""
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise ValidationError([f"arguments must be an object, got {type(arguments).__name__}"])

    problems: List[str] = []
    values: Dict[str, Any] = {}
    for f in fields(param_cls):
        meta = f.metadata
        name = meta["wire_name"]
        raw = arguments.get(name)
        if raw is None:
            if meta["required"]:
                problems.append(f"{name} is required")
            continue
        if meta["kind"] == STRING_ARRAY:
            checked = _check_string_array(name, raw, problems)
        else:
            checked = _check_string(name, raw, problems)
        if checked is not None:
            values[f.name] = checked

    if problems:
        raise ValidationError(problems)
    return param_cls(**values)

