"""
Tool dispatch: argument validation, one adapter call, envelope shaping.

Every invocation ends in exactly one ToolResult. Errors other than task
cancellation are turned into error results here and never escape.
"""
from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional

from .client import OctoPerfClient
from .errors import OctoPerfError, SerializationError, ValidationError
from .observability import InMemoryMetrics
from .operations import Operation, get_operation
from .params import RuntimeIdsParams, parse_params

logger = logging.getLogger("octoperf_mcp.dispatcher")


@dataclass(frozen=True)
class ToolResult:
    text: str
    is_error: bool = False


def encode_envelope(status: str, echoed: Mapping[str, Any], response: str) -> str:
    envelope: Dict[str, Any] = {"status": status, **echoed, "response": response}
    try:
        return json.dumps(envelope, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Error during JSON serialization: {exc}") from exc


class ToolDispatcher:
    def __init__(
        self,
        client: OctoPerfClient,
        default_project_id: Optional[str] = None,
        metrics: Optional[InMemoryMetrics] = None,
    ) -> None:
        self.client = client
        self.default_project_id = default_project_id
        self.metrics = metrics or InMemoryMetrics()

    def _resolve_defaults(self, params: Any) -> Any:
        if isinstance(params, RuntimeIdsParams) and params.project_id is None:
            if not self.default_project_id:
                raise ValidationError(["projectId is required (no default project is configured)"])
            return replace(params, project_id=self.default_project_id)
        return params

    def _finish(self, op: Operation, start: float, result: ToolResult, error_code: str = "") -> ToolResult:
        duration_ms = (time.perf_counter() - start) * 1000.0
        self.metrics.record(op.tool_name, duration_ms, error_code)
        extra = {"tool": op.tool_name, "status": error_code or "ok", "duration_ms": round(duration_ms, 3)}
        if result.is_error:
            logger.warning("Tool call failed: %s", result.text, extra=extra)
        else:
            logger.info("Tool call succeeded", extra=extra)
        return result

    async def dispatch(
        self,
        name: str,
        arguments: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> ToolResult:
        """
        Run one operation by operation name or tool name.

        ``timeout`` is the caller's deadline for the remote call; when it
        expires the request is aborted and a transport error is returned.
        """
        op = get_operation(name)
        if op is None:
            logger.warning("Unknown tool requested: %s", name)
            return ToolResult(f"Unknown tool '{name}'", is_error=True)

        start = time.perf_counter()
        try:
            params = self._resolve_defaults(parse_params(op.params, arguments))
        except ValidationError as exc:
            return self._finish(op, start, ToolResult(str(exc), is_error=True), exc.code)

        try:
            body = await op.invoke(self.client, params, timeout)
        except asyncio.CancelledError:
            self._finish(op, start, ToolResult("cancelled", is_error=True), "CANCELLED")
            raise
        except OctoPerfError as exc:
            message = op.error_message(params, exc)
            return self._finish(op, start, ToolResult(message, is_error=True), exc.code)

        try:
            text = encode_envelope(op.status, op.echoed(params), body)
        except SerializationError as exc:
            return self._finish(op, start, ToolResult(str(exc), is_error=True), exc.code)
        return self._finish(op, start, ToolResult(text))
