"""
OctoPerf REST API adapter.

One coroutine per supported endpoint. Every call issues exactly one HTTP
request and returns the raw response text; failures are normalized into
TransportError (no answer) or RemoteAPIError (non-2xx answer).
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx

from .config import Settings
from .errors import RemoteAPIError, TransportError

logger = logging.getLogger("octoperf_mcp.client")

CONTAINER = "CONTAINER"
HIT = "HIT"

METRIC_TYPES: Dict[str, str] = {
    "RESPONSE_TIME_AVG": CONTAINER,
    "LATENCY_STD": CONTAINER,
    "RESPONSE_TIME_PERCENTILE_90": HIT,
    "RESPONSE_TIME_PERCENTILE_95": HIT,
    "HITS_TOTAL": HIT,
    "ERRORS_TOTAL": HIT,
    "ERRORS_PERCENT": HIT,
    "THROUGHPUT_RATE": HIT,
    "HITS_RATE": HIT,
}
DEFAULT_METRIC_TYPE = HIT


def metric_type(metric_id: str) -> str:
    """Summary item type for a metric id; unknown ids fall back to HIT."""
    kind = METRIC_TYPES.get(metric_id)
    if kind is None:
        logger.warning("Unknown metric id %r, sending it as %s", metric_id, DEFAULT_METRIC_TYPE)
        return DEFAULT_METRIC_TYPE
    return kind


def build_metric_summary(bench_result_id: str, metric_ids: Sequence[str]) -> Dict[str, Any]:
    metrics: List[Dict[str, Any]] = [
        {
            "id": metric_id,
            "type": metric_type(metric_id),
            "filters": [],
            "benchResultId": bench_result_id,
            "configs": [],
        }
        for metric_id in metric_ids
    ]
    return {
        "@type": "SummaryReportItem",
        "metrics": metrics,
        "id": "",
        "name": "Statistics summary",
    }


def _segment(value: str) -> str:
    return quote(value, safe="")


def build_http_client(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    limits = settings.http_limits
    # no redirects: the bearer token must never leave the configured host
    return httpx.AsyncClient(
        base_url=settings.base_url,
        headers={"Authorization": f"Bearer {settings.api_key}", "Accept": "application/json"},
        limits=httpx.Limits(
            max_connections=limits.max_connections,
            max_keepalive_connections=limits.max_keepalive_connections,
        ),
        timeout=httpx.Timeout(
            connect=limits.connect_timeout,
            read=limits.read_timeout,
            write=limits.write_timeout,
            pool=limits.pool_timeout,
        ),
        follow_redirects=False,
        transport=transport,
    )


class OctoPerfClient:
    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self.http_client = http_client

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "OctoPerfClient":
        return cls(build_http_client(settings, transport=transport))

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> str:
        kwargs: Dict[str, Any] = {}
        if payload is not None:
            kwargs["json"] = payload
        try:
            response = await asyncio.wait_for(
                self.http_client.request(method, path, **kwargs),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            raise TransportError(f"{method} {path} cancelled after {timeout}s deadline", cause=exc) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed", cause=exc) from exc

        if not response.is_success:
            raise RemoteAPIError(response.status_code, response.text)
        return response.text

    async def get_test_status(self, bench_result_id: str, timeout: Optional[float] = None) -> str:
        return await self._request(
            "GET", f"/runtime/bench-results/progress/{_segment(bench_result_id)}", timeout=timeout
        )

    async def run_test(self, runtime_id: str, timeout: Optional[float] = None) -> str:
        return await self._request("POST", f"/runtime/scenarios/run/{_segment(runtime_id)}", timeout=timeout)

    async def get_report_details(self, report_id: str, timeout: Optional[float] = None) -> str:
        return await self._request("GET", f"/analysis/bench-reports/{_segment(report_id)}", timeout=timeout)

    async def get_metric_detail(
        self,
        bench_result_id: str,
        metric_ids: Sequence[str],
        timeout: Optional[float] = None,
    ) -> str:
        body = build_metric_summary(bench_result_id, metric_ids)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Sending metrics summary request: %s", json.dumps(body, ensure_ascii=False))
        return await self._request("POST", "/analysis/metrics/summary", payload=body, timeout=timeout)

    async def get_current_user_workspaces(self, timeout: Optional[float] = None) -> str:
        return await self._request("GET", "/workspaces/member-of", timeout=timeout)

    async def get_projects_by_workspace_id(self, workspace_id: str, timeout: Optional[float] = None) -> str:
        return await self._request(
            "GET", f"/design/projects/by-workspace/{_segment(workspace_id)}/DESIGN", timeout=timeout
        )

    async def get_runtime_ids(self, project_id: str, timeout: Optional[float] = None) -> str:
        return await self._request("GET", f"/runtime/scenarios/by-project/{_segment(project_id)}", timeout=timeout)
