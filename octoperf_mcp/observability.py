from __future__ import annotations

import logging
import sys
import threading
from dataclasses import dataclass, field
from typing import Dict

LOGGER_NAME = "octoperf_mcp"


class StructuredFormatter(logging.Formatter):
    """Formatter that fills in structured fields missing from a record."""

    FIELDS = ("tool", "status", "duration_ms")

    def format(self, record: logging.LogRecord) -> str:
        for name in self.FIELDS:
            if not hasattr(record, name):
                setattr(record, name, "")
        return super().format(record)


def setup_logger(level_name: str = "INFO") -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level_name.upper(), logging.INFO))
    if logger.handlers:
        return logger
    # stdout belongs to the MCP stdio transport
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter(
        '{"ts":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","tool":"%(tool)s",'
        '"status":"%(status)s","duration_ms":"%(duration_ms)s","msg":"%(message)s"}'
    ))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


@dataclass
class ToolMetrics:
    calls: int = 0
    errors: int = 0
    total_latency_ms: float = 0.0
    error_kinds: Dict[str, int] = field(default_factory=dict)

    def observe(self, duration_ms: float, error_kind: str = "") -> None:
        self.calls += 1
        self.total_latency_ms += float(duration_ms)
        if error_kind:
            self.errors += 1
            self.error_kinds[error_kind] = self.error_kinds.get(error_kind, 0) + 1

    @property
    def avg_latency_ms(self) -> float:
        if self.calls == 0:
            return 0.0
        return self.total_latency_ms / self.calls


class InMemoryMetrics:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tools: Dict[str, ToolMetrics] = {}

    def record(self, tool: str, duration_ms: float, error_kind: str = "") -> None:
        with self._lock:
            metrics = self._tools.get(tool)
            if metrics is None:
                metrics = ToolMetrics()
                self._tools[tool] = metrics
            metrics.observe(duration_ms, error_kind)

    def snapshot(self) -> Dict[str, Dict[str, object]]:
        with self._lock:
            data: Dict[str, Dict[str, object]] = {}
            for name, m in self._tools.items():
                data[name] = {
                    "calls": m.calls,
                    "errors": m.errors,
                    "avg_latency_ms": round(m.avg_latency_ms, 3),
                    "error_kinds": dict(m.error_kinds),
                }
            return data
