from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigurationError

DEFAULT_BASE_URL = "https://api.octoperf.com"
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "server.yaml"

TRANSPORTS = ("stdio", "streamable-http", "sse")

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")


def load_config(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"octoperf-mcp config not found at {path}")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping")
    return data


@dataclass(frozen=True)
class HttpLimits:
    connect_timeout: float = 5.0
    read_timeout: float = 30.0
    write_timeout: float = 10.0
    pool_timeout: float = 5.0
    max_connections: int = 100
    max_keepalive_connections: int = 20


@dataclass(frozen=True)
class Settings:
    """Immutable process configuration, built once at startup."""

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    default_project_id: Optional[str] = None
    server_name: str = "OctoPerf MCP Server"
    log_level: str = "INFO"
    transport: str = "stdio"
    host: str = "127.0.0.1"
    port: int = 9000
    register_aliases: bool = True
    http_limits: HttpLimits = field(default_factory=HttpLimits)

    def __repr__(self) -> str:
        # keep the bearer token out of logs and tracebacks
        return (
            f"Settings(base_url={self.base_url!r}, server_name={self.server_name!r}, "
            f"transport={self.transport!r}, default_project_id={self.default_project_id!r})"
        )


def _read_config_file(environ: Mapping[str, str], config_path: Optional[Path]) -> Dict[str, Any]:
    explicit = config_path or (Path(environ["OCTOPERF_MCP_CONFIG"]) if environ.get("OCTOPERF_MCP_CONFIG") else None)
    path = explicit or DEFAULT_CONFIG_PATH
    if explicit is None and not path.exists():
        return {}
    try:
        return load_config(path)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        raise ConfigurationError(str(exc)) from exc


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for {name}: {value!r}")


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config.get(name, {}) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Config section '{name}' must be a mapping")
    return section


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    config_path: Optional[Path] = None,
) -> Settings:
    """
    Build Settings from the YAML config file and the environment.

    Environment variables win over the file. OCTOPERF_API_KEY is required.
    """
    env = os.environ if environ is None else environ
    config = _read_config_file(env, config_path)
    server_cfg = _section(config, "server")
    octoperf_cfg = _section(config, "octoperf")
    limits_cfg = _section(config, "http_limits")

    api_key = (env.get("OCTOPERF_API_KEY") or "").strip()
    if not api_key:
        raise ConfigurationError("OCTOPERF_API_KEY environment variable is not set")

    transport = str(env.get("MCP_TRANSPORT") or server_cfg.get("transport", "stdio")).strip().lower()
    if transport not in TRANSPORTS:
        raise ConfigurationError(f"Unsupported transport '{transport}', expected one of {', '.join(TRANSPORTS)}")

    try:
        port = int(env.get("MCP_SERVER_PORT") or server_cfg.get("port", 9000))
        http_limits = HttpLimits(
            connect_timeout=float(limits_cfg.get("connect_timeout", 5.0)),
            read_timeout=float(limits_cfg.get("read_timeout", 30.0)),
            write_timeout=float(limits_cfg.get("write_timeout", 10.0)),
            pool_timeout=float(limits_cfg.get("pool_timeout", 5.0)),
            max_connections=int(limits_cfg.get("max_connections", 100)),
            max_keepalive_connections=int(limits_cfg.get("max_keepalive_connections", 20)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc

    default_project_id = str(env.get("OCTOPERF_PROJECT_ID") or octoperf_cfg.get("default_project_id") or "").strip()

    return Settings(
        api_key=api_key,
        base_url=str(env.get("OCTOPERF_BASE_URL") or octoperf_cfg.get("base_url", DEFAULT_BASE_URL)).rstrip("/"),
        default_project_id=default_project_id or None,
        server_name=str(server_cfg.get("name", "OctoPerf MCP Server")),
        log_level=str(env.get("MCP_LOG_LEVEL") or server_cfg.get("log_level", "INFO")).upper(),
        transport=transport,
        host=str(env.get("MCP_SERVER_HOST") or server_cfg.get("host", "127.0.0.1")),
        port=port,
        register_aliases=_as_bool("server.register_aliases", server_cfg.get("register_aliases", True)),
        http_limits=http_limits,
    )
