from __future__ import annotations

from pathlib import Path

import pytest

from octoperf_mcp.config import DEFAULT_BASE_URL, Settings, load_config, load_settings
from octoperf_mcp.errors import ConfigurationError


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "server.yaml"
    path.write_text(
        "server:\n"
        "  name: test-server\n"
        "  log_level: debug\n"
        "  register_aliases: false\n"
        "octoperf:\n"
        "  base_url: https://octoperf.internal/\n"
        "  default_project_id: prj-from-file\n"
        "http_limits:\n"
        "  read_timeout: 12\n",
        encoding="utf-8",
    )
    return path


def test_missing_api_key_is_fatal(config_file: Path) -> None:
    with pytest.raises(ConfigurationError, match="OCTOPERF_API_KEY"):
        load_settings(environ={}, config_path=config_file)


def test_blank_api_key_is_fatal(config_file: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_settings(environ={"OCTOPERF_API_KEY": "   "}, config_path=config_file)


def test_settings_from_file(config_file: Path) -> None:
    settings = load_settings(environ={"OCTOPERF_API_KEY": "key"}, config_path=config_file)

    assert settings.api_key == "key"
    assert settings.server_name == "test-server"
    assert settings.log_level == "DEBUG"
    assert settings.register_aliases is False
    assert settings.base_url == "https://octoperf.internal"
    assert settings.default_project_id == "prj-from-file"
    assert settings.http_limits.read_timeout == 12.0
    assert settings.transport == "stdio"


def test_environment_wins_over_file(config_file: Path) -> None:
    settings = load_settings(
        environ={
            "OCTOPERF_API_KEY": "key",
            "OCTOPERF_BASE_URL": "https://api.example.test",
            "OCTOPERF_PROJECT_ID": "prj-from-env",
            "MCP_TRANSPORT": "streamable-http",
            "MCP_SERVER_PORT": "9100",
        },
        config_path=config_file,
    )

    assert settings.base_url == "https://api.example.test"
    assert settings.default_project_id == "prj-from-env"
    assert settings.transport == "streamable-http"
    assert settings.port == 9100


def test_config_path_from_environment(config_file: Path) -> None:
    settings = load_settings(environ={"OCTOPERF_API_KEY": "key", "OCTOPERF_MCP_CONFIG": str(config_file)})
    assert settings.server_name == "test-server"


def test_explicit_missing_config_file_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_settings(environ={"OCTOPERF_API_KEY": "key"}, config_path=tmp_path / "nope.yaml")


def test_invalid_transport_is_fatal(config_file: Path) -> None:
    with pytest.raises(ConfigurationError, match="Unsupported transport"):
        load_settings(environ={"OCTOPERF_API_KEY": "key", "MCP_TRANSPORT": "carrier-pigeon"}, config_path=config_file)


def test_non_mapping_config_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)
    with pytest.raises(ConfigurationError):
        load_settings(environ={"OCTOPERF_API_KEY": "key"}, config_path=path)


def test_empty_config_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    settings = load_settings(environ={"OCTOPERF_API_KEY": "key"}, config_path=path)

    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.default_project_id is None
    assert settings.register_aliases is True


def test_repr_hides_api_key() -> None:
    assert "very-secret" not in repr(Settings(api_key="very-secret"))


@pytest.mark.parametrize("raw, expected", [('"false"', False), ("'no'", False), ("off", False), ('"true"', True), ("1", True)])
def test_register_aliases_parses_quoted_booleans(tmp_path: Path, raw: str, expected: bool) -> None:
    path = tmp_path / "aliases.yaml"
    path.write_text(f"server:\n  register_aliases: {raw}\n", encoding="utf-8")
    settings = load_settings(environ={"OCTOPERF_API_KEY": "key"}, config_path=path)
    assert settings.register_aliases is expected


def test_invalid_register_aliases_is_fatal(tmp_path: Path) -> None:
    path = tmp_path / "aliases.yaml"
    path.write_text("server:\n  register_aliases: sometimes\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="server.register_aliases"):
        load_settings(environ={"OCTOPERF_API_KEY": "key"}, config_path=path)
