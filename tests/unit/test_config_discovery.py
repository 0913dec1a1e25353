"""
Unit tests for MCP client config discovery.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from mcplock.adapters.config import (
    discover_config,
    get_config_locations,
    infer_transport,
    parse_config_dict,
    parse_config_file,
    strip_jsonc,
)
from mcplock.domain.exceptions import ConfigError
from mcplock.domain.models import Transport


def _write(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
    return path


def _servers(*names: str) -> dict[str, Any]:
    return {"mcpServers": {name: {"command": "node", "args": [f"{name}.js"]} for name in names}}


class TestGetConfigLocations:
    """Tests for per-platform config paths."""

    def test_linux(self, tmp_path: Path) -> None:
        locations = {
            loc.client: loc.path
            for loc in get_config_locations(home=tmp_path, cwd=tmp_path / "proj", platform="linux")
        }

        assert locations["claude-desktop"] == (
            tmp_path / ".config" / "claude" / "claude_desktop_config.json"
        )
        assert locations["claude-code"] == tmp_path / ".claude.json"
        assert locations["project-local"] == tmp_path / "proj" / ".mcp.json"
        assert locations["windsurf"] == tmp_path / ".codeium" / "windsurf" / "mcp_config.json"

    def test_darwin(self, tmp_path: Path) -> None:
        locations = {
            loc.client: loc.path
            for loc in get_config_locations(home=tmp_path, cwd=tmp_path, platform="darwin")
        }

        support = tmp_path / "Library" / "Application Support"
        assert locations["claude-desktop"] == support / "Claude" / "claude_desktop_config.json"
        assert locations["vscode"] == support / "Code" / "User" / "settings.json"

    def test_windows_uses_appdata(self, tmp_path: Path) -> None:
        appdata = tmp_path / "Roaming"
        locations = {
            loc.client: loc.path
            for loc in get_config_locations(
                home=tmp_path, cwd=tmp_path, platform="win32", appdata=appdata
            )
        }

        assert locations["claude-desktop"] == appdata / "Claude" / "claude_desktop_config.json"

    def test_exists_flag(self, tmp_path: Path) -> None:
        _write(tmp_path / ".claude.json", _servers("a"))

        locations = {
            loc.client: loc
            for loc in get_config_locations(home=tmp_path, cwd=tmp_path, platform="linux")
        }

        assert locations["claude-code"].exists
        assert not locations["cursor"].exists


class TestDiscoverConfig:
    """Tests for discovery priority and fallbacks."""

    def test_project_local_wins(self, tmp_path: Path) -> None:
        home, project = tmp_path / "home", tmp_path / "project"
        _write(home / ".claude.json", _servers("global"))
        _write(project / ".mcp.json", _servers("local"))

        config = discover_config(home=home, cwd=project, platform="linux")

        assert config is not None
        assert config.client == "project-local"
        assert list(config.servers) == ["local"]

    def test_claude_code_before_desktop(self, tmp_path: Path) -> None:
        _write(tmp_path / ".claude.json", _servers("code"))
        _write(tmp_path / ".config" / "claude" / "claude_desktop_config.json", _servers("desktop"))

        config = discover_config(home=tmp_path, cwd=tmp_path / "empty", platform="linux")

        assert config is not None
        assert config.client == "claude-code"

    def test_skips_configs_without_servers(self, tmp_path: Path) -> None:
        _write(tmp_path / ".claude.json", {"theme": "dark"})
        _write(tmp_path / ".codeium" / "windsurf" / "mcp_config.json", _servers("surf"))

        config = discover_config(home=tmp_path, cwd=tmp_path / "empty", platform="linux")

        assert config is not None
        assert config.client == "windsurf"

    def test_skips_unparseable_configs(self, tmp_path: Path) -> None:
        _write(tmp_path / ".claude.json", "{ not json")
        _write(tmp_path / ".config" / "claude" / "claude_desktop_config.json", _servers("ok"))

        config = discover_config(home=tmp_path, cwd=tmp_path / "empty", platform="linux")

        assert config is not None
        assert config.client == "claude-desktop"

    def test_nothing_found(self, tmp_path: Path) -> None:
        assert discover_config(home=tmp_path, cwd=tmp_path, platform="linux") is None

    def test_explicit_path(self, config_file: Path) -> None:
        config = discover_config(config_file)

        assert config is not None
        assert config.client == "explicit"
        assert config.config_path == str(config_file)
        assert list(config.servers) == ["filesystem", "github", "remote"]

    def test_explicit_missing_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            discover_config(tmp_path / "nope.json")


class TestParseConfig:
    """Tests for file parsing and normalization."""

    def test_normalizes_servers(self, config_file: Path) -> None:
        config = parse_config_file(config_file, client="claude-desktop")

        assert config is not None
        github = config.servers["github"]
        assert github.transport == Transport.STDIO
        assert github.command == "npx"
        assert github.env == {"GITHUB_PERSONAL_ACCESS_TOKEN": "ghp_realtoken123"}
        remote = config.servers["remote"]
        assert remote.transport == Transport.SSE
        assert remote.url == "https://mcp.example.com/sse"
        assert remote.command is None

    def test_jsonc(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "settings.json",
            """
            {
              // VS Code settings
              "editor.fontSize": 14,
              /* MCP servers */
              "mcp": {
                "servers": {
                  "docs": {"type": "http", "url": "https://docs.example.com/mcp",},
                },
              },
            }
            """,
        )

        config = parse_config_file(path, client="vscode")

        assert config is not None
        assert config.servers["docs"].transport == Transport.STREAMABLE_HTTP

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "bad.json", '{"mcpServers": ')

        with pytest.raises(ConfigError, match="Invalid JSON"):
            parse_config_file(path, client="x")

    def test_bare_servers_key(self) -> None:
        config = parse_config_dict(
            {"servers": {"a": {"command": "node"}}}, client="x", config_path="/x"
        )

        assert config is not None
        assert list(config.servers) == ["a"]

    @pytest.mark.parametrize("data", [[], {"mcpServers": {}}, {"mcpServers": {"a": "node"}}])
    def test_no_servers(self, data: Any) -> None:
        assert parse_config_dict(data, client="x", config_path="/x") is None

    def test_drops_non_string_args_and_stringifies_env(self) -> None:
        config = parse_config_dict(
            {"mcpServers": {"a": {"command": "node", "args": ["x", 1, None], "env": {"N": 2}}}},
            client="x",
            config_path="/x",
        )

        assert config is not None
        assert config.servers["a"].args == ["x"]
        assert config.servers["a"].env == {"N": "2"}


class TestInferTransport:
    """Tests for transport inference."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ({"command": "node"}, Transport.STDIO),
            ({"url": "https://x/sse"}, Transport.SSE),
            ({"url": "https://x/mcp", "type": "streamable-http"}, Transport.STREAMABLE_HTTP),
            ({"url": "https://x/mcp", "transport": "streamableHttp"}, Transport.STREAMABLE_HTTP),
            ({"url": "https://x/mcp", "type": "http"}, Transport.STREAMABLE_HTTP),
            ({"url": "https://x/events", "transport": "sse"}, Transport.SSE),
        ],
    )
    def test_inference(self, value: dict[str, Any], expected: Transport) -> None:
        assert infer_transport(value) == expected


class TestStripJsonc:
    """Tests for comment and trailing-comma removal."""

    def test_keeps_comment_markers_inside_strings(self) -> None:
        text = '{"url": "https://example.com/a//b", "note": "/* not a comment */"} // tail'
        assert json.loads(strip_jsonc(text)) == {
            "url": "https://example.com/a//b",
            "note": "/* not a comment */",
        }

    def test_escaped_quotes(self) -> None:
        text = '{"a": "say \\"hi\\" // still string",}'
        assert json.loads(strip_jsonc(text)) == {"a": 'say "hi" // still string'}
