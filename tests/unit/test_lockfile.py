"""
Unit tests for lockfile building, parsing and I/O.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from mcplock.constants import LOCKFILE_VERSION
from mcplock.domain.exceptions import (
    InvalidLockfileError,
    LockfileError,
    LockfileNotFoundError,
    UnsupportedLockfileVersionError,
)
from mcplock.domain.lockfile import Lockfile
from mcplock.domain.models import (
    Capability,
    LiveServerInfo,
    LiveTool,
    McpConfig,
    ServerConfig,
    Transport,
)
from mcplock.engine.hashing import hash_value
from mcplock.engine.lockfile import (
    build_config_only_entry,
    build_server_entry,
    build_tool_entry,
    generate_lockfile,
    parse_lockfile,
    read_lockfile,
    sanitize_path,
    write_lockfile,
)


HOME = "/home/dev"


def _lockfile_json(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "version": 1,
        "locked": "2025-01-01T00:00:00.000Z",
        "host": "ci-runner",
        "client": "claude-desktop",
        "configPath": "~/.config/claude/claude_desktop_config.json",
        "servers": {
            "filesystem": {
                "transport": "stdio",
                "command": "npx",
                "args": ["-y", "@modelcontextprotocol/server-filesystem"],
                "serverName": "filesystem-server",
                "serverVersion": "1.0.0",
                "tools": {
                    "read_file": {
                        "descriptionHash": hash_value("Read a file"),
                        "inputSchemaHash": hash_value({}),
                        "capabilities": ["read"],
                    }
                },
                "toolCount": 1,
            }
        },
    }
    data.update(overrides)
    return data


class TestSanitizePath:
    """Tests for home-directory elision."""

    def test_replaces_home_prefix(self) -> None:
        assert sanitize_path("/home/dev/projects/x", HOME) == "~/projects/x"

    def test_exact_home(self) -> None:
        assert sanitize_path("/home/dev", HOME) == "~"

    def test_other_paths_unchanged(self) -> None:
        assert sanitize_path("/opt/tools/server", HOME) == "/opt/tools/server"

    def test_requires_separator_boundary(self) -> None:
        assert sanitize_path("/home/developer/x", HOME) == "/home/developer/x"

    def test_trailing_slash_on_home(self) -> None:
        assert sanitize_path("/home/dev/x", "/home/dev/") == "~/x"


class TestBuilders:
    """Tests for tool and server entry construction."""

    def test_tool_entry(self, file_tool: LiveTool) -> None:
        entry = build_tool_entry(file_tool)

        assert entry.description_hash == hash_value(file_tool.description)
        assert entry.input_schema_hash == hash_value(file_tool.input_schema)
        assert entry.capabilities == [Capability.READ]

    def test_tool_entry_missing_fields(self) -> None:
        entry = build_tool_entry(LiveTool(name="bare"))

        assert entry.description_hash == hash_value("")
        assert entry.input_schema_hash == hash_value({})

    def test_config_only_entry_elides_env_values(self) -> None:
        config = ServerConfig(
            command="/home/dev/bin/server",
            args=["--root", "/home/dev/data"],
            env={"API_KEY": "super-secret", "DEBUG": "1"},
        )

        entry = build_config_only_entry(config, home=HOME)

        assert entry.command == "~/bin/server"
        assert entry.args == ["--root", "~/data"]
        assert entry.env_vars == ["API_KEY", "DEBUG"]
        assert "super-secret" not in json.dumps(entry.model_dump(by_alias=True))
        assert entry.tools == {}
        assert entry.tool_count == 0

    def test_server_entry(
        self, stdio_server: ServerConfig, filesystem_info: LiveServerInfo
    ) -> None:
        entry = build_server_entry(stdio_server, filesystem_info, home=HOME)

        assert entry.transport == Transport.STDIO
        assert entry.server_name == "filesystem-server"
        assert entry.server_version == "1.0.0"
        assert entry.protocol_version == "2024-11-05"
        assert list(entry.tools) == ["read_file"]
        assert entry.tool_count == 1
        assert entry.args == ["-y", "@modelcontextprotocol/server-filesystem", "~/projects"]


class TestGenerateLockfile:
    """Tests for generate_lockfile."""

    @pytest.mark.anyio
    async def test_pins_connected_servers(
        self, mcp_config: McpConfig, fake_connector: Any
    ) -> None:
        lockfile, errors = await generate_lockfile(
            mcp_config, timeout_ms=1000, connector=fake_connector, home=HOME, host="box"
        )

        assert errors == []
        assert lockfile.version == LOCKFILE_VERSION
        assert lockfile.host == "box"
        assert lockfile.client == "claude-desktop"
        assert lockfile.config_path == "~/.config/claude/claude_desktop_config.json"
        assert lockfile.locked.endswith("Z")
        assert set(lockfile.servers) == {"filesystem", "weather"}
        assert lockfile.total_tools == 2

    @pytest.mark.anyio
    async def test_failed_server_is_omitted(
        self,
        mcp_config: McpConfig,
        filesystem_info: LiveServerInfo,
        connector_factory: Any,
    ) -> None:
        connector = connector_factory(
            {"filesystem": filesystem_info, "weather": ConnectionError("refused")}
        )

        lockfile, errors = await generate_lockfile(
            mcp_config, timeout_ms=1000, connector=connector, home=HOME
        )

        assert list(lockfile.servers) == ["filesystem"]
        assert [(e.server, e.error) for e in errors] == [("weather", "refused")]

    @pytest.mark.anyio
    async def test_deeply_nested_schema_is_pinned(
        self,
        mcp_config: McpConfig,
        filesystem_info: LiveServerInfo,
        connector_factory: Any,
    ) -> None:
        schema: dict[str, Any] = {"type": "string"}
        for _ in range(600):
            schema = {"type": "object", "properties": {"inner": schema}}
        nested_info = LiveServerInfo(
            server_name="nested", tools=[LiveTool(name="deep", input_schema=schema)]
        )
        connector = connector_factory({"filesystem": filesystem_info, "weather": nested_info})

        lockfile, errors = await generate_lockfile(
            mcp_config, timeout_ms=1000, connector=connector, home=HOME
        )

        assert errors == []
        assert set(lockfile.servers) == {"filesystem", "weather"}
        assert lockfile.servers["weather"].tools["deep"].input_schema_hash == hash_value(schema)

    @pytest.mark.anyio
    async def test_no_connect_pins_config_only(
        self, mcp_config: McpConfig, fake_connector: Any
    ) -> None:
        lockfile, errors = await generate_lockfile(
            mcp_config, timeout_ms=1000, connect=False, connector=fake_connector, home=HOME
        )

        assert fake_connector.calls == []
        assert errors == []
        assert set(lockfile.servers) == {"filesystem", "weather"}
        assert all(s.tool_count == 0 and s.tools == {} for s in lockfile.servers.values())


class TestParseLockfile:
    """Tests for loading untrusted lockfile content."""

    def test_parses_camel_case(self) -> None:
        lockfile = parse_lockfile(json.dumps(_lockfile_json()))

        server = lockfile.servers["filesystem"]
        assert server.server_version == "1.0.0"
        assert server.tools["read_file"].capabilities == [Capability.READ]
        assert lockfile.config_path.startswith("~")

    def test_strips_forbidden_keys(self) -> None:
        data = _lockfile_json()
        data["servers"]["filesystem"]["__proto__"] = {"polluted": True}
        data["constructor"] = {"prototype": {"x": 1}}
        text = json.dumps(data)

        lockfile = parse_lockfile(text)

        dumped = json.dumps(lockfile.to_json())
        assert "__proto__" not in dumped
        assert "constructor" not in dumped
        assert "polluted" not in dumped

    def test_strips_forbidden_server_names(self) -> None:
        data = _lockfile_json()
        data["servers"]["__proto__"] = data["servers"]["filesystem"]

        lockfile = parse_lockfile(json.dumps(data))

        assert list(lockfile.servers) == ["filesystem"]

    def test_newer_version_rejected(self) -> None:
        with pytest.raises(UnsupportedLockfileVersionError) as exc_info:
            parse_lockfile(json.dumps(_lockfile_json(version=LOCKFILE_VERSION + 1)))

        assert exc_info.value.version == LOCKFILE_VERSION + 1
        assert exc_info.value.supported == LOCKFILE_VERSION

    @pytest.mark.parametrize(
        "version",
        [LOCKFILE_VERSION + 1, LOCKFILE_VERSION + 0.5],
    )
    def test_newer_version_rejected_before_layout_checks(self, version: float) -> None:
        text = json.dumps({"version": version, "locked": "x", "servers": []})

        with pytest.raises(UnsupportedLockfileVersionError) as exc_info:
            parse_lockfile(text)

        assert exc_info.value.version == version

    def test_deep_nesting_is_invalid(self) -> None:
        with pytest.raises(InvalidLockfileError, match="nested too deeply"):
            parse_lockfile("[" * 100000)

    @pytest.mark.parametrize(
        "text",
        [
            "not json",
            "[]",
            json.dumps(_lockfile_json(version="1")),
            json.dumps(_lockfile_json(version=True)),
            json.dumps(_lockfile_json(servers=[])),
            json.dumps({"version": 1, "servers": {}}),
        ],
    )
    def test_malformed(self, text: str) -> None:
        with pytest.raises(InvalidLockfileError):
            parse_lockfile(text)

    def test_errors_share_base_class(self) -> None:
        with pytest.raises(LockfileError):
            parse_lockfile("{")


class TestLockfileIO:
    """Tests for reading and writing lockfiles."""

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(LockfileNotFoundError):
            read_lockfile(tmp_path / "mcp-lock.json")

    def test_write_then_read(self, tmp_path: Path) -> None:
        lockfile = Lockfile.model_validate(_lockfile_json())
        path = tmp_path / "mcp-lock.json"

        write_lockfile(lockfile, path)

        text = path.read_text(encoding="utf-8")
        assert text.endswith("}\n")
        assert '"descriptionHash"' in text
        assert '"toolCount": 1' in text
        assert read_lockfile(path) == lockfile

    def test_omits_absent_fields(self, tmp_path: Path) -> None:
        lockfile = Lockfile.model_validate(_lockfile_json())
        path = tmp_path / "mcp-lock.json"

        write_lockfile(lockfile, path)

        server = json.loads(path.read_text(encoding="utf-8"))["servers"]["filesystem"]
        assert "url" not in server
        assert "envVars" not in server
