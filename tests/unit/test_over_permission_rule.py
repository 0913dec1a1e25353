"""
Unit tests for over-permission and input schema rules.
"""

from __future__ import annotations

from typing import Any

import pytest

from mcplock.domain.models import Capability, FindingSeverity, LiveTool, ServerConfig
from mcplock.engine.capabilities import infer_capabilities
from mcplock.rules.base import RuleContext
from mcplock.rules.dynamic_schema import check_wildcard_schema
from mcplock.rules.over_permission import (
    accepts_string,
    check_command_injection_risk,
    check_over_permissioned,
)


def _ctx(tool: LiveTool, capabilities: tuple[Capability, ...] | None = None) -> RuleContext:
    if capabilities is None:
        capabilities = tuple(infer_capabilities(tool.description, tool.name, tool.input_schema))
    return RuleContext(
        server_name="test",
        config=ServerConfig(command="node"),
        tool=tool,
        capabilities=capabilities,
    )


class TestOverPermissioned:
    """Tests for over-permissioned: several dangerous capabilities."""

    def test_execute_and_delete(self) -> None:
        tool = LiveTool(name="admin", description="Run a shell command or delete any file")

        findings = check_over_permissioned(_ctx(tool))

        assert findings is not None and len(findings) == 1
        assert findings[0].rule_id == "over-permissioned"
        assert findings[0].severity == FindingSeverity.HIGH
        assert "execute, delete" in findings[0].detail

    def test_single_dangerous_capability(self) -> None:
        tool = LiveTool(name="cleanup", description="Delete temporary files")
        assert check_over_permissioned(_ctx(tool)) is None

    def test_uses_context_capabilities(self) -> None:
        tool = LiveTool(name="x", description="harmless")
        ctx = _ctx(tool, (Capability.SECRETS, Capability.EXECUTE))

        findings = check_over_permissioned(ctx)

        assert findings is not None
        assert "execute, secrets" in findings[0].detail

    def test_no_capabilities(self) -> None:
        assert check_over_permissioned(_ctx(LiveTool(name="x"), ())) is None


class TestCommandInjectionRisk:
    """Tests for command-injection-risk: string input to execute tools."""

    def test_execute_with_string_input(self) -> None:
        tool = LiveTool(
            name="run",
            description="Run a command",
            input_schema={"type": "object", "properties": {"cmd": {"type": "string"}}},
        )

        findings = check_command_injection_risk(_ctx(tool))

        assert findings is not None and len(findings) == 1
        assert findings[0].rule_id == "command-injection-risk"
        assert findings[0].severity == FindingSeverity.MEDIUM

    def test_execute_without_string_input(self) -> None:
        tool = LiveTool(
            name="run",
            description="Run job number",
            input_schema={"type": "object", "properties": {"job": {"type": "integer"}}},
        )
        assert check_command_injection_risk(_ctx(tool)) is None

    def test_string_input_without_execute(self, weather_tool: LiveTool) -> None:
        assert check_command_injection_risk(_ctx(weather_tool)) is None

    @pytest.mark.parametrize(
        ("schema", "expected"),
        [
            ({"type": "string"}, True),
            ({"properties": {"a": {"type": ["null", "string"]}}}, True),
            ({"properties": {"a": {"type": "array", "items": {"type": "string"}}}}, True),
            ({"anyOf": [{"type": "integer"}, {"type": "string"}]}, True),
            ({"properties": {"a": {"type": "number"}}}, False),
            ({}, False),
        ],
    )
    def test_accepts_string(self, schema: dict[str, Any], expected: bool) -> None:
        assert accepts_string(schema) is expected


class TestWildcardSchema:
    """Tests for wildcard-schema: schemas that accept anything."""

    def test_additional_properties_true(self) -> None:
        tool = LiveTool(
            name="t",
            input_schema={
                "type": "object",
                "properties": {"a": {"type": "string"}},
                "additionalProperties": True,
            },
        )

        findings = check_wildcard_schema(_ctx(tool, ()))

        assert findings is not None and len(findings) == 1
        assert findings[0].rule_id == "wildcard-schema"
        assert findings[0].severity == FindingSeverity.MEDIUM

    @pytest.mark.parametrize("properties", [None, {}])
    def test_object_without_properties(self, properties: dict[str, Any] | None) -> None:
        schema: dict[str, Any] = {"type": "object"}
        if properties is not None:
            schema["properties"] = properties
        assert check_wildcard_schema(_ctx(LiveTool(name="t", input_schema=schema), ()))

    def test_explicit_schema_passes(self, weather_tool: LiveTool) -> None:
        assert check_wildcard_schema(_ctx(weather_tool, ())) is None

    def test_missing_schema_passes(self) -> None:
        assert check_wildcard_schema(_ctx(LiveTool(name="t"), ())) is None
