"""
Over-permission detection rules.

Detects tools whose inferred capabilities make a compromise expensive.

Rules:
- over-permissioned: Two or more dangerous capabilities on one tool
- command-injection-risk: Free-text input feeding an execute-capable tool
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from mcplock.domain.models import Capability, FindingSeverity, ScanFinding
from mcplock.rules.base import Rule, RuleContext, RuleScope, make_finding

DANGEROUS_CAPABILITIES = (Capability.EXECUTE, Capability.DELETE, Capability.SECRETS)


def check_over_permissioned(ctx: RuleContext) -> list[ScanFinding] | None:
    if ctx.tool is None or not ctx.capabilities:
        return None

    dangerous = [cap for cap in DANGEROUS_CAPABILITIES if cap in ctx.capabilities]
    if len(dangerous) < 2:
        return None

    return [
        make_finding(
            "over-permissioned",
            FindingSeverity.HIGH,
            ctx,
            title=f"Over-permissioned tool: {ctx.tool.name}",
            detail=(
                f"Tool has multiple dangerous capabilities: "
                f"{', '.join(cap.value for cap in dangerous)}. "
                f"This increases the blast radius of a compromise."
            ),
            remediation=(
                "Consider splitting this tool into separate, more focused tools "
                "with fewer permissions."
            ),
        )
    ]


def check_command_injection_risk(ctx: RuleContext) -> list[ScanFinding] | None:
    if ctx.tool is None or not ctx.tool.input_schema:
        return None
    if Capability.EXECUTE not in (ctx.capabilities or ()):
        return None
    if not accepts_string(ctx.tool.input_schema):
        return None

    return [
        make_finding(
            "command-injection-risk",
            FindingSeverity.MEDIUM,
            ctx,
            title=f"Potential command injection in {ctx.tool.name}",
            detail=(
                "Tool accepts string input and has execute capability. "
                "User input could be injected into commands."
            ),
            remediation="Ensure the tool validates and sanitizes all string inputs before execution.",
        )
    ]


def accepts_string(schema: Any) -> bool:
    """Whether any (sub)schema declares `"type": "string"`."""
    if isinstance(schema, Mapping):
        declared = schema.get("type")
        if declared == "string" or (isinstance(declared, list) and "string" in declared):
            return True
        return any(accepts_string(value) for value in schema.values())
    if isinstance(schema, list):
        return any(accepts_string(item) for item in schema)
    return False


OVER_PERMISSION_RULES: list[Rule] = [
    Rule(
        id="over-permissioned",
        scope=RuleScope.TOOL,
        check=check_over_permissioned,
        name="Multiple dangerous capabilities",
        severity=FindingSeverity.HIGH,
    ),
    Rule(
        id="command-injection-risk",
        scope=RuleScope.TOOL,
        check=check_command_injection_risk,
        name="String input to execute-capable tool",
        severity=FindingSeverity.MEDIUM,
    ),
]
