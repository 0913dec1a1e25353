"""
Input schema rules.

Rules:
- wildcard-schema: Schema accepts arbitrary properties, so no input can be validated
"""

from __future__ import annotations

from mcplock.domain.models import FindingSeverity, ScanFinding
from mcplock.rules.base import Rule, RuleContext, RuleScope, make_finding


def check_wildcard_schema(ctx: RuleContext) -> list[ScanFinding] | None:
    if ctx.tool is None or not ctx.tool.input_schema:
        return None

    schema = ctx.tool.input_schema
    open_ended = schema.get("additionalProperties") is True
    no_properties = schema.get("type") == "object" and not schema.get("properties")
    if not (open_ended or no_properties):
        return None

    return [
        make_finding(
            "wildcard-schema",
            FindingSeverity.MEDIUM,
            ctx,
            title=f"Wildcard input schema on {ctx.tool.name}",
            detail=(
                "Tool accepts arbitrary properties (additionalProperties: true or no "
                "properties defined). This makes input validation impossible."
            ),
            remediation=(
                "Define explicit properties in the input schema and set "
                "additionalProperties: false."
            ),
        )
    ]


SCHEMA_RULES: list[Rule] = [
    Rule(
        id="wildcard-schema",
        scope=RuleScope.TOOL,
        check=check_wildcard_schema,
        name="Wildcard input schema",
        severity=FindingSeverity.MEDIUM,
    ),
]
