"""
Base rule infrastructure.

A rule is plain data: an id, a scope and a pure `check` function. Built-in
rules and rules declared in a custom rules file share this one contract, so
the scanner never needs to know where a rule came from.

Rules must be stateless and side-effect free. No I/O, no network calls,
no filesystem access.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from mcplock.domain.models import (
    Capability,
    FindingSeverity,
    LiveTool,
    ScanFinding,
    ServerConfig,
)


class RuleScope(str, Enum):
    """When a rule can run."""

    CONFIG = "config"  # Server config only, no connection needed
    TOOL = "tool"  # Requires live tool metadata


class RuleOrigin(str, Enum):
    """Where a rule was declared."""

    BUILTIN = "builtin"
    CUSTOM = "custom"


class RuleContext(BaseModel):
    """
    Everything a rule may look at.

    For config-scope rules `tool` and `capabilities` are None.
    """

    model_config = ConfigDict(frozen=True)

    server_name: str
    config: ServerConfig
    tool: LiveTool | None = None
    capabilities: tuple[Capability, ...] | None = None


CheckFn = Callable[[RuleContext], Optional[list[ScanFinding]]]


class Rule(BaseModel):
    """A detection rule."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Rule identifier, e.g. no-auth")
    scope: RuleScope = Field(..., description="config or tool")
    check: CheckFn = Field(..., description="Pure (context) -> findings | None")
    origin: RuleOrigin = Field(default=RuleOrigin.BUILTIN)
    name: str = Field(default="", description="Human-readable rule name")
    severity: FindingSeverity | None = Field(
        default=None, description="Typical severity, for listings"
    )

    def run(self, context: RuleContext) -> list[ScanFinding]:
        """Run the check and normalize "no findings" to an empty list."""
        return list(self.check(context) or [])

    def __repr__(self) -> str:
        return f"<Rule {self.id} ({self.scope.value}, {self.origin.value})>"


def make_finding(
    rule_id: str,
    severity: FindingSeverity,
    context: RuleContext,
    title: str,
    detail: str,
    remediation: str | None = None,
) -> ScanFinding:
    """Helper to create a finding located at the context's server/tool."""
    return ScanFinding(
        rule_id=rule_id,
        severity=severity,
        server=context.server_name,
        tool=context.tool.name if context.tool else None,
        title=title,
        detail=detail,
        remediation=remediation,
    )
