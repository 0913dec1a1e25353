"""
Result models for drift diffs and static scans.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from mcplock.domain.models import DiffSeverity, FindingSeverity, ScanFinding


class DiffType(str, Enum):
    """Closed taxonomy of drift between a baseline and live state."""

    SERVER_ADDED = "server-added"
    SERVER_REMOVED = "server-removed"
    TOOL_ADDED = "tool-added"
    TOOL_REMOVED = "tool-removed"
    DESCRIPTION_CHANGED = "description-changed"
    SCHEMA_CHANGED = "schema-changed"
    CAPABILITY_CHANGED = "capability-changed"
    VERSION_CHANGED = "version-changed"
    TOOL_COUNT_CHANGED = "tool-count-changed"

    @property
    def summary(self) -> str:
        """Generic, instance-independent description of this change type."""
        return _DIFF_TYPE_SUMMARIES[self]


_DIFF_TYPE_SUMMARIES = {
    DiffType.DESCRIPTION_CHANGED: "Tool description hash changed (possible tool poisoning)",
    DiffType.SCHEMA_CHANGED: "Tool input schema changed",
    DiffType.CAPABILITY_CHANGED: "Tool capabilities changed",
    DiffType.TOOL_ADDED: "New tool appeared",
    DiffType.TOOL_REMOVED: "Tool was removed",
    DiffType.SERVER_ADDED: "New server appeared",
    DiffType.SERVER_REMOVED: "Server was removed",
    DiffType.VERSION_CHANGED: "Server version changed",
    DiffType.TOOL_COUNT_CHANGED: "Tool count changed",
}


class DiffEntry(BaseModel):
    """A single change between the baseline and the live state."""

    model_config = ConfigDict(frozen=True)

    server: str
    tool: str | None = None
    type: DiffType
    severity: DiffSeverity
    detail: str
    old_value: str | None = None
    new_value: str | None = None

    @property
    def location(self) -> str:
        return f"{self.server} → {self.tool}" if self.tool else self.server


class DiffSummary(BaseModel):
    """Tally of diff entries by severity."""

    model_config = ConfigDict(frozen=True)

    critical: int = Field(default=0, ge=0)
    warning: int = Field(default=0, ge=0)
    info: int = Field(default=0, ge=0)

    @classmethod
    def from_entries(cls, entries: list[DiffEntry]) -> DiffSummary:
        counts = {severity: 0 for severity in DiffSeverity}
        for entry in entries:
            counts[entry.severity] += 1
        return cls(
            critical=counts[DiffSeverity.CRITICAL],
            warning=counts[DiffSeverity.WARNING],
            info=counts[DiffSeverity.INFO],
        )


class DiffResult(BaseModel):
    """
    Output of a drift check.

    Whether a given result should fail a pipeline (any drift vs. critical
    drift only) is left to the caller.
    """

    model_config = ConfigDict(frozen=True)

    drifted: bool = False
    entries: list[DiffEntry] = Field(default_factory=list)
    summary: DiffSummary = Field(default_factory=DiffSummary)

    @classmethod
    def from_entries(cls, entries: list[DiffEntry]) -> DiffResult:
        return cls(
            drifted=len(entries) > 0,
            entries=entries,
            summary=DiffSummary.from_entries(entries),
        )

    @property
    def critical_entries(self) -> list[DiffEntry]:
        return [e for e in self.entries if e.severity == DiffSeverity.CRITICAL]

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ScanSummary(BaseModel):
    """Summary statistics for a scan."""

    model_config = ConfigDict(frozen=True)

    critical: int = Field(default=0, ge=0, description="Number of critical findings")
    high: int = Field(default=0, ge=0, description="Number of high findings")
    medium: int = Field(default=0, ge=0, description="Number of medium findings")
    low: int = Field(default=0, ge=0, description="Number of low findings")

    @property
    def total(self) -> int:
        """Total number of findings."""
        return self.critical + self.high + self.medium + self.low

    @property
    def has_blocking_findings(self) -> bool:
        """Whether there are critical or high findings."""
        return self.critical > 0 or self.high > 0

    @classmethod
    def from_findings(cls, findings: list[ScanFinding]) -> ScanSummary:
        """Create a summary from a list of findings."""
        counts = {severity: 0 for severity in FindingSeverity}
        for finding in findings:
            counts[finding.severity] += 1

        return cls(
            critical=counts[FindingSeverity.CRITICAL],
            high=counts[FindingSeverity.HIGH],
            medium=counts[FindingSeverity.MEDIUM],
            low=counts[FindingSeverity.LOW],
        )


class ScanResult(BaseModel):
    """Output of a static scan across all configured servers."""

    model_config = ConfigDict(frozen=True)

    findings: list[ScanFinding] = Field(default_factory=list)
    servers_scanned: int = Field(default=0, ge=0)
    tools_scanned: int = Field(default=0, ge=0)
    summary: ScanSummary = Field(default_factory=ScanSummary)

    def findings_by_severity(self, severity: FindingSeverity) -> list[ScanFinding]:
        """Get findings filtered by severity."""
        return [f for f in self.findings if f.severity == severity]

    def findings_by_rule(self, rule_id: str) -> list[ScanFinding]:
        """Get findings filtered by rule ID."""
        return [f for f in self.findings if f.rule_id == rule_id]

    def to_json(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return self.model_dump(mode="json", exclude_none=True)
