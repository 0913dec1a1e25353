"""
SARIF renderer for mcplock.

Outputs SARIF 2.1.0 for GitHub Code Scanning, for both scan findings and
drift entries.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from mcplock.constants import CLIENT_NAME, DEFAULT_LOCKFILE, VERSION
from mcplock.domain.models import DiffSeverity, FindingSeverity

if TYPE_CHECKING:
    from mcplock.domain.models import ScanFinding
    from mcplock.domain.report import DiffEntry, DiffResult, ScanResult


class SarifRenderer:
    """
    Renders results as SARIF 2.1.0.

    SARIF (Static Analysis Results Interchange Format) is supported
    by GitHub Code Scanning for inline PR annotations.
    """

    SARIF_VERSION = "2.1.0"
    SCHEMA_URL = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/main/sarif-2.1/schema/sarif-schema-2.1.0.json"
    INFORMATION_URI = "https://github.com/mcplock/mcplock"

    # Map severities to SARIF levels
    SEVERITY_LEVELS = {
        FindingSeverity.CRITICAL: "error",
        FindingSeverity.HIGH: "error",
        FindingSeverity.MEDIUM: "warning",
        FindingSeverity.LOW: "note",
    }

    DIFF_LEVELS = {
        DiffSeverity.CRITICAL: "error",
        DiffSeverity.WARNING: "warning",
        DiffSeverity.INFO: "warning",
    }

    def __init__(self, lockfile_uri: str = DEFAULT_LOCKFILE) -> None:
        """
        Initialize the SARIF renderer.

        Args:
            lockfile_uri: Artifact location reported for drift results.
        """
        self.lockfile_uri = lockfile_uri

    def render_scan(self, result: ScanResult) -> str:
        return json.dumps(self.scan_to_sarif(result.findings), indent=2, ensure_ascii=False)

    def render_diff(self, diff: DiffResult) -> str:
        return json.dumps(self.diff_to_sarif(diff.entries), indent=2, ensure_ascii=False)

    def scan_to_sarif(self, findings: list[ScanFinding]) -> dict[str, Any]:
        """
        Convert scan findings to a SARIF log.

        Rule definitions are deduplicated by rule id, first occurrence wins.
        """
        rules: dict[str, dict[str, Any]] = {}
        for finding in findings:
            rules.setdefault(
                finding.rule_id,
                {
                    "id": finding.rule_id,
                    "shortDescription": {"text": finding.title},
                    "defaultConfiguration": {"level": self.SEVERITY_LEVELS[finding.severity]},
                },
            )

        results = [self._finding_to_result(f) for f in findings]
        return self._log(list(rules.values()), results)

    def diff_to_sarif(self, entries: list[DiffEntry]) -> dict[str, Any]:
        """
        Convert drift entries to a SARIF log.

        Each diff type becomes a rule with its generic description.
        """
        rules: dict[str, dict[str, Any]] = {}
        for entry in entries:
            rules.setdefault(
                entry.type.value,
                {"id": entry.type.value, "shortDescription": {"text": entry.type.summary}},
            )

        results = [
            {
                "ruleId": entry.type.value,
                "level": self.DIFF_LEVELS[entry.severity],
                "message": {"text": f"{entry.location}: {entry.detail}"},
                "locations": [self._location(self.lockfile_uri)],
            }
            for entry in entries
        ]
        return self._log(list(rules.values()), results)

    def _finding_to_result(self, finding: ScanFinding) -> dict[str, Any]:
        result: dict[str, Any] = {
            "ruleId": finding.rule_id,
            "level": self.SEVERITY_LEVELS[finding.severity],
            "message": {"text": f"{finding.title}: {finding.detail}"},
            "locations": [self._location(finding.server)],
        }
        if finding.tool:
            result["properties"] = {"tool": finding.tool}
        return result

    def _location(self, uri: str) -> dict[str, Any]:
        return {"physicalLocation": {"artifactLocation": {"uri": uri}}}

    def _log(self, rules: list[dict[str, Any]], results: list[dict[str, Any]]) -> dict[str, Any]:
        return {
            "$schema": self.SCHEMA_URL,
            "version": self.SARIF_VERSION,
            "runs": [
                {
                    "tool": {
                        "driver": {
                            "name": CLIENT_NAME,
                            "version": VERSION,
                            "informationUri": self.INFORMATION_URI,
                            "rules": rules,
                        }
                    },
                    "results": results,
                }
            ],
        }

    def render_to_file(self, content: str, path: str | Path) -> None:
        Path(path).write_text(content + "\n", encoding="utf-8")
