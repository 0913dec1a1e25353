"""
JSON renderer for mcplock.

Outputs machine-readable lockfiles, diffs and scan results.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mcplock.domain.lockfile import Lockfile
    from mcplock.domain.models import ServerError
    from mcplock.domain.report import DiffResult, ScanResult


class JsonRenderer:
    """
    Renders results as JSON.

    Provides machine-readable output for CI/CD pipelines
    and downstream processing.
    """

    def __init__(self, indent: int = 2) -> None:
        self.indent = indent

    def render_lockfile(self, lockfile: Lockfile) -> str:
        return self._dumps(lockfile.to_json())

    def render_diff(self, diff: DiffResult, errors: list[ServerError] | None = None) -> str:
        """
        Render a diff result, with any per-server errors alongside.

        Args:
            diff: The diff to render.
            errors: Servers that could not be contacted.
        """
        return self._dumps(self._with_errors(diff.to_json(), errors))

    def render_scan(self, result: ScanResult, errors: list[ServerError] | None = None) -> str:
        """Render a scan result, with any per-server errors alongside."""
        return self._dumps(self._with_errors(result.to_json(), errors))

    def _with_errors(
        self, data: dict[str, Any], errors: list[ServerError] | None
    ) -> dict[str, Any]:
        if errors:
            data["errors"] = [e.model_dump(mode="json") for e in errors]
        return data

    def _dumps(self, data: dict[str, Any]) -> str:
        return json.dumps(data, indent=self.indent, ensure_ascii=False, default=str)
