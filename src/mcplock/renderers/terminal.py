"""
Terminal renderer using Rich.

Outputs color-coded scan findings and drift entries to the terminal. Rich
honours NO_COLOR, so plain output needs no special casing here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from mcplock.domain.models import DiffSeverity, FindingSeverity
from mcplock.engine.scanner import TOOL_SHADOWING_RULE_ID

if TYPE_CHECKING:
    from mcplock.domain.lockfile import Lockfile
    from mcplock.domain.models import McpConfig, ScanFinding, ServerError
    from mcplock.domain.report import DiffEntry, DiffResult, ScanResult
    from mcplock.rules.base import Rule


class TerminalRenderer:
    """
    Renders mcplock results to the terminal using Rich.

    Findings are grouped by severity; drift entries are listed in the order
    the differ produced them, with old/new values when both are known.
    """

    SEVERITY_COLORS = {
        FindingSeverity.CRITICAL: "red bold",
        FindingSeverity.HIGH: "red",
        FindingSeverity.MEDIUM: "yellow",
        FindingSeverity.LOW: "blue",
    }

    DIFF_COLORS = {
        DiffSeverity.CRITICAL: "red bold",
        DiffSeverity.WARNING: "yellow",
        DiffSeverity.INFO: "blue",
    }

    def __init__(
        self,
        console: Console | None = None,
        show_remediation: bool = True,
    ) -> None:
        """
        Initialize the terminal renderer.

        Args:
            console: Rich console to use (creates new one if None).
            show_remediation: Whether to show remediation advice.
        """
        self.console = console or Console()
        self.show_remediation = show_remediation

    def render_config(self, config: McpConfig) -> None:
        """Render which config was picked up."""
        self.console.print(
            f"[green]✓[/green] Found [bold]{config.client}[/bold] config: "
            f"[cyan]{escape(config.config_path)}[/cyan]"
        )
        self.console.print(f"  {len(config.servers)} server(s) configured")

    def render_errors(self, errors: list[ServerError]) -> None:
        """Render per-server connection and rule errors."""
        for error in errors:
            self.console.print(
                f"[yellow]⚠ {escape(error.server)}:[/yellow] {escape(error.error)}"
            )

    def render_pin(self, lockfile: Lockfile, output: str) -> None:
        """Render the summary after writing a lockfile."""
        self.console.print(f"[green]✓[/green] Lockfile written to [cyan]{escape(output)}[/cyan]")
        self.console.print(
            f"  Pinned {len(lockfile.servers)} server(s), {lockfile.total_tools} tool(s)"
        )
        self.console.print(
            f"[dim]Commit {escape(output)} to your repository to track changes.[/dim]"
        )

    def render_diff(self, diff: DiffResult) -> None:
        """
        Render a drift result.

        Args:
            diff: The diff to render.
        """
        if not diff.drifted:
            self.console.print("[green]✓ No drift detected: lockfile matches current state[/green]")
            return

        self.console.print()
        for entry in diff.entries:
            self._render_diff_entry(entry)

        summary = diff.summary
        self.console.print(
            f"[magenta bold]{len(diff.entries)} change(s) detected:[/magenta bold] "
            f"{summary.critical} critical, {summary.warning} warning, {summary.info} info"
        )
        self.console.print('[dim]Run "mcplock pin" to accept current state as new baseline.[/dim]')

    def _render_diff_entry(self, entry: DiffEntry) -> None:
        color = self.DIFF_COLORS[entry.severity]
        label = Text(entry.severity.value.upper(), style=color)
        line = Text("  ")
        line.append_text(label)
        line.append(f"  {entry.location}")
        self.console.print(line)
        self.console.print(f"          {escape(entry.detail)}")

        if entry.old_value and entry.new_value:
            self.console.print(f"          [red]- {escape(entry.old_value)}[/red]")
            self.console.print(f"          [green]+ {escape(entry.new_value)}[/green]")
        self.console.print()

    def render_scan(self, result: ScanResult) -> None:
        """
        Render a scan result.

        Args:
            result: The scan result to render.
        """
        self.console.print()
        self.console.print(
            Panel(
                f"Scanned [bold]{result.servers_scanned}[/bold] server(s), "
                f"[bold]{result.tools_scanned}[/bold] tool(s)",
                title="mcplock scan",
                border_style="blue",
            )
        )

        if not result.findings:
            self.console.print("\n[green]✓ No security findings[/green]\n")
            return

        for severity in sorted(FindingSeverity, reverse=True):
            findings = result.findings_by_severity(severity)
            if findings:
                self._render_severity_group(severity, findings)

        self._render_summary(result)

    def _render_severity_group(
        self, severity: FindingSeverity, findings: list[ScanFinding]
    ) -> None:
        color = self.SEVERITY_COLORS[severity]
        self.console.print()
        self.console.print(f"[{color}]  {severity.value.upper()} ({len(findings)})[/]")

        for finding in findings:
            location = f"{finding.server} → {finding.tool}" if finding.tool else finding.server
            self.console.print(
                f"    [cyan]\\[{escape(finding.rule_id)}][/cyan] [bold]{escape(finding.title)}[/bold]"
            )
            self.console.print(f"      {escape(location)}")
            self.console.print(f"      [dim]{escape(finding.detail)}[/dim]")
            if self.show_remediation and finding.remediation:
                self.console.print(f"      [green]Fix: {escape(finding.remediation)}[/green]")
            self.console.print()

    def _render_summary(self, result: ScanResult) -> None:
        summary = result.summary

        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Severity", style="bold")
        table.add_column("Count", justify="right")

        for severity, count in (
            (FindingSeverity.CRITICAL, summary.critical),
            (FindingSeverity.HIGH, summary.high),
            (FindingSeverity.MEDIUM, summary.medium),
            (FindingSeverity.LOW, summary.low),
        ):
            if count > 0:
                color = self.SEVERITY_COLORS[severity]
                table.add_row(
                    Text(severity.value.upper(), style=color),
                    Text(str(count), style=color),
                )

        table.add_row("", "")
        table.add_row(Text("TOTAL", style="bold"), Text(str(summary.total), style="bold"))
        self.console.print(table)

        if summary.has_blocking_findings:
            blocking = summary.critical + summary.high
            self.console.print(
                f"\n[yellow]{blocking} critical/high issue(s) require attention.[/yellow]"
            )
        self.console.print()

    def render_rules(self, rules: list[Rule]) -> None:
        """Render a table of available rules."""
        table = Table(title="mcplock rules", show_lines=False)
        table.add_column("Rule", style="cyan")
        table.add_column("Scope")
        table.add_column("Severity")
        table.add_column("Name")
        table.add_column("Origin", style="dim")

        for rule in rules:
            severity = Text("varies", style="dim")
            if rule.severity is not None:
                severity = Text(rule.severity.value, style=self.SEVERITY_COLORS[rule.severity])
            table.add_row(rule.id, rule.scope.value, severity, rule.name, rule.origin.value)

        table.add_row(
            TOOL_SHADOWING_RULE_ID,
            "cross-server",
            Text(FindingSeverity.HIGH.value, style=self.SEVERITY_COLORS[FindingSeverity.HIGH]),
            "Tool name claimed by several servers",
            "builtin",
        )

        self.console.print(table)
