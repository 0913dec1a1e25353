"""
Main CLI entry point for mcplock.

Usage:
    mcplock pin
    mcplock diff --lockfile mcp-lock.json
    mcplock scan --severity high --sarif
    mcplock ci --strict --sarif results.sarif
    mcplock rules
"""

from __future__ import annotations

import functools
import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Callable, Optional

import anyio
import typer
from rich.console import Console
from rich.logging import RichHandler

from mcplock import __version__
from mcplock.constants import (
    DEFAULT_LOCKFILE,
    DEFAULT_RULES_FILE,
    DEFAULT_TIMEOUT_MS,
    EXIT_DRIFT,
    EXIT_ERROR,
    EXIT_OK,
)
from mcplock.domain.exceptions import (
    ConfigError,
    CustomRuleError,
    InvalidLockfileError,
    LockfileNotFoundError,
    UnsupportedLockfileVersionError,
)
from mcplock.domain.lockfile import Lockfile
from mcplock.domain.models import DiffSeverity, FindingSeverity, McpConfig

# Create the main Typer app
app = typer.Typer(
    name="mcplock",
    help="Lockfile and security scanner for Model Context Protocol (MCP) servers",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


class SeverityLevel(str, Enum):
    """Minimum severity level to report."""

    critical = "critical"
    high = "high"
    medium = "medium"
    low = "low"


ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to an MCP config file (default: auto-discover)."),
]
LockfileOption = Annotated[
    Path,
    typer.Option("--lockfile", "-l", help="Path to the lockfile."),
]
TimeoutOption = Annotated[
    int,
    typer.Option("--timeout", "-t", min=1, help="Per-server connection timeout in ms."),
]
ConnectOption = Annotated[
    bool,
    typer.Option("--connect/--no-connect", help="Connect to servers to pin tool metadata."),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output JSON instead of terminal output."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"mcplock version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Send mcplock's log records to stderr through Rich."""
    logger = logging.getLogger("mcplock")
    logger.handlers = [RichHandler(console=err_console, show_path=False, show_time=False)]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
) -> None:
    """
    mcplock: pin, diff and scan the tools your MCP servers expose.

    Examples:

        mcplock pin

        mcplock diff

        mcplock ci --strict --sarif results.sarif
    """
    configure_logging(verbose)


def _run(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    return anyio.run(functools.partial(func, *args, **kwargs))


def _load_config(config: Path | None) -> McpConfig:
    from mcplock.adapters.config import discover_config

    try:
        found = discover_config(config)
    except ConfigError as e:
        err_console.print(f"[red]✗ {e.message}[/red]")
        raise typer.Exit(EXIT_ERROR)

    if found is None:
        err_console.print("[red]✗ No MCP configuration found[/red]")
        err_console.print(
            "  Searched: project .mcp.json, claude-code (~/.claude.json), "
            "claude-desktop, cursor, vscode, windsurf"
        )
        err_console.print("  Use --config <path> to specify a config file explicitly.")
        raise typer.Exit(EXIT_ERROR)

    return found


def _load_lockfile(path: Path) -> Lockfile:
    from mcplock.engine.lockfile import read_lockfile

    try:
        return read_lockfile(path)
    except LockfileNotFoundError:
        err_console.print(f"[red]✗ Lockfile not found: {path}[/red]")
        err_console.print('  Run "mcplock pin" to generate a lockfile first.')
    except InvalidLockfileError as e:
        err_console.print(f"[red]✗ {e.message}[/red]")
        err_console.print('  Run "mcplock pin" to regenerate it.')
    except UnsupportedLockfileVersionError as e:
        err_console.print(f"[red]✗ {e.message}[/red]")
    raise typer.Exit(EXIT_ERROR)


@app.command()
def pin(
    config: ConfigOption = None,
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Where to write the lockfile."),
    ] = Path(DEFAULT_LOCKFILE),
    timeout: TimeoutOption = DEFAULT_TIMEOUT_MS,
    connect: ConnectOption = True,
    json_output: JsonOption = False,
) -> None:
    """
    Pin current MCP server state to a lockfile.

    Examples:

        mcplock pin

        mcplock pin --config .mcp.json --output mcp-lock.json

        mcplock pin --no-connect
    """
    from mcplock.engine.lockfile import generate_lockfile, write_lockfile
    from mcplock.renderers.json_renderer import JsonRenderer
    from mcplock.renderers.terminal import TerminalRenderer

    mcp_config = _load_config(config)
    renderer = TerminalRenderer(console=err_console if json_output else console)
    renderer.render_config(mcp_config)

    lockfile, errors = _run(
        generate_lockfile, mcp_config, timeout_ms=timeout, connect=connect
    )
    TerminalRenderer(console=err_console).render_errors(errors)

    if json_output:
        typer.echo(JsonRenderer().render_lockfile(lockfile))
    else:
        write_lockfile(lockfile, output)
        renderer.render_pin(lockfile, str(output))

    raise typer.Exit(EXIT_OK)


@app.command()
def diff(
    lockfile: LockfileOption = Path(DEFAULT_LOCKFILE),
    config: ConfigOption = None,
    timeout: TimeoutOption = DEFAULT_TIMEOUT_MS,
    connect: ConnectOption = True,
    json_output: JsonOption = False,
) -> None:
    """
    Compare current MCP server state against the lockfile.

    Exits 1 when any drift is found.
    """
    from mcplock.engine.differ import compute_diff
    from mcplock.renderers.json_renderer import JsonRenderer
    from mcplock.renderers.terminal import TerminalRenderer

    locked = _load_lockfile(lockfile)
    mcp_config = _load_config(config)

    result, errors = _run(
        compute_diff, locked, mcp_config, timeout_ms=timeout, connect=connect
    )

    if json_output:
        TerminalRenderer(console=err_console).render_errors(errors)
        typer.echo(JsonRenderer().render_diff(result, errors))
    else:
        renderer = TerminalRenderer(console=console)
        renderer.render_errors(errors)
        renderer.render_diff(result)

    raise typer.Exit(EXIT_DRIFT if result.drifted else EXIT_OK)


@app.command()
def scan(
    config: ConfigOption = None,
    rules_path: Annotated[
        Optional[Path],
        typer.Option(
            "--rules",
            "-r",
            help=f"Custom rules YAML file (default: {DEFAULT_RULES_FILE} if present).",
        ),
    ] = None,
    severity: Annotated[
        SeverityLevel,
        typer.Option("--severity", "-s", help="Minimum severity to report."),
    ] = SeverityLevel.low,
    timeout: TimeoutOption = DEFAULT_TIMEOUT_MS,
    json_output: JsonOption = False,
    sarif: Annotated[
        bool,
        typer.Option("--sarif", help="Output SARIF for the GitHub Security tab."),
    ] = False,
) -> None:
    """
    Scan MCP servers for security vulnerabilities.

    Exits 1 when any finding at or above --severity remains.

    Examples:

        mcplock scan

        mcplock scan --severity high

        mcplock scan --rules team-rules.yaml --sarif > results.sarif
    """
    from mcplock.engine.scanner import run_scan
    from mcplock.renderers.json_renderer import JsonRenderer
    from mcplock.renderers.sarif_renderer import SarifRenderer
    from mcplock.renderers.terminal import TerminalRenderer

    mcp_config = _load_config(config)
    custom_rules = _resolve_rules_path(rules_path)

    try:
        result, errors = _run(
            run_scan,
            mcp_config,
            timeout_ms=timeout,
            min_severity=FindingSeverity(severity.value),
            custom_rules_path=custom_rules,
        )
    except CustomRuleError as e:
        err_console.print(f"[red]✗ {e.message}[/red]")
        raise typer.Exit(EXIT_ERROR)

    if json_output or sarif:
        TerminalRenderer(console=err_console).render_errors(errors)
        if sarif:
            typer.echo(SarifRenderer().render_scan(result))
        else:
            typer.echo(JsonRenderer().render_scan(result, errors))
    else:
        renderer = TerminalRenderer(console=console)
        renderer.render_errors(errors)
        renderer.render_scan(result)

    raise typer.Exit(EXIT_DRIFT if result.findings else EXIT_OK)


@app.command()
def ci(
    lockfile: LockfileOption = Path(DEFAULT_LOCKFILE),
    config: ConfigOption = None,
    timeout: TimeoutOption = DEFAULT_TIMEOUT_MS,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Fail on any drift, not just critical."),
    ] = False,
    sarif: Annotated[
        Optional[Path],
        typer.Option("--sarif", help="Write SARIF output to this file."),
    ] = None,
) -> None:
    """
    CI mode: exit 1 on critical drift (or any drift with --strict).

    Prints GitHub Actions annotations for every change.
    """
    from mcplock.engine.differ import compute_diff
    from mcplock.renderers.sarif_renderer import SarifRenderer
    from mcplock.renderers.terminal import TerminalRenderer

    locked = _load_lockfile(lockfile)
    mcp_config = _load_config(config)

    result, errors = _run(compute_diff, locked, mcp_config, timeout_ms=timeout, connect=True)
    TerminalRenderer(console=err_console).render_errors(errors)

    if not result.drifted:
        console.print("[green]✓ mcplock: OK, no drift detected[/green]")
        raise typer.Exit(EXIT_OK)

    for entry in result.entries:
        level = "error" if entry.severity == DiffSeverity.CRITICAL else "warning"
        typer.echo(f"::{level} file={lockfile.name}::{entry.location}: {entry.detail}")

    if sarif is not None:
        renderer = SarifRenderer(lockfile_uri=lockfile.name)
        renderer.render_to_file(renderer.render_diff(result), sarif)
        console.print(f"SARIF output written to {sarif}")

    summary = result.summary
    console.print(
        f"\n[magenta bold]mcplock: DRIFT DETECTED[/magenta bold] {summary.critical} critical, "
        f"{summary.warning} warning, {summary.info} info"
    )

    should_fail = bool(result.entries) if strict else bool(result.critical_entries)
    if should_fail:
        reason = "drift detected (strict mode)" if strict else "critical drift detected"
        err_console.print(f'[red]✗ CI failed: {reason}. Run "mcplock pin" to update.[/red]')
        raise typer.Exit(EXIT_DRIFT)

    console.print("[yellow]CI passed with warnings. Consider updating your lockfile.[/yellow]")
    raise typer.Exit(EXIT_OK)


@app.command()
def rules(
    rules_path: Annotated[
        Optional[Path],
        typer.Option("--rules", "-r", help="Also list rules from a custom rules file."),
    ] = None,
) -> None:
    """List all available detection rules."""
    from mcplock.renderers.terminal import TerminalRenderer
    from mcplock.rules import BUILTIN_RULES, load_custom_rules

    all_rules = list(BUILTIN_RULES)
    if rules_path is not None:
        try:
            all_rules.extend(load_custom_rules(rules_path))
        except CustomRuleError as e:
            err_console.print(f"[red]✗ {e.message}[/red]")
            raise typer.Exit(EXIT_ERROR)

    TerminalRenderer(console=console).render_rules(all_rules)
    console.print(f"\nTotal: {len(all_rules) + 1} rules")


def _resolve_rules_path(rules_path: Path | None) -> Path | None:
    if rules_path is not None:
        return rules_path
    default = Path(DEFAULT_RULES_FILE)
    return default if default.is_file() else None


if __name__ == "__main__":
    app()
