"""
Scanner orchestrator: the core of the static scanner.

Runs config-scope rules per server, tool-scope rules per (server, tool)
once live tool metadata is available, and finally the cross-server
tool-shadowing pass, which no single-entity rule can express.

A rule that raises is skipped for that context only: the failure is logged
and reported as a ServerError, and the rest of the scan continues.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from mcplock.domain.exceptions import RuleError
from mcplock.domain.models import (
    FindingSeverity,
    McpConfig,
    ScanFinding,
    ServerError,
)
from mcplock.domain.report import ScanResult, ScanSummary
from mcplock.engine.capabilities import infer_capabilities
from mcplock.engine.runner import Connector, fetch_all
from mcplock.rules import BUILTIN_RULES
from mcplock.rules.base import Rule, RuleContext, RuleScope
from mcplock.rules.custom import load_custom_rules

logger = logging.getLogger(__name__)

TOOL_SHADOWING_RULE_ID = "tool-shadowing"


async def run_scan(
    config: McpConfig,
    *,
    timeout_ms: int,
    min_severity: FindingSeverity = FindingSeverity.LOW,
    custom_rules_path: str | Path | None = None,
    rules: list[Rule] | None = None,
    connector: Connector | None = None,
) -> tuple[ScanResult, list[ServerError]]:
    """
    Scan MCP servers for vulnerabilities and misconfigurations.

    This is the primary public API for static scanning.

    Args:
        config: Normalized MCP client config.
        timeout_ms: Per-server connection timeout.
        min_severity: Minimum severity to include in the result.
        custom_rules_path: Optional YAML file with additional rules.
        rules: Rules to run. Defaults to BUILTIN_RULES.
        connector: Connector override, mainly for tests.

    Returns:
        (scan result, per-server errors including rule failures)

    Raises:
        CustomRuleError: If the custom rules file is missing or malformed.
    """
    start_time = time.perf_counter()

    all_rules = list(rules if rules is not None else BUILTIN_RULES)
    if custom_rules_path is not None:
        all_rules.extend(load_custom_rules(custom_rules_path))

    config_rules = [r for r in all_rules if r.scope == RuleScope.CONFIG]
    tool_rules = [r for r in all_rules if r.scope == RuleScope.TOOL]

    findings: list[ScanFinding] = []
    rule_errors: list[ServerError] = []

    for name, server_config in config.servers.items():
        ctx = RuleContext(server_name=name, config=server_config)
        for rule in config_rules:
            findings.extend(_run_rule(rule, ctx, rule_errors))

    live, errors = await fetch_all(config, timeout_ms=timeout_ms, connector=connector)

    tools_scanned = 0
    tool_servers: dict[str, list[str]] = {}

    for name, info in live.items():
        tools_scanned += len(info.tools)
        server_config = config.servers[name]

        for tool in info.tools:
            claimants = tool_servers.setdefault(tool.name, [])
            if name not in claimants:
                claimants.append(name)

            ctx = RuleContext(
                server_name=name,
                config=server_config,
                tool=tool,
                capabilities=tuple(
                    infer_capabilities(tool.description, tool.name, tool.input_schema)
                ),
            )
            for rule in tool_rules:
                findings.extend(_run_rule(rule, ctx, rule_errors))

    findings.extend(find_shadowed_tools(tool_servers))

    filtered = filter_by_severity(findings, min_severity)

    logger.debug(
        "Scanned %d server(s), %d tool(s) in %.1fms: %d finding(s)",
        len(config.servers),
        tools_scanned,
        (time.perf_counter() - start_time) * 1000,
        len(filtered),
    )

    result = ScanResult(
        findings=filtered,
        servers_scanned=len(config.servers),
        tools_scanned=tools_scanned,
        summary=ScanSummary.from_findings(filtered),
    )
    return result, errors + rule_errors


def find_shadowed_tools(tool_servers: dict[str, list[str]]) -> list[ScanFinding]:
    """
    One finding per tool name claimed by more than one server.

    Args:
        tool_servers: Tool name -> servers exposing it, in scan order.
    """
    findings: list[ScanFinding] = []

    for tool_name, servers in tool_servers.items():
        if len(servers) < 2:
            continue
        claimants = ", ".join(servers)
        findings.append(
            ScanFinding(
                rule_id=TOOL_SHADOWING_RULE_ID,
                severity=FindingSeverity.HIGH,
                server=claimants,
                tool=tool_name,
                title=f'Tool name "{tool_name}" appears in multiple servers',
                detail=(
                    f'Tool "{tool_name}" is defined by {len(servers)} servers: {claimants}. '
                    f"A malicious server could shadow a legitimate tool, intercepting calls "
                    f"meant for the original."
                ),
                remediation=(
                    "Ensure each tool name is unique across all MCP servers. Remove or rename "
                    "the duplicate tool in the less-trusted server."
                ),
            )
        )

    return findings


def filter_by_severity(
    findings: list[ScanFinding], min_severity: FindingSeverity
) -> list[ScanFinding]:
    """Keep findings at or above the minimum severity, preserving order."""
    return [f for f in findings if f.severity >= min_severity]


def _run_rule(
    rule: Rule, ctx: RuleContext, errors: list[ServerError]
) -> list[ScanFinding]:
    try:
        return rule.run(ctx)
    except Exception as e:
        error = RuleError(f"Rule {rule.id} failed: {e}", rule_id=rule.id)
        location = f"{ctx.server_name}/{ctx.tool.name}" if ctx.tool else ctx.server_name
        logger.warning("%s (%s)", error.message, location)
        errors.append(ServerError(server=ctx.server_name, error=error.message))
        return []
