"""
Configuration rules.

Checked once per server from its config alone, before any connection.

Rules:
- no-auth: Remote server with no authentication configured
- unsafe-stdio: Raw shell interpreter used as the launch command
- exposed-secrets: Hardcoded secret in the env block
"""

from __future__ import annotations

import ipaddress
import re
from urllib.parse import urlparse

from mcplock.domain.models import FindingSeverity, ScanFinding
from mcplock.rules.base import Rule, RuleContext, RuleScope, make_finding

AUTH_ENV_NAME = re.compile(r"auth|token|key|secret|bearer", re.IGNORECASE)
LOOPBACK_NAMES = frozenset({"localhost"})

SHELL_INTERPRETERS = ("sh", "bash", "zsh", "cmd", "powershell", "pwsh")

SECRET_ENV_NAME = re.compile(r"password|secret|private_key|api_key|token", re.IGNORECASE)


def check_no_auth(ctx: RuleContext) -> list[ScanFinding] | None:
    if not ctx.config.transport.is_remote:
        return None

    has_auth = any(AUTH_ENV_NAME.search(name) for name in ctx.config.env)
    if has_auth or _is_loopback(ctx.config.url or ""):
        return None

    return [
        make_finding(
            "no-auth",
            FindingSeverity.HIGH,
            ctx,
            title="No authentication configured for remote server",
            detail=(
                f'HTTP server "{ctx.server_name}" has no auth-related environment '
                f"variables. Remote MCP servers should require authentication."
            ),
            remediation="Add an API key or token via environment variables (e.g., MCP_API_KEY).",
        )
    ]


def check_unsafe_stdio(ctx: RuleContext) -> list[ScanFinding] | None:
    command = ctx.config.command
    if not command:
        return None

    executable = re.split(r"[/\\]", command.lower())[-1]
    if executable.endswith(".exe"):
        executable = executable[: -len(".exe")]
    if executable not in SHELL_INTERPRETERS:
        return None

    return [
        make_finding(
            "unsafe-stdio",
            FindingSeverity.CRITICAL,
            ctx,
            title="Direct shell as MCP server command",
            detail=(
                f'Server "{ctx.server_name}" uses a shell ({command}) as its command. '
                f"The shell can execute arbitrary commands on behalf of the server."
            ),
            remediation="Use a specific executable (e.g., node, python, npx) instead of a raw shell.",
        )
    ]


def check_exposed_secrets(ctx: RuleContext) -> list[ScanFinding] | None:
    findings: list[ScanFinding] = []

    for key, value in ctx.config.env.items():
        if not SECRET_ENV_NAME.search(key) or not value or value.startswith("$"):
            continue
        findings.append(
            make_finding(
                "exposed-secrets",
                FindingSeverity.CRITICAL,
                ctx,
                title=f"Hardcoded secret in config: {key}",
                detail=(
                    f'Environment variable "{key}" appears to contain a hardcoded secret '
                    f"rather than an environment variable reference."
                ),
                remediation=(
                    f'Use an environment variable reference: "{key}": "${{{key}}}" '
                    f"or set it in your shell environment."
                ),
            )
        )

    return findings or None


def _is_loopback(url: str) -> bool:
    if not url:
        return False
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return False
    if host in LOOPBACK_NAMES:
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


CONFIG_RULES: list[Rule] = [
    Rule(
        id="no-auth",
        scope=RuleScope.CONFIG,
        check=check_no_auth,
        name="No authentication for remote server",
        severity=FindingSeverity.HIGH,
    ),
    Rule(
        id="unsafe-stdio",
        scope=RuleScope.CONFIG,
        check=check_unsafe_stdio,
        name="Raw shell as server command",
        severity=FindingSeverity.CRITICAL,
    ),
    Rule(
        id="exposed-secrets",
        scope=RuleScope.CONFIG,
        check=check_exposed_secrets,
        name="Hardcoded secret in env",
        severity=FindingSeverity.CRITICAL,
    ),
]
