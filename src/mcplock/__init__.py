"""
mcplock: Lockfile and security scanner for Model Context Protocol (MCP)

Pins the tools every configured MCP server exposes (description and schema
hashes plus inferred capabilities), detects drift against that baseline, and
runs static security rules over server configs and tool metadata.

Usage:
    # CLI
    $ mcplock pin
    $ mcplock ci --strict

    # Python API
    import functools

    import anyio
    from mcplock import discover_config, run_scan

    config = discover_config()
    result, errors = anyio.run(functools.partial(run_scan, config, timeout_ms=10_000))
    print(result.summary)
"""

from mcplock.adapters.config import discover_config
from mcplock.constants import LOCKFILE_VERSION, VERSION
from mcplock.domain.lockfile import Lockfile, LockfileServer, LockfileTool
from mcplock.domain.models import (
    Capability,
    DiffSeverity,
    FindingSeverity,
    LiveServerInfo,
    LiveTool,
    McpConfig,
    ScanFinding,
    ServerConfig,
    ServerError,
    Transport,
)
from mcplock.domain.report import DiffEntry, DiffResult, DiffType, ScanResult, ScanSummary
from mcplock.engine.capabilities import infer_capabilities
from mcplock.engine.differ import compute_diff
from mcplock.engine.hashing import hash_value, secure_compare
from mcplock.engine.lockfile import generate_lockfile, read_lockfile, write_lockfile
from mcplock.engine.scanner import run_scan
from mcplock.rules import BUILTIN_RULES, Rule, load_custom_rules

__version__ = VERSION

__all__ = [
    # Version
    "__version__",
    "LOCKFILE_VERSION",
    # Domain models
    "Capability",
    "DiffSeverity",
    "FindingSeverity",
    "LiveServerInfo",
    "LiveTool",
    "McpConfig",
    "ScanFinding",
    "ServerConfig",
    "ServerError",
    "Transport",
    # Lockfile
    "Lockfile",
    "LockfileServer",
    "LockfileTool",
    # Results
    "DiffEntry",
    "DiffResult",
    "DiffType",
    "ScanResult",
    "ScanSummary",
    # Engine
    "compute_diff",
    "discover_config",
    "generate_lockfile",
    "hash_value",
    "infer_capabilities",
    "read_lockfile",
    "run_scan",
    "secure_compare",
    "write_lockfile",
    # Rules
    "BUILTIN_RULES",
    "Rule",
    "load_custom_rules",
]
