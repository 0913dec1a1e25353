"""
Engine layer for mcplock.

Contains the hasher, capability inferencer, lockfile builder, drift differ
and scanner orchestrator.
"""

from mcplock.engine.capabilities import infer_capabilities
from mcplock.engine.differ import compute_diff, diff_server_tools
from mcplock.engine.hashing import hash_value, secure_compare
from mcplock.engine.lockfile import (
    generate_lockfile,
    parse_lockfile,
    read_lockfile,
    write_lockfile,
)
from mcplock.engine.scanner import run_scan

__all__ = [
    "compute_diff",
    "diff_server_tools",
    "generate_lockfile",
    "hash_value",
    "infer_capabilities",
    "parse_lockfile",
    "read_lockfile",
    "run_scan",
    "secure_compare",
    "write_lockfile",
]
