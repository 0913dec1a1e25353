"""
Shared constants for mcplock.
"""

from __future__ import annotations

VERSION = "0.1.0"

# Lockfile schema version, bumped on breaking changes
LOCKFILE_VERSION = 1
DEFAULT_LOCKFILE = "mcp-lock.json"
DEFAULT_RULES_FILE = ".mcp-lock-rules.yaml"
DEFAULT_TIMEOUT_MS = 10_000
HASH_ALGORITHM = "sha256"

CLIENT_NAME = "mcp-lock"

# Exit codes (Unix conventions)
EXIT_OK = 0  # Clean: lockfile matches, no findings
EXIT_DRIFT = 1  # Drift detected or findings above threshold
EXIT_ERROR = 2  # Runtime error: missing file, bad config, unsupported lockfile
