"""
Domain layer for mcplock.

Contains all core data structures with zero external dependencies
beyond Pydantic.
"""

from mcplock.domain.exceptions import (
    ConfigError,
    ConnectionFailedError,
    CustomRuleError,
    InvalidLockfileError,
    LockfileError,
    LockfileNotFoundError,
    McpLockError,
    RuleError,
    UnsupportedLockfileVersionError,
)
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
from mcplock.domain.report import (
    DiffEntry,
    DiffResult,
    DiffSummary,
    DiffType,
    ScanResult,
    ScanSummary,
)

__all__ = [
    # Models
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
    # Reports
    "DiffEntry",
    "DiffResult",
    "DiffSummary",
    "DiffType",
    "ScanResult",
    "ScanSummary",
    # Exceptions
    "ConfigError",
    "ConnectionFailedError",
    "CustomRuleError",
    "InvalidLockfileError",
    "LockfileError",
    "LockfileNotFoundError",
    "McpLockError",
    "RuleError",
    "UnsupportedLockfileVersionError",
]
