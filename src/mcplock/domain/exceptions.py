"""
Exception hierarchy for mcplock.

All exceptions inherit from McpLockError for easy catching.
"""

from __future__ import annotations


class McpLockError(Exception):
    """Base exception for all mcplock errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(McpLockError):
    """Raised when an MCP client config cannot be read."""

    def __init__(self, message: str, config_path: str | None = None) -> None:
        super().__init__(message, {"config_path": config_path})
        self.config_path = config_path


class ConnectionFailedError(McpLockError):
    """Raised when a server cannot be reached or does not answer tools/list."""

    def __init__(self, message: str, server: str) -> None:
        super().__init__(message, {"server": server})
        self.server = server


class LockfileError(McpLockError):
    """Base class for baseline loading errors."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message, {"path": path})
        self.path = path


class LockfileNotFoundError(LockfileError):
    """The lockfile does not exist. The caller may re-pin."""


class InvalidLockfileError(LockfileError):
    """The lockfile is malformed. The caller may re-pin."""


class UnsupportedLockfileVersionError(LockfileError):
    """The lockfile was written by a newer, incompatible version. Never recoverable."""

    def __init__(
        self, message: str, version: int | float, supported: int, path: str | None = None
    ) -> None:
        super().__init__(message, path)
        self.details.update({"version": version, "supported": supported})
        self.version = version
        self.supported = supported


class CustomRuleError(McpLockError):
    """Raised when a custom rules file is missing or malformed."""

    def __init__(self, message: str, rules_path: str | None = None) -> None:
        super().__init__(message, {"rules_path": rules_path})
        self.rules_path = rules_path


class RuleError(McpLockError):
    """Raised when a rule fails to execute."""

    def __init__(self, message: str, rule_id: str) -> None:
        super().__init__(message, {"rule_id": rule_id})
        self.rule_id = rule_id
