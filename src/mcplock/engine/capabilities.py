"""
Capability inference.

Classifies a tool's potential side effects from its description, name and
input schema. Two independent signal sources are computed and unioned:

- keyword families over the lowercased description + name
- property names declared in the input schema

Inference is pure and deterministic. It runs identically at pin, diff and
scan time, which is what makes capability drift detectable at all.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from mcplock.domain.models import Capability

KEYWORD_PATTERNS: dict[Capability, re.Pattern[str]] = {
    Capability.READ: re.compile(
        r"\b(read|get|fetch|load|open|view|list|search|find|glob|cat)\b"
    ),
    Capability.WRITE: re.compile(
        r"\b(write|create|save|put|upload|append|edit|modify|update|patch)\b"
    ),
    Capability.DELETE: re.compile(
        r"\b(delete|remove|unlink|rm|drop|destroy|purge)\b"
    ),
    Capability.EXECUTE: re.compile(
        r"\b(exec\w*|run|spawn|shell|bash|command|eval|invoke)\b"
        r"|\brun python\b|\bcode execution\b|\bsubprocess\b|\bshell script\b"
    ),
    Capability.NETWORK: re.compile(
        r"\b(http|fetch|request|api|url|download|upload|post|webhook|send)\b"
        r"|\bhttp request\b|\bapi call\b"
    ),
    Capability.DATABASE: re.compile(
        r"\b(query|sql|database|db|insert|select|table|schema)\b"
        r"|\bdatabase connection\b|\bprepare statement\b"
    ),
    Capability.SECRETS: re.compile(
        r"\b(secret|credential|password|token|key|auth|certificate|private)\b"
    ),
}

# Schema property-name tokens -> capability
SCHEMA_PROPERTY_TOKENS: dict[Capability, frozenset[str]] = {
    Capability.EXECUTE: frozenset({"command", "shell", "script", "code"}),
    Capability.NETWORK: frozenset({"url", "endpoint", "uri", "webhook"}),
    Capability.DATABASE: frozenset({"query", "sql", "statement", "table"}),
    Capability.READ: frozenset({"path", "file", "directory", "filename"}),
    Capability.SECRETS: frozenset({"password", "token", "secret", "key", "credential"}),
}

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


def infer_capabilities(
    description: str | None,
    name: str,
    input_schema: Mapping[str, Any] | None = None,
) -> list[Capability]:
    """
    Infer the capability tags of a tool.

    Args:
        description: Tool description (None is treated as empty).
        name: Tool name.
        input_schema: Optional JSON-Schema-like input schema.

    Returns:
        Deduplicated capabilities in vocabulary order. May be empty.
    """
    found = infer_keyword_capabilities(description, name) | infer_schema_capabilities(
        input_schema, description
    )
    return _ordered(found)


def infer_keyword_capabilities(description: str | None, name: str) -> set[Capability]:
    """Keyword families over the lowercased description + name."""
    text = f"{description or ''} {name}".lower()
    return {cap for cap, pattern in KEYWORD_PATTERNS.items() if pattern.search(text)}


def infer_schema_capabilities(
    input_schema: Mapping[str, Any] | None,
    description: str | None = None,
) -> set[Capability]:
    """
    Property-name matching over the schema's top-level `properties`.

    A path-like property implies read, and also write when the description
    itself uses a write verb.
    """
    if not isinstance(input_schema, Mapping):
        return set()
    properties = input_schema.get("properties")
    if not isinstance(properties, Mapping):
        return set()

    tokens: set[str] = set()
    for key in properties:
        tokens.update(_property_tokens(str(key)))

    found = {cap for cap, names in SCHEMA_PROPERTY_TOKENS.items() if tokens & names}
    if Capability.READ in found and KEYWORD_PATTERNS[Capability.WRITE].search(
        (description or "").lower()
    ):
        found.add(Capability.WRITE)
    return found


def _property_tokens(key: str) -> set[str]:
    lowered = _CAMEL_BOUNDARY.sub(r"\1_\2", key).lower()
    tokens = {token for token in _TOKEN_SPLIT.split(lowered) if token}
    tokens.add(key.lower())
    return tokens


def _ordered(capabilities: Iterable[Capability]) -> list[Capability]:
    present = set(capabilities)
    return [cap for cap in Capability if cap in present]
