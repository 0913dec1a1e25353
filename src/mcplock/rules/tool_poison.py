"""
Tool poisoning detection rules.

Detects prompt injection and obfuscation embedded in tool metadata, which
an LLM reads as instructions even though a human reviewer may never see it.

Rules:
- suspicious-description: Directive, override and hidden-markup patterns
- unicode-obfuscation: Cyrillic homoglyphs and zero-width characters
"""

from __future__ import annotations

import re

from mcplock.domain.models import FindingSeverity, ScanFinding
from mcplock.rules.base import Rule, RuleContext, RuleScope, make_finding

# Each family contributes its own finding
SUSPICIOUS_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    (
        "exfiltration directive",
        re.compile(r"before responding|first send|forward.*to", re.IGNORECASE),
    ),
    (
        "instruction override",
        re.compile(
            r"ignore (all )?(previous|prior)|disregard|forget.*instructions",
            re.IGNORECASE,
        ),
    ),
    (
        "directive injection",
        re.compile(r"\bIMPORTANT\b.*\b(must|always|never)\b", re.IGNORECASE),
    ),
    (
        "obfuscation pattern",
        re.compile(r"base64|encode.*send|decode.*execute", re.IGNORECASE),
    ),
    (
        "HTML tag injection",
        re.compile(r"<!--.*-->|</?[a-z]", re.IGNORECASE),
    ),
]

# Cyrillic characters that render like Latin a, e, o, p, c, x, y
CYRILLIC_HOMOGLYPHS = frozenset(
    "\u0430\u0435\u043e\u0440\u0441\u0445\u0443"  # a e o p c x y
    "\u0410\u0415\u041e\u0420\u0421\u0425\u0423"  # A E O P C X Y
)
ZERO_WIDTH_CHARS = frozenset(
    "\u200b"  # Zero-width space
    "\u200c"  # Zero-width non-joiner
    "\u200d"  # Zero-width joiner
    "\ufeff"  # Zero-width no-break space (BOM)
)

LATIN_LETTER = re.compile(r"[A-Za-z]")
CYRILLIC_CHAR = re.compile("[\u0400-\u04ff]")


def check_suspicious_description(ctx: RuleContext) -> list[ScanFinding] | None:
    if ctx.tool is None or not ctx.tool.description:
        return None

    findings: list[ScanFinding] = []
    for label, pattern in SUSPICIOUS_PATTERNS:
        if pattern.search(ctx.tool.description):
            findings.append(
                make_finding(
                    "suspicious-description",
                    FindingSeverity.CRITICAL,
                    ctx,
                    title=f"Suspicious tool description: {label}",
                    detail=(
                        f'Tool "{ctx.tool.name}" description matches pattern for {label}. '
                        f"This may indicate tool poisoning."
                    ),
                    remediation=(
                        "Review the tool description carefully. If this is unexpected, "
                        "the server may be compromised."
                    ),
                )
            )
    return findings or None


def check_unicode_obfuscation(ctx: RuleContext) -> list[ScanFinding] | None:
    if ctx.tool is None:
        return None

    findings: list[ScanFinding] = []
    for field, text in (("name", ctx.tool.name), ("description", ctx.tool.description)):
        if not text:
            continue

        if LATIN_LETTER.search(text) and CYRILLIC_CHAR.search(text):
            homoglyphs = _distinct(c for c in text if c in CYRILLIC_HOMOGLYPHS)
            if homoglyphs:
                findings.append(
                    make_finding(
                        "unicode-obfuscation",
                        FindingSeverity.CRITICAL,
                        ctx,
                        title=f"Cyrillic homoglyphs in tool {field}",
                        detail=(
                            f'Tool {field} of "{ctx.tool.name}" mixes Latin text with Cyrillic '
                            f"lookalike characters: {_describe(homoglyphs)}. The text can "
                            f"impersonate a trusted name while comparing unequal."
                        ),
                        remediation=(
                            "Replace the lookalike characters with their ASCII equivalents, "
                            "or remove the tool if the name was not chosen by you."
                        ),
                    )
                )

        hidden = _distinct(c for c in text if c in ZERO_WIDTH_CHARS)
        if hidden:
            findings.append(
                make_finding(
                    "unicode-obfuscation",
                    FindingSeverity.CRITICAL,
                    ctx,
                    title=f"Zero-width characters in tool {field}",
                    detail=(
                        f'Tool {field} of "{ctx.tool.name}" contains invisible characters: '
                        f"{_describe(hidden)}. They can hide content from reviewers."
                    ),
                    remediation="Strip all zero-width characters from tool metadata.",
                )
            )

    return findings or None


def _distinct(chars) -> list[str]:
    return list(dict.fromkeys(chars))


def _describe(chars: list[str]) -> str:
    return ", ".join(f"{c!r} (U+{ord(c):04X})" for c in chars)


TOOL_POISON_RULES: list[Rule] = [
    Rule(
        id="suspicious-description",
        scope=RuleScope.TOOL,
        check=check_suspicious_description,
        name="Suspicious tool description",
        severity=FindingSeverity.CRITICAL,
    ),
    Rule(
        id="unicode-obfuscation",
        scope=RuleScope.TOOL,
        check=check_unicode_obfuscation,
        name="Unicode obfuscation in tool metadata",
        severity=FindingSeverity.CRITICAL,
    ),
]
