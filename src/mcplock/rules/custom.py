"""
Custom rules: declarative YAML rules converted into the Rule contract.

Example .mcp-lock-rules.yaml:

    rules:
      - id: no-eval-tools
        scope: tool
        severity: high
        title: Tool exposes eval
        remediation: Remove the tool or restrict its input.
        name:
          pattern: "eval"
          flags: "i"
        description:
          pattern: "evaluate arbitrary"

`name` matches the tool name (tool scope) or the server name (config scope).
`description` and `schema` (the JSON-serialized input schema) only apply to
tool-scope rules. Every matcher that matches contributes one finding.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from mcplock.domain.exceptions import CustomRuleError
from mcplock.domain.models import FindingSeverity, ScanFinding
from mcplock.rules.base import Rule, RuleContext, RuleOrigin, RuleScope

# JavaScript-style regex flags accepted in rule files
REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "g": 0,  # global: meaningless for a yes/no match
    "u": 0,  # unicode: always on for str patterns
}


class PatternMatcher(BaseModel):
    """A regex with optional flags."""

    model_config = ConfigDict(frozen=True)

    pattern: str
    flags: str = ""

    @field_validator("flags")
    @classmethod
    def validate_flags(cls, v: str) -> str:
        unknown = sorted(set(v) - set(REGEX_FLAGS))
        if unknown:
            raise ValueError(f"unsupported regex flag(s): {''.join(unknown)}")
        return v

    def compile(self) -> re.Pattern[str]:
        flags = 0
        for letter in self.flags:
            flags |= REGEX_FLAGS[letter]
        return re.compile(self.pattern, flags)


class CustomRuleSpec(BaseModel):
    """One declarative rule record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    scope: RuleScope
    severity: FindingSeverity
    title: str = Field(..., min_length=1)
    detail: str | None = None
    remediation: str | None = None
    name_matcher: PatternMatcher | None = Field(default=None, alias="name")
    description_matcher: PatternMatcher | None = Field(default=None, alias="description")
    schema_matcher: PatternMatcher | None = Field(default=None, alias="schema")

    def to_rule(self) -> Rule:
        """Compile the matchers and wrap them in the Rule contract."""
        name_re = self.name_matcher.compile() if self.name_matcher else None
        description_re = (
            self.description_matcher.compile() if self.description_matcher else None
        )
        schema_re = self.schema_matcher.compile() if self.schema_matcher else None
        spec = self

        def check(ctx: RuleContext) -> list[ScanFinding] | None:
            if spec.scope == RuleScope.TOOL and ctx.tool is None:
                return None

            findings: list[ScanFinding] = []

            if name_re:
                target = ctx.tool.name if spec.scope == RuleScope.TOOL else ctx.server_name
                if target and name_re.search(target):
                    findings.append(spec._finding(ctx))

            if description_re and spec.scope == RuleScope.TOOL:
                target = ctx.tool.description
                if target and description_re.search(target):
                    findings.append(spec._finding(ctx))

            if schema_re and spec.scope == RuleScope.TOOL and ctx.tool.input_schema:
                serialized = json.dumps(
                    ctx.tool.input_schema, separators=(",", ":"), ensure_ascii=False
                )
                if schema_re.search(serialized):
                    findings.append(spec._finding(ctx))

            return findings or None

        return Rule(
            id=self.id,
            scope=self.scope,
            check=check,
            origin=RuleOrigin.CUSTOM,
            name=self.title,
            severity=self.severity,
        )

    def _finding(self, ctx: RuleContext) -> ScanFinding:
        return ScanFinding(
            rule_id=self.id,
            severity=self.severity,
            server=ctx.server_name,
            tool=ctx.tool.name if ctx.tool else None,
            title=self.title,
            detail=self.detail or self.title,
            remediation=self.remediation,
        )


def load_custom_rules(path: Path | str) -> list[Rule]:
    """
    Load custom rules from a YAML file.

    Args:
        path: Path to the rules file.

    Returns:
        Rules ready to run alongside the built-in ones.

    Raises:
        CustomRuleError: If the file cannot be read or any rule is invalid.
    """
    path = Path(path)

    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise CustomRuleError(f"Custom rules file not found: {path}", rules_path=str(path))
    except (OSError, UnicodeDecodeError) as e:
        raise CustomRuleError(f"Error reading custom rules: {e}", rules_path=str(path))

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise CustomRuleError(f"Invalid YAML in custom rules: {e}", rules_path=str(path))

    return parse_custom_rules(data, source=str(path))


def parse_custom_rules(data: Any, source: str = "<dict>") -> list[Rule]:
    """Convert already-parsed rule records into rules."""
    if not isinstance(data, dict) or not isinstance(data.get("rules"), list):
        raise CustomRuleError(
            f'Invalid custom rules file: expected a "rules" array in {source}',
            rules_path=source,
        )

    rules: list[Rule] = []
    for index, entry in enumerate(data["rules"]):
        try:
            spec = CustomRuleSpec.model_validate(entry)
            rules.append(spec.to_rule())
        except ValidationError as e:
            raise CustomRuleError(
                f"Custom rule #{index + 1} in {source} is invalid: {e}", rules_path=source
            )
        except re.error as e:
            raise CustomRuleError(
                f"Custom rule #{index + 1} in {source} has an invalid pattern: {e}",
                rules_path=source,
            )

    return rules
