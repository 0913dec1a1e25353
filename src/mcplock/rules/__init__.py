"""
Detection rules for mcplock.

Each rule is an independent, testable unit: an id, a scope and a pure check
function. BUILTIN_RULES is the default registry; custom rules loaded from
YAML are appended to it at scan time.
"""

from mcplock.rules.base import Rule, RuleContext, RuleOrigin, RuleScope, make_finding
from mcplock.rules.config_rules import (
    CONFIG_RULES,
    check_exposed_secrets,
    check_no_auth,
    check_unsafe_stdio,
)
from mcplock.rules.custom import CustomRuleSpec, load_custom_rules, parse_custom_rules
from mcplock.rules.dynamic_schema import SCHEMA_RULES, check_wildcard_schema
from mcplock.rules.over_permission import (
    OVER_PERMISSION_RULES,
    check_command_injection_risk,
    check_over_permissioned,
)
from mcplock.rules.tool_poison import (
    TOOL_POISON_RULES,
    check_suspicious_description,
    check_unicode_obfuscation,
)

BUILTIN_RULES: list[Rule] = [
    # Config-level rules
    *CONFIG_RULES,
    # Tool-level rules
    *OVER_PERMISSION_RULES,
    *TOOL_POISON_RULES,
    *SCHEMA_RULES,
]

__all__ = [
    # Base
    "Rule",
    "RuleContext",
    "RuleOrigin",
    "RuleScope",
    "make_finding",
    # Config rules
    "check_exposed_secrets",
    "check_no_auth",
    "check_unsafe_stdio",
    # Tool rules
    "check_command_injection_risk",
    "check_over_permissioned",
    "check_suspicious_description",
    "check_unicode_obfuscation",
    "check_wildcard_schema",
    # Custom rules
    "CustomRuleSpec",
    "load_custom_rules",
    "parse_custom_rules",
    # Registry
    "BUILTIN_RULES",
]
