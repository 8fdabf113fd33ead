"""
Stock input rules.

The typography rules are also available as module constants; the YAML
packs in this directory hold the same rules plus markdown-style block
shortcuts, and can be loaded with ``builtin_rules("typography", "markdown")``.
"""
from inputrules.inputrules import InputRule
from inputrules.rules.load_rules import (
    InputRuleSpec,
    RulePackError,
    build_input_rule,
    builtin_pack_path,
    builtin_rules,
    load_input_rules,
    load_rule_pack,
    load_rule_specs,
)

em_dash = InputRule(r"--$", "—", name="typography.em_dash")
ellipsis = InputRule(r"\.\.\.$", "…", name="typography.ellipsis")
open_double_quote = InputRule(r"(?:^|[\s\{\[\(\<'\"‘“])(\")$", "“", name="typography.open_double_quote")
close_double_quote = InputRule(r"\"$", "”", name="typography.close_double_quote")
open_single_quote = InputRule(r"(?:^|[\s\{\[\(\<'\"‘“])(')$", "‘", name="typography.open_single_quote")
close_single_quote = InputRule(r"'$", "’", name="typography.close_single_quote")

smart_quotes = [open_double_quote, close_double_quote, open_single_quote, close_single_quote]

__all__ = [
    "InputRuleSpec",
    "RulePackError",
    "build_input_rule",
    "builtin_pack_path",
    "builtin_rules",
    "load_input_rules",
    "load_rule_pack",
    "load_rule_specs",
    "em_dash",
    "ellipsis",
    "open_double_quote",
    "close_double_quote",
    "open_single_quote",
    "close_single_quote",
    "smart_quotes",
]
