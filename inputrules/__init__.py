"""
inputrules - text input rules for structured documents

Rules are regular expressions matched against the text right before the
cursor while typing. The first rule that matches and accepts replaces the
matched text with an edit (a literal substitution, a wrapping node or a
new block type) that can be undone in one step with ``undo_input_rule``.
"""
from inputrules.config import InputRulesConfig, MAX_MATCH, PLACEHOLDER, configure_logging
from inputrules.inputrules import (
    Accepted,
    Computed,
    Declined,
    FiredRuleRecord,
    HandlerResult,
    InputRule,
    InputRules,
    Literal,
    undo_input_rule,
)
from inputrules.rulebuilders import textblock_type_input_rule, wrapping_input_rule
from inputrules.session import EditorSession

__all__ = [
    "InputRulesConfig",
    "MAX_MATCH",
    "PLACEHOLDER",
    "configure_logging",
    "Accepted",
    "Computed",
    "Declined",
    "FiredRuleRecord",
    "HandlerResult",
    "InputRule",
    "InputRules",
    "Literal",
    "undo_input_rule",
    "textblock_type_input_rule",
    "wrapping_input_rule",
    "EditorSession",
]

__version__ = "0.1.0"
