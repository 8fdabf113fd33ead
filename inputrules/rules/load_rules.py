from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Optional
import logging
import re

import yaml

from inputrules.inputrules import InputRule
from inputrules.model.node import Node
from inputrules.rulebuilders import JoinPredicate, textblock_type_input_rule, wrapping_input_rule

logger = logging.getLogger(__name__)

RULES_DIR = Path(__file__).parent

RuleKind = Literal["text", "wrap", "textblock_type"]


class RulePackError(ValueError):
    """A rule pack entry is malformed."""


def _continue_numbering(match: "re.Match[str]", node: Node) -> bool:
    return node.child_count + node.attrs.get("order", 1) == int(match.group(1))


JOIN_PREDICATES: Dict[str, Optional[JoinPredicate]] = {
    "always": None,
    "never": lambda match, node: False,
    "continue_numbering": _continue_numbering,
}

_CONVERTERS: Dict[str, Callable[[str], Any]] = {
    "str": str,
    "int": int,
    "length": len,
}


@dataclass
class InputRuleSpec:
    id: str
    kind: RuleKind
    pattern: str
    replace: Optional[str] = None
    node_type: Optional[str] = None
    attrs: Dict[str, Any] = field(default_factory=dict)
    attrs_from_groups: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    join: str = "always"
    description: str = ""


class _GroupAttrs:
    """Node attributes computed from a rule match."""

    def __init__(self, static: Dict[str, Any], from_groups: Dict[str, Dict[str, Any]]):
        self.static = static
        self.from_groups = from_groups

    def __call__(self, match: "re.Match[str]") -> Dict[str, Any]:
        attrs = dict(self.static)
        for name, src in self.from_groups.items():
            value = match.group(int(src.get("group", 1)))
            if value is not None:
                attrs[name] = _CONVERTERS[src.get("as", "str")](value)
        return attrs


def load_rule_pack(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_rule_specs(rule_pack: Dict[str, Any]) -> List[InputRuleSpec]:
    if not isinstance(rule_pack, dict):
        raise RulePackError(f"Rule pack must be a mapping, got {type(rule_pack).__name__}")
    specs: List[InputRuleSpec] = []
    entries = rule_pack.get("input_rules", []) or []
    if not isinstance(entries, list):
        raise RulePackError(f"'input_rules' must be a list, got {type(entries).__name__}")
    for r in entries:
        if not isinstance(r, dict):
            raise RulePackError(f"Rule pack entry must be a mapping, got {r!r}")
        rule_id = r.get("id") or "<unnamed>"
        kind = str(r.get("kind", "text"))
        if "pattern" not in r:
            raise RulePackError(f"Rule {rule_id} has no pattern")
        if kind == "text" and r.get("replace") is None:
            raise RulePackError(f"Text rule {rule_id} needs a 'replace' value")
        if kind in ("wrap", "textblock_type") and not r.get("node_type"):
            raise RulePackError(f"Rule {rule_id} of kind {kind} needs a 'node_type'")
        if kind not in ("text", "wrap", "textblock_type"):
            raise RulePackError(f"Rule {rule_id} has unknown kind {kind!r}")
        join = str(r.get("join", "always"))
        if join not in JOIN_PREDICATES:
            raise RulePackError(f"Rule {rule_id} has unknown join predicate {join!r}")
        for key in ("attrs", "attrs_from_groups"):
            if not isinstance(r.get(key) or {}, dict):
                raise RulePackError(f"Rule {rule_id} '{key}' must be a mapping")
        for name, src in (r.get("attrs_from_groups") or {}).items():
            if not isinstance(src, dict):
                raise RulePackError(f"Rule {rule_id} attribute {name} must map to {{group, as}}, got {src!r}")
            if src.get("as", "str") not in _CONVERTERS:
                raise RulePackError(f"Rule {rule_id} attribute {name} has unknown conversion {src.get('as')!r}")
        specs.append(InputRuleSpec(
            id=rule_id,
            kind=kind,
            pattern=str(r["pattern"]),
            replace=r.get("replace"),
            node_type=r.get("node_type"),
            attrs=dict(r.get("attrs") or {}),
            attrs_from_groups=dict(r.get("attrs_from_groups") or {}),
            join=join,
            description=str(r.get("description", "")),
        ))
    return specs


def build_input_rule(spec: InputRuleSpec) -> InputRule:
    try:
        pattern = re.compile(spec.pattern)
    except re.error as e:
        raise RulePackError(f"Rule {spec.id} has an invalid pattern: {e}") from e
    if spec.kind == "text":
        return InputRule(pattern, spec.replace, name=spec.id)
    get_attrs = _GroupAttrs(spec.attrs, spec.attrs_from_groups) if spec.attrs_from_groups else (spec.attrs or None)
    if spec.kind == "wrap":
        return wrapping_input_rule(pattern, spec.node_type, get_attrs, JOIN_PREDICATES[spec.join], name=spec.id)
    return textblock_type_input_rule(pattern, spec.node_type, get_attrs, name=spec.id)


def load_input_rules(path: str) -> List[InputRule]:
    rules = [build_input_rule(s) for s in load_rule_specs(load_rule_pack(path))]
    logger.debug(f"Loaded {len(rules)} input rules from {path}")
    return rules


def builtin_pack_path(name: str) -> str:
    path = RULES_DIR / f"{name}.yml"
    if not path.exists():
        available = sorted(p.stem for p in RULES_DIR.glob("*.yml"))
        raise RulePackError(f"No built-in rule pack named {name!r} (available: {', '.join(available)})")
    return str(path)


def builtin_rules(*names: str) -> List[InputRule]:
    """Rules from the built-in packs, in the order the packs are named."""
    rules: List[InputRule] = []
    for name in names:
        rules.extend(load_input_rules(builtin_pack_path(name)))
    return rules
