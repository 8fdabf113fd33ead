from __future__ import annotations
import argparse
from dataclasses import dataclass, field
import json
from typing import Any, Dict, List, Optional

from inputrules.config import InputRulesConfig, MAX_MATCH, configure_logging
from inputrules.inputrules import FiredRuleRecord, InputRule, InputRules, undo_input_rule
from inputrules.model.node import Node
from inputrules.model.schema import basic_schema
from inputrules.model.state import EditorState, TextSelection
from inputrules.rules.load_rules import builtin_rules, load_input_rules
from inputrules.session import EditorSession


def _textblocks(doc: Node) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []

    def visit(node: Node, pos: int, parent: Optional[Node], index: int) -> bool:
        if node.is_textblock:
            out.append({"type": node.type.name, "attrs": dict(node.attrs), "text": node.text_content})
            return False
        return True

    doc.nodes_between(0, doc.content_size, visit)
    return out


@dataclass
class TypingResult:
    doc: Node
    fired: List[str] = field(default_factory=list)
    undone: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "doc": repr(self.doc),
            "blocks": _textblocks(self.doc),
            "fired": self.fired,
            "undone": self.undone,
        }


def simulate_typing(text: str, rules: List[InputRule], config: Optional[InputRulesConfig] = None,
                    doc: Optional[Node] = None, undo: bool = False) -> TypingResult:
    """Type ``text`` one character at a time at the end of ``doc`` (an empty
    paragraph by default). Newlines split the current block."""
    schema = doc.type.schema if doc is not None else basic_schema()
    if doc is None:
        doc = schema.node("doc", None, [schema.node("paragraph")])
    plugin = InputRules(rules, config)
    end = doc.resolve(doc.content_size)
    while not end.parent.inline_content and end.node_before is not None:
        end = doc.resolve(end.pos - 1)
    session = EditorSession(EditorState.create(doc, TextSelection.cursor(end.pos), [plugin]))

    fired: List[str] = []
    for ch in text:
        if ch == "\n":
            session.split_block()
            continue
        if session.type_text(ch):
            record: Optional[FiredRuleRecord] = session.state.plugin_state(plugin)
            fired.append(record.rule_name if record else "")

    undone = session.run_command(undo_input_rule) if undo else False
    return TypingResult(doc=session.state.doc, fired=fired, undone=undone)


def main():
    ap = argparse.ArgumentParser(
        prog="inputrules",
        description="Simulate typing into a document with input rules enabled"
    )
    ap.add_argument("text", help="Text to type; use \\n in the shell string for Enter")
    ap.add_argument(
        "--pack", action="append", default=None,
        help="Built-in rule pack to enable (repeatable; default: typography and markdown)"
    )
    ap.add_argument("--rules-file", action="append", default=[], help="Extra YAML rule pack (repeatable)")
    ap.add_argument("--max-match", type=int, default=MAX_MATCH, help="Lookback window size in characters")
    ap.add_argument("--undo", action="store_true", help="Undo the last rule after typing")
    ap.add_argument("--docx-in", help="Start from this .docx instead of an empty document")
    ap.add_argument("--docx", help="Write the resulting document to this .docx path")
    ap.add_argument("--verbose", action="store_true", help="Log every rule evaluation")

    args = ap.parse_args()
    configure_logging(args.verbose)

    rules = builtin_rules(*(args.pack or ["typography", "markdown"]))
    for path in args.rules_file:
        rules.extend(load_input_rules(path))

    start_doc = None
    if args.docx_in:
        from inputrules.adapters.docx_adapter import load_docx
        start_doc = load_docx(args.docx_in, basic_schema())

    text = args.text.replace("\\n", "\n")
    typed = simulate_typing(text, rules, InputRulesConfig(max_match=args.max_match), start_doc, args.undo)
    result = typed.to_dict()

    if args.docx:
        from inputrules.adapters.docx_adapter import emit_docx
        emit_docx(typed.doc, args.docx)
        result["docx"] = args.docx

    print(json.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
